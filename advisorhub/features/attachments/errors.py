from __future__ import annotations


class AttachmentNotFoundError(Exception):
    pass
