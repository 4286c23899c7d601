from __future__ import annotations

import re

# "\r\r\n" collapses to one newline in a single pass.
_CRLF_RE = re.compile(r"\r+\n")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    normalized = _CRLF_RE.sub("\n", text)
    normalized = _EXCESS_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()
