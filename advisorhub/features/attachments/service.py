from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID, uuid4

from fastapi import HTTPException, UploadFile

from advisorhub.core.config import get_settings
from advisorhub.features.extraction import normalize_content_type

logger = logging.getLogger(__name__)

# Admission is coarser than extraction dispatch: anything here (plus image/*
# and text/*) is accepted at upload, and extraction decides what it can read.
ADMITTED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "text/csv",
        "application/json",
        "audio/mpeg",
        "audio/wav",
        "audio/x-m4a",
        "audio/ogg",
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
    }
)
_ADMITTED_MIME_PREFIXES = ("image/", "text/")
_READ_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    file_name: str
    file_path: str
    file_size: int


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _storage_root() -> Path:
    settings = get_settings()
    root = Path(settings.upload_storage_dir)
    if not root.is_absolute():
        root = _project_root() / root
    (root / "files").mkdir(parents=True, exist_ok=True)
    return root


def resolve_storage_path(storage_path: str) -> Path:
    path = Path(storage_path)
    if not path.is_absolute():
        path = _project_root() / path
    return path


def normalize_filename(filename: str) -> str:
    cleaned = re.sub(r"[^\w.\- ]+", "_", filename).strip()
    return cleaned or "upload"


def content_type_for(upload: UploadFile) -> str:
    from_upload = normalize_content_type(upload.content_type)
    if from_upload:
        return from_upload
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return (guessed or "application/octet-stream").lower()


def is_admitted(content_type: str) -> bool:
    mime = normalize_content_type(content_type)
    return mime in ADMITTED_MIME_TYPES or mime.startswith(_ADMITTED_MIME_PREFIXES)


async def store_upload(upload: UploadFile, *, conversation_id: UUID) -> StoredFile:
    """Stream an upload into attachment storage, enforcing the size limit.

    A partially written file is removed before the size error is raised.
    """
    settings = get_settings()
    extension = Path(normalize_filename(upload.filename or "")).suffix.lower()
    file_name = f"conversation-{conversation_id}-{uuid4().hex}{extension}"
    stored_path = _storage_root() / "files" / file_name

    total = 0
    try:
        with stored_path.open("wb") as handle:
            while True:
                chunk = await upload.read(_READ_CHUNK_BYTES)
                if not chunk:
                    break
                total += len(chunk)
                if total > settings.upload_max_size_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=(
                            f"File '{upload.filename or 'upload'}' exceeds max size of "
                            f"{settings.upload_max_size_bytes} bytes."
                        ),
                    )
                handle.write(chunk)
    except BaseException:
        remove_stored_file(str(stored_path))
        raise

    return StoredFile(file_name=file_name, file_path=str(stored_path), file_size=total)


def remove_stored_file(storage_path: str) -> bool:
    path = resolve_storage_path(storage_path)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError:
        logger.warning("Could not delete attachment file %s.", path, exc_info=True)
        return False
    return True
