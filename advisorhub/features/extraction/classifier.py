from __future__ import annotations

from pathlib import PurePath

from .types import ExtractionStrategy

PDF_MIME = "application/pdf"
WORD_MIME_TYPES = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
# application/json is also admitted at upload; without it a JSON upload named
# without an extension would be admitted and then fail as unsupported.
TEXT_MIME_TYPES = frozenset({"application/json"})
TEXT_EXTENSIONS = frozenset({".txt", ".md", ".json", ".csv"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".ogg"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv"})


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case a declared MIME type and drop parameters such as charset."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def file_extension(filename: str | None) -> str:
    """Lower-cased text after the last dot, so ``.json`` alone still has one."""
    name = PurePath(filename or "").name
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[1].lower()


def classify_file(content_type: str | None, filename: str | None) -> ExtractionStrategy:
    mime = normalize_content_type(content_type)
    extension = file_extension(filename)

    if mime.startswith("image/"):
        return "image"
    if mime == PDF_MIME:
        return "pdf"
    if mime in WORD_MIME_TYPES:
        return "word"
    if mime.startswith("text/") or mime in TEXT_MIME_TYPES or extension in TEXT_EXTENSIONS:
        return "text"
    if mime.startswith("audio/") or extension in AUDIO_EXTENSIONS:
        return "audio"
    if mime.startswith("video/") or extension in VIDEO_EXTENSIONS:
        return "video"
    return "unsupported"
