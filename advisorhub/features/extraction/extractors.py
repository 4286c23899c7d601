from __future__ import annotations

import asyncio
import io
import json
import logging
from typing import Any

from docx import Document
from pypdf import PdfReader

from .cleaning import clean_text
from .transcription import Transcriber
from .types import (
    AudioMetadata,
    CsvMetadata,
    ExtractionError,
    ExtractionResult,
    ImageMetadata,
    JsonMetadata,
    JsonStructure,
    PdfMetadata,
    TextMetadata,
    VideoMetadata,
    WordMetadata,
)

logger = logging.getLogger(__name__)


async def extract_image(data: bytes, filename: str) -> ExtractionResult:
    # No OCR engine is wired in; the image is kept as a visual reference.
    return ExtractionResult(
        extracted_content=(
            f"[Image uploaded: {filename}]\n\n"
            "This is a visual reference that the user can describe or ask questions about. "
            "Text inside the image is not extracted."
        ),
        metadata=ImageMetadata(size_bytes=len(data)),
    )


def _read_pdf(data: bytes) -> tuple[str, int, dict[str, str]]:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    info: dict[str, str] = {}
    if reader.metadata:
        for key, value in reader.metadata.items():
            if value is None:
                continue
            info[str(key).lstrip("/")] = str(value)
    return "\n\n".join(pages), len(pages), info


async def extract_pdf(data: bytes) -> ExtractionResult:
    try:
        text, page_count, info = await asyncio.to_thread(_read_pdf, data)
    except Exception as exc:
        raise ExtractionError(f"PDF parsing failed: {exc}") from exc
    return ExtractionResult(
        extracted_content=clean_text(text),
        metadata=PdfMetadata(pages=page_count, info=info),
    )


def _read_docx(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    return "\n\n".join(paragraph.text for paragraph in document.paragraphs)


async def extract_word(data: bytes) -> ExtractionResult:
    try:
        text = await asyncio.to_thread(_read_docx, data)
    except Exception as exc:
        raise ExtractionError(f"Word document parsing failed: {exc}") from exc
    return ExtractionResult(
        extracted_content=clean_text(text),
        metadata=WordMetadata(),
    )


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def analyze_json_structure(value: Any) -> JsonStructure:
    """Shallow shape of a parsed JSON document: top-level type and key sets."""
    structure = JsonStructure(type=_json_type_name(value))
    if isinstance(value, list):
        structure.length = len(value)
        if value:
            first = value[0]
            structure.item_type = _json_type_name(first)
            if isinstance(first, dict):
                structure.keys = list(first.keys())
    elif isinstance(value, dict):
        structure.keys = list(value.keys())
    return structure


async def extract_text(data: bytes, filename: str, extension: str) -> ExtractionResult:
    raw = data.decode("utf-8", errors="replace")
    metadata: TextMetadata | JsonMetadata | CsvMetadata = TextMetadata()
    if extension == ".json":
        try:
            metadata = JsonMetadata(structure=analyze_json_structure(json.loads(raw)))
        except (ValueError, RecursionError):
            logger.debug("File %s is not valid JSON; treating it as plain text.", filename)
    elif extension == ".csv":
        # Line count, not a CSV parse.
        metadata = CsvMetadata(rows=len(raw.split("\n")))
    return ExtractionResult(extracted_content=clean_text(raw), metadata=metadata)


async def extract_audio(
    data: bytes,
    filename: str,
    *,
    transcriber: Transcriber | None,
    timeout: float | None = None,
) -> ExtractionResult:
    if transcriber is None:
        return ExtractionResult(
            extracted_content=(
                f"[Audio file uploaded: {filename}]\n\n"
                "No transcription service is configured. Audio transcription is not available."
            ),
            metadata=AudioMetadata(),
        )

    # Only the deadline below can surface as TimeoutError here.
    try:
        return await asyncio.wait_for(_transcribe(data, filename, transcriber), timeout=timeout)
    except asyncio.TimeoutError:
        return _audio_failure(filename, f"Transcription timed out after {timeout:g} seconds.")


async def _transcribe(data: bytes, filename: str, transcriber: Transcriber) -> ExtractionResult:
    try:
        transcript = await transcriber.transcribe(data, filename=filename)
    except Exception as exc:
        logger.warning("Audio transcription failed for %s.", filename, exc_info=True)
        return _audio_failure(filename, str(exc) or exc.__class__.__name__)

    return ExtractionResult(
        extracted_content=f"[Audio Transcription: {filename}]\n\n{clean_text(transcript.text)}",
        metadata=AudioMetadata(duration=transcript.duration, language=transcript.language),
    )


def _audio_failure(filename: str, message: str) -> ExtractionResult:
    return ExtractionResult.failure(
        message,
        placeholder=f"[Audio file uploaded: {filename}]\n\nTranscription failed: {message}",
        metadata=AudioMetadata(),
    )


async def extract_video(filename: str) -> ExtractionResult:
    return ExtractionResult(
        extracted_content=(
            f"[Video file uploaded: {filename}]\n\n"
            "Video processing requires additional tooling that is not available. "
            "The user can describe the video content or provide a transcript."
        ),
        metadata=VideoMetadata(),
    )
