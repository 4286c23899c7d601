from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from advisorhub.core.config import get_settings

from .classifier import classify_file, file_extension, normalize_content_type
from .extractors import (
    extract_audio,
    extract_image,
    extract_pdf,
    extract_text,
    extract_video,
    extract_word,
)
from .transcription import Transcriber, get_transcriber
from .types import ExtractionResult

logger = logging.getLogger(__name__)

FileSource = bytes | str | Path


async def _read_source(source: FileSource) -> bytes:
    if isinstance(source, bytes):
        return source
    return await asyncio.to_thread(Path(source).read_bytes)


async def _dispatch(
    source: FileSource,
    content_type: str,
    original_name: str,
    *,
    transcriber: Transcriber | None,
) -> ExtractionResult:
    strategy = classify_file(content_type, original_name)
    if strategy == "unsupported":
        mime = normalize_content_type(content_type) or "unknown"
        return ExtractionResult.failure(
            f"Unsupported file type: {mime}",
            placeholder=f"[Unsupported file type: {mime}]",
        )

    data = await _read_source(source)
    if strategy == "image":
        return await extract_image(data, original_name)
    if strategy == "pdf":
        return await extract_pdf(data)
    if strategy == "word":
        return await extract_word(data)
    if strategy == "text":
        return await extract_text(data, original_name, file_extension(original_name))
    if strategy == "audio":
        return await extract_audio(
            data,
            original_name,
            transcriber=transcriber,
            timeout=get_settings().transcription_timeout_seconds,
        )
    return await extract_video(original_name)


async def process_file(
    source: FileSource,
    content_type: str,
    original_name: str,
    *,
    transcriber: Transcriber | None = None,
    timeout: float | None = None,
) -> ExtractionResult:
    """Extract text and metadata from one uploaded file.

    ``source`` is the raw bytes or a path to the stored file. The declared
    ``content_type`` may be generic or wrong; ``original_name`` drives the
    extension-based fallback. Every failure, including the optional overall
    ``timeout``, comes back as a ``failed`` result: this function does not
    raise. ``transcriber`` defaults to the configured one, if any.
    """
    if transcriber is None:
        transcriber = get_transcriber()
    # Errors are converted inside the guard, so a TimeoutError here is the deadline.
    try:
        return await asyncio.wait_for(
            _guarded_dispatch(source, content_type, original_name, transcriber=transcriber),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Extraction of %s timed out.", original_name)
        return _failure(f"Extraction timed out after {timeout:g} seconds.")


async def _guarded_dispatch(
    source: FileSource,
    content_type: str,
    original_name: str,
    *,
    transcriber: Transcriber | None,
) -> ExtractionResult:
    try:
        return await _dispatch(source, content_type, original_name, transcriber=transcriber)
    except Exception as exc:
        logger.exception("Error processing file %s.", original_name)
        return _failure(str(exc) or exc.__class__.__name__)


def _failure(message: str) -> ExtractionResult:
    return ExtractionResult.failure(
        message,
        placeholder=f"[Error processing file: {message}]",
    )
