from .classifier import classify_file, normalize_content_type
from .cleaning import clean_text
from .service import process_file
from .transcription import OpenAITranscriber, Transcriber, Transcript, get_transcriber
from .types import (
    AttachmentMetadata,
    ExtractionError,
    ExtractionResult,
    ExtractionStrategy,
    ProcessingStatus,
    parse_metadata,
)

__all__ = [
    "AttachmentMetadata",
    "ExtractionError",
    "ExtractionResult",
    "ExtractionStrategy",
    "OpenAITranscriber",
    "ProcessingStatus",
    "Transcriber",
    "Transcript",
    "classify_file",
    "clean_text",
    "get_transcriber",
    "normalize_content_type",
    "parse_metadata",
    "process_file",
]
