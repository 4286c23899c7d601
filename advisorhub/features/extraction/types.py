from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

ProcessingStatus = Literal["processing", "completed", "failed"]
TerminalStatus = Literal["completed", "failed"]
ExtractionStrategy = Literal["image", "pdf", "word", "text", "audio", "video", "unsupported"]


class ExtractionError(Exception):
    """Raised by an extractor when the underlying parser or service fails."""


class ImageMetadata(BaseModel):
    type: Literal["image"] = "image"
    size_bytes: int


class PdfMetadata(BaseModel):
    type: Literal["pdf"] = "pdf"
    pages: int
    info: dict[str, str] = Field(default_factory=dict)


class WordMetadata(BaseModel):
    type: Literal["word"] = "word"


class TextMetadata(BaseModel):
    type: Literal["text"] = "text"


class JsonStructure(BaseModel):
    type: str
    length: int | None = None
    item_type: str | None = None
    keys: list[str] | None = None


class JsonMetadata(BaseModel):
    type: Literal["json"] = "json"
    structure: JsonStructure


class CsvMetadata(BaseModel):
    type: Literal["csv"] = "csv"
    rows: int


class AudioMetadata(BaseModel):
    type: Literal["audio"] = "audio"
    duration: float | None = None
    language: str | None = None


class VideoMetadata(BaseModel):
    type: Literal["video"] = "video"


AttachmentMetadata = Annotated[
    Union[
        ImageMetadata,
        PdfMetadata,
        WordMetadata,
        TextMetadata,
        JsonMetadata,
        CsvMetadata,
        AudioMetadata,
        VideoMetadata,
    ],
    Field(discriminator="type"),
]

_METADATA_ADAPTER: TypeAdapter[AttachmentMetadata] = TypeAdapter(AttachmentMetadata)


def parse_metadata(payload: dict[str, Any] | None) -> AttachmentMetadata | None:
    if not payload:
        return None
    return _METADATA_ADAPTER.validate_python(payload)


class ExtractionResult(BaseModel):
    extracted_content: str
    metadata: AttachmentMetadata | None = None
    processing_status: TerminalStatus = "completed"
    error_message: str | None = None

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        placeholder: str,
        metadata: AttachmentMetadata | None = None,
    ) -> ExtractionResult:
        return cls(
            extracted_content=placeholder,
            metadata=metadata,
            processing_status="failed",
            error_message=message,
        )

    def metadata_json(self) -> dict[str, Any] | None:
        if self.metadata is None:
            return None
        return self.metadata.model_dump(mode="json")
