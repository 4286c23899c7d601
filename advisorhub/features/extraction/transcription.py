from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from openai import AsyncOpenAI

from advisorhub.core.config import get_settings


@dataclass(frozen=True)
class Transcript:
    text: str
    duration: float | None = None
    language: str | None = None


class Transcriber(Protocol):
    async def transcribe(self, data: bytes, *, filename: str) -> Transcript: ...


class OpenAITranscriber:
    """Whisper-style transcription through any OpenAI-compatible endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "",
        timeout_seconds: float | None = None,
    ) -> None:
        client_kwargs: dict[str, object] = {"api_key": api_key, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        if timeout_seconds:
            client_kwargs["timeout"] = timeout_seconds
        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model

    async def transcribe(self, data: bytes, *, filename: str) -> Transcript:
        response = await self._client.audio.transcriptions.create(
            file=(filename, data),
            model=self._model,
            response_format="verbose_json",
        )
        duration = getattr(response, "duration", None)
        return Transcript(
            text=response.text or "",
            duration=float(duration) if duration is not None else None,
            language=getattr(response, "language", None),
        )


def get_transcriber() -> Transcriber | None:
    """Return the configured transcriber, or None when no credential is set."""
    settings = get_settings()
    api_key = settings.transcription_api_key.strip()
    if not api_key:
        return None
    return OpenAITranscriber(
        api_key=api_key,
        model=settings.transcription_model,
        base_url=settings.transcription_base_url.strip(),
        timeout_seconds=settings.transcription_timeout_seconds,
    )
