from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from langchain_openai import ChatOpenAI

from advisorhub.core.config import get_settings


@dataclass(frozen=True)
class ModelSettingsResolved:
    model_name: str
    api_key: str
    base_url: str
    temperature: float


def default_model_settings(*, model_name: str | None = None) -> ModelSettingsResolved:
    settings = get_settings()
    return ModelSettingsResolved(
        model_name=model_name or settings.openailike_model,
        api_key=settings.openailike_api_key,
        base_url=settings.openailike_base_url,
        temperature=settings.openailike_temperature,
    )


def content_text(content: Any) -> str:
    """Plain text of a message or chunk content (a string or a list of blocks)."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") in {"text", "output_text"}:
            value = block.get("text")
            if value:
                parts.append(str(value))
    return "".join(parts)


def build_chat_model(
    resolved: ModelSettingsResolved,
    *,
    timeout_seconds: float | None = None,
    streaming: bool = False,
) -> ChatOpenAI:
    model_kwargs: dict[str, Any] = {
        "model": resolved.model_name,
        "api_key": resolved.api_key,
        "temperature": resolved.temperature,
        "streaming": streaming,
        "max_retries": 1,
    }
    if resolved.base_url:
        # OpenAI-compatible providers often need a custom base URL.
        model_kwargs["base_url"] = resolved.base_url
    if timeout_seconds:
        model_kwargs["timeout"] = timeout_seconds
    return ChatOpenAI(**model_kwargs)
