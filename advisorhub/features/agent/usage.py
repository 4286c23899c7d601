from __future__ import annotations

from typing import Any

from langchain_core.messages import AIMessageChunk


def extract_usage(message: AIMessageChunk | None) -> dict[str, Any] | None:
    """Token usage of a streamed reply, with reasoning tokens lifted to the top level."""
    if message is None:
        return None
    usage = getattr(message, "usage_metadata", None)
    if not isinstance(usage, dict):
        return None

    usage_copy = dict(usage)
    details = usage.get("output_token_details")
    if isinstance(details, dict) and isinstance(details.get("reasoning"), int):
        usage_copy["reasoning_tokens"] = details["reasoning"]
    return usage_copy
