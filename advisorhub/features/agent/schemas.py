from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel


class TextDeltaEvent(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    content: str


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    data: dict[str, Any]


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


def encode_sse(event: BaseModel | Mapping[str, Any]) -> str:
    """One event per ``data:`` line; orchestrator events are passed through as-is."""
    if isinstance(event, BaseModel):
        # Python mode; orchestrator results may hold values pydantic cannot serialize.
        payload: Any = event.model_dump()
    else:
        payload = dict(event)
    return f"data: {json.dumps(payload, ensure_ascii=True, default=str)}\n\n"
