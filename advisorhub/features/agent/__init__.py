from .orchestrator import (
    EventSink,
    HistoryMessage,
    LangChainOrchestrator,
    Orchestrator,
    OrchestratorRequest,
    get_orchestrator,
)
from .schemas import CompleteEvent, ErrorEvent, TextDeltaEvent, encode_sse

__all__ = [
    "CompleteEvent",
    "ErrorEvent",
    "EventSink",
    "HistoryMessage",
    "LangChainOrchestrator",
    "Orchestrator",
    "OrchestratorRequest",
    "TextDeltaEvent",
    "encode_sse",
    "get_orchestrator",
]
