from .context import (
    CONTEXT_CLOSE,
    CONTEXT_OPEN,
    QUERY_PREFIX,
    assemble_user_message,
    build_attachment_context,
    compose_user_message,
)
from .errors import AttachmentNotFoundError
from .pipeline import (
    reconcile_stale_attachments,
    run_attachment_extraction,
    schedule_attachment_extraction,
)
from .repo import (
    apply_extraction_result,
    create_attachment,
    get_user_attachment,
    list_completed_attachments,
    list_conversation_attachments,
)
from .service import StoredFile, is_admitted, remove_stored_file, resolve_storage_path, store_upload

__all__ = [
    "AttachmentNotFoundError",
    "CONTEXT_CLOSE",
    "CONTEXT_OPEN",
    "QUERY_PREFIX",
    "StoredFile",
    "apply_extraction_result",
    "assemble_user_message",
    "build_attachment_context",
    "compose_user_message",
    "create_attachment",
    "get_user_attachment",
    "is_admitted",
    "list_completed_attachments",
    "list_conversation_attachments",
    "reconcile_stale_attachments",
    "remove_stored_file",
    "resolve_storage_path",
    "run_attachment_extraction",
    "schedule_attachment_extraction",
    "store_upload",
]
