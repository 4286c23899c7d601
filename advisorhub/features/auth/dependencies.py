from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request

from advisorhub.core.config import get_settings


@dataclass(frozen=True)
class CurrentUser:
    id: str


async def get_current_user(request: Request) -> CurrentUser:
    """Resolve the caller from the identity header set by the upstream auth gateway.

    Token verification happens before requests reach this service; only the
    verified user id is trusted here.
    """
    header_name = get_settings().auth_user_header
    user_id = (request.headers.get(header_name) or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return CurrentUser(id=user_id)
