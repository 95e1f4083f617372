from __future__ import annotations

from fastapi import APIRouter, Depends

from ems.core.dependencies import get_optional_user
from ems.core.session_gate import resolve_session
from ems.models.auth import SessionState, UserInfo

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionState)
async def current_session(user: UserInfo | None = Depends(get_optional_user)):  # noqa: B008
    return resolve_session(user)
