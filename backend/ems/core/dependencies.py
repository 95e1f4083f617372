from __future__ import annotations

import logging

from fastapi import Header, HTTPException, status

from ems.core.auth import user_from_claims, validate_token
from ems.core.config import settings
from ems.models.auth import UserInfo

logger = logging.getLogger(__name__)


def _resolve_user(authorization: str | None) -> UserInfo:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]

    try:
        payload = validate_token(token, settings.AZURE_AD_TENANT_ID, settings.AZURE_AD_CLIENT_ID)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return user_from_claims(payload)


async def get_current_user(authorization: str | None = Header(None)) -> UserInfo:
    return _resolve_user(authorization)


async def get_optional_user(authorization: str | None = Header(None)) -> UserInfo | None:
    try:
        return _resolve_user(authorization)
    except HTTPException as e:
        if e.status_code != status.HTTP_401_UNAUTHORIZED:
            raise
        return None
