"""Authentication models for Azure AD identities and the session gate."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []


class SessionState(BaseModel):
    status: Literal["authenticated", "unauthenticated"]
    route: str
    user: UserInfo | None = None
