"""Routes a signed-in user to the dashboard shell and everyone else to the login screen."""

from __future__ import annotations

from ems.models.auth import SessionState, UserInfo

SHELL_ROUTE = "/"
LOGIN_ROUTE = "/login"


def resolve_session(user: UserInfo | None) -> SessionState:
    """Map the identity provider's current state to the screen the dashboard should show."""
    if user is None:
        return SessionState(status="unauthenticated", route=LOGIN_ROUTE)
    return SessionState(status="authenticated", route=SHELL_ROUTE, user=user)
