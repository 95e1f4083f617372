"""One-shot notifications shown by the dashboard as toasts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str

    @classmethod
    def success(cls, message: str) -> Notification:
        return cls(level="success", message=message)

    @classmethod
    def error(cls, message: str) -> Notification:
        return cls(level="error", message=message)
