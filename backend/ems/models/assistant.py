"""Assistant chat and form-extraction models."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ems.models.employee import Department
from ems.models.notification import Notification


class SourceCitation(BaseModel):
    title: str
    uri: str


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    text: str
    sources: list[SourceCitation] = []


class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)


class ChatReply(BaseModel):
    message: ChatMessage
    notification: Notification | None = None


class ExtractedEmployeeFields(BaseModel):
    """Fields read off an enrollment form. Keys follow the extraction JSON schema."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    full_name: str = Field(..., alias="fullName", min_length=1)
    email: str = Field(..., min_length=1)
    role: str
    department: Department
    salary: float = Field(..., ge=0)
    join_date: date | None = Field(default=None, alias="joinDate")
