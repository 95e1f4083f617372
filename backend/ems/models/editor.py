"""Record editor form models."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from ems.models.employee import Department, EmployeeStatus
from ems.models.notification import Notification


class EditorMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class EmployeeForm(BaseModel):
    """Current values of the editor form. Unlike a draft it may be incomplete."""

    full_name: str = ""
    email: str = ""
    role: str = ""
    department: Department
    join_date: date
    salary: float = Field(default=0, ge=0)
    status: EmployeeStatus = "Active"


class EditorSession(BaseModel):
    mode: EditorMode
    employee_id: str | None = None
    form: EmployeeForm


class ScanResult(BaseModel):
    form: EmployeeForm
    extracted: bool
    notification: Notification
