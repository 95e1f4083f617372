"""Employee record models."""

from __future__ import annotations

from datetime import date
from typing import Literal, get_args

from pydantic import BaseModel, Field

from ems.models.notification import Notification

Department = Literal["Engineering", "HR", "Sales", "Marketing", "Finance", "Legal"]
EmployeeStatus = Literal["Active", "Inactive"]

DEPARTMENTS: tuple[str, ...] = get_args(Department)


class EmployeeDraft(BaseModel):
    """All writable fields of an employee. A write always replaces every one of them."""

    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=1, max_length=320)
    role: str = Field(default="", max_length=200)
    department: Department
    join_date: date
    salary: float = Field(..., ge=0)
    status: EmployeeStatus = "Active"


class Employee(EmployeeDraft):
    """An employee as mirrored from the record store."""

    id: str


class EmployeeWriteResponse(BaseModel):
    id: str
    notification: Notification


class WorkforceStats(BaseModel):
    total: int
    active: int
    average_salary: float
    departments: int
