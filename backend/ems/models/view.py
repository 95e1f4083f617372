"""Dashboard view state and the page derived from it."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ems.models.employee import Department, Employee

ALL_DEPARTMENTS = "All"

DepartmentFilter = Literal[Department, "All"]


class ViewState(BaseModel):
    search: str = Field(default="", max_length=200)
    department: DepartmentFilter = ALL_DEPARTMENTS
    page: int = Field(default=1, ge=1)


class ViewTransition(BaseModel):
    """A user interaction against the current view: a keystroke, a filter pick or a page click."""

    view: ViewState = Field(default_factory=ViewState)
    search: str | None = Field(default=None, max_length=200)
    department: DepartmentFilter | None = None
    page: int | None = Field(default=None, ge=1)


class EmployeePage(BaseModel):
    view: ViewState
    items: list[Employee]
    total: int
    page_size: int
    total_pages: int
    showing_from: int
    showing_to: int
