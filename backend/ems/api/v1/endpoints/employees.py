from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from ems.core.config import settings
from ems.core.dependencies import get_current_user
from ems.models.auth import UserInfo
from ems.models.employee import Employee, WorkforceStats
from ems.models.notification import Notification
from ems.models.view import ALL_DEPARTMENTS, DepartmentFilter, EmployeePage, ViewState, ViewTransition
from ems.services.employee_mirror import employee_mirror
from ems.services.employee_store import EmployeeNotFoundError, EmployeeStoreError, employee_store
from ems.services.view_state import apply_transition, derive_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=EmployeePage)
async def list_employees(
    search: str = Query(default="", max_length=200),
    department: DepartmentFilter = ALL_DEPARTMENTS,
    page: int = Query(default=1, ge=1),
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    view = ViewState(search=search, department=department, page=page)
    return derive_page(employee_mirror.snapshot().records, view, settings.PAGE_SIZE)


@router.post("/view", response_model=EmployeePage)
async def update_view(
    transition: ViewTransition,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    view = apply_transition(transition)
    return derive_page(employee_mirror.snapshot().records, view, settings.PAGE_SIZE)


@router.get("/stats", response_model=WorkforceStats)
async def workforce_stats(user: UserInfo = Depends(get_current_user)):  # noqa: B008
    records = employee_mirror.snapshot().records
    total = len(records)
    return WorkforceStats(
        total=total,
        active=sum(1 for e in records if e.status == "Active"),
        average_salary=sum(e.salary for e in records) / total if total else 0.0,
        departments=len({e.department for e in records}),
    )


@router.get("/stream", response_class=StreamingResponse)
async def stream_employees(user: UserInfo = Depends(get_current_user)):  # noqa: B008
    logger.info("Employee stream opened by user=%s", user.name)
    return StreamingResponse(
        employee_mirror.stream_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(
    employee_id: str,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    employee = employee_mirror.get(employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{employee_id}' not found",
        )
    return employee


@router.delete("/{employee_id}", response_model=Notification)
async def delete_employee(
    employee_id: str,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        await employee_store.delete(employee_id)
    except EmployeeNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{employee_id}' not found",
        ) from err
    except EmployeeStoreError as err:
        logger.exception("Failed to delete employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete",
        ) from err

    employee_mirror.request_refresh()
    logger.info("Employee %s deleted by user=%s", employee_id, user.name)
    return Notification.success("Employee deleted")
