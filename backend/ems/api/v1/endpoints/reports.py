from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response

from ems.core.config import settings
from ems.core.dependencies import get_current_user
from ems.models.auth import UserInfo
from ems.models.view import ALL_DEPARTMENTS, DepartmentFilter
from ems.services.employee_mirror import employee_mirror
from ems.services.report_generator import render_blank_enrollment_form, render_employee_report
from ems.services.view_state import filter_employees

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

REPORT_FILENAME = "Nexus_Employee_Report.pdf"
BLANK_FORM_FILENAME = "Nexus_Blank_Enrollment_Form.pdf"


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/employees")
async def export_employees(
    search: str = Query(default="", max_length=200),
    department: DepartmentFilter = ALL_DEPARTMENTS,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    employees = filter_employees(employee_mirror.snapshot().records, search, department)
    content = render_employee_report(
        employees,
        generated_at=datetime.now(),  # noqa: DTZ005
        title=settings.REPORT_TITLE,
        organization=settings.REPORT_ORGANIZATION,
    )
    logger.info("Exported %d employees for user=%s", len(employees), user.name)
    return _pdf_response(content, REPORT_FILENAME)


@router.get("/enrollment-form")
async def blank_enrollment_form(user: UserInfo = Depends(get_current_user)):  # noqa: B008
    return _pdf_response(render_blank_enrollment_form(settings.REPORT_ORGANIZATION), BLANK_FORM_FILENAME)
