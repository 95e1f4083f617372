from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from ems.core.dependencies import get_current_user
from ems.models.auth import UserInfo
from ems.models.editor import EditorMode, EditorSession, EmployeeForm, ScanResult
from ems.models.employee import EmployeeWriteResponse
from ems.models.notification import Notification
from ems.services import employee_editor
from ems.services.employee_mirror import employee_mirror
from ems.services.employee_store import EmployeeNotFoundError, EmployeeStoreError, employee_store
from ems.services.form_extractor import FormExtractionError, form_extractor
from ems.services.form_image import FormImageError, prepare_form_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/editor", tags=["editor"])

SCAN_FAILED_MESSAGE = "AI Extraction failed. Please fill manually."


@router.get("/new", response_model=EditorSession)
async def open_create(user: UserInfo = Depends(get_current_user)):  # noqa: B008
    return employee_editor.new_session()


@router.post("/scan", response_model=ScanResult)
async def scan_enrollment_form(
    file: UploadFile = File(...),
    form: str = Form(...),
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        current = EmployeeForm.model_validate_json(form)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid form values: {e.error_count()} error(s)",
        ) from e

    file_bytes = await file.read()
    try:
        image = prepare_form_image(file_bytes, file.content_type)
        extracted = await form_extractor.extract(image)
    except (FormImageError, FormExtractionError) as e:
        logger.error("Form scan failed for file=%s user=%s: %s", file.filename, user.name, e)
        return ScanResult(form=current, extracted=False, notification=Notification.error(SCAN_FAILED_MESSAGE))

    logger.info("Form scan pre-filled fields from %s user=%s", file.filename, user.name)
    return ScanResult(
        form=employee_editor.merge_extracted(current, extracted),
        extracted=True,
        notification=Notification.success("AI Scan Complete: Fields Pre-filled"),
    )


@router.post("/submit", response_model=EmployeeWriteResponse)
async def submit_editor(
    session: EditorSession,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        employee = await employee_editor.submit(session, employee_store)
    except ValidationError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Incomplete employee form: {err.error_count()} error(s)",
        ) from err
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except EmployeeNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{session.employee_id}' not found",
        ) from err
    except EmployeeStoreError as err:
        logger.exception("Failed to save employee (mode=%s)", session.mode.value)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save employee",
        ) from err

    employee_mirror.request_refresh()
    if session.mode is EditorMode.EDIT:
        message = "Employee updated successfully"
    else:
        message = "Employee added successfully"
    logger.info("Employee %s saved (mode=%s) by user=%s", employee.id, session.mode.value, user.name)
    return EmployeeWriteResponse(id=employee.id, notification=Notification.success(message))


@router.get("/{employee_id}", response_model=EditorSession)
async def open_edit(
    employee_id: str,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    employee = employee_mirror.get(employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{employee_id}' not found",
        )
    return employee_editor.edit_session(employee)
