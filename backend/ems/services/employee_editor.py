from __future__ import annotations

from datetime import date

from ems.models.assistant import ExtractedEmployeeFields
from ems.models.editor import EditorMode, EditorSession, EmployeeForm
from ems.models.employee import DEPARTMENTS, Employee, EmployeeDraft
from ems.services.employee_store import EmployeeStore


def new_session(today: date | None = None) -> EditorSession:
    form = EmployeeForm(
        department=DEPARTMENTS[0],
        join_date=today or date.today(),
        salary=0,
        status="Active",
    )
    return EditorSession(mode=EditorMode.CREATE, form=form)


def edit_session(employee: Employee) -> EditorSession:
    form = EmployeeForm(**employee.model_dump(exclude={"id"}))
    return EditorSession(mode=EditorMode.EDIT, employee_id=employee.id, form=form)


def merge_extracted(form: EmployeeForm, extracted: ExtractedEmployeeFields) -> EmployeeForm:
    """Overlay extracted fields on the form; fields the scan did not return stay as they are."""
    return form.model_copy(update=extracted.model_dump(exclude_none=True))


async def submit(session: EditorSession, store: EmployeeStore) -> Employee:
    """Perform the session's single write. Store errors propagate so the form stays open."""
    draft = EmployeeDraft(**session.form.model_dump())
    if session.mode is EditorMode.EDIT:
        if not session.employee_id:
            raise ValueError("Edit session has no employee id")
        return await store.replace(session.employee_id, draft)
    return await store.create(draft)
