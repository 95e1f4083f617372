"""Filtered, paginated projection of the mirrored employee list.

Everything here is a pure function of the records and a ``ViewState``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from ems.models.employee import Employee
from ems.models.view import ALL_DEPARTMENTS, EmployeePage, ViewState, ViewTransition


def filter_employees(records: Iterable[Employee], search: str, department: str) -> list[Employee]:
    term = search.lower()
    return [
        e
        for e in records
        if (term in e.full_name.lower() or term in e.email.lower())
        and (department == ALL_DEPARTMENTS or e.department == department)
    ]


def paginate(filtered: Sequence[Employee], view: ViewState, page_size: int) -> EmployeePage:
    total = len(filtered)
    start = (view.page - 1) * page_size
    items = list(filtered[start : start + page_size])
    return EmployeePage(
        view=view,
        items=items,
        total=total,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
        showing_from=start + 1 if items else 0,
        showing_to=start + len(items) if items else 0,
    )


def derive_page(records: Iterable[Employee], view: ViewState, page_size: int) -> EmployeePage:
    return paginate(filter_employees(records, view.search, view.department), view, page_size)


def apply_transition(transition: ViewTransition) -> ViewState:
    """Resolve the next view state. A new search term or department always lands on page 1."""
    view = transition.view
    search = view.search if transition.search is None else transition.search
    department = view.department if transition.department is None else transition.department

    if search != view.search or department != view.department:
        return ViewState(search=search, department=department, page=1)
    if transition.page is not None:
        return ViewState(search=search, department=department, page=transition.page)
    return view
