from fastapi import APIRouter

from ems.api.v1.endpoints import assistant, editor, employees, health, reports, session

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(session.router)
api_router.include_router(employees.router)
api_router.include_router(editor.router)
api_router.include_router(assistant.router)
api_router.include_router(reports.router)
