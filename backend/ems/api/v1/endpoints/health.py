from __future__ import annotations

from fastapi import APIRouter, Depends

from ems.core.config import settings
from ems.core.dependencies import get_current_user
from ems.models.auth import UserInfo
from ems.services.chat_service import chat_service
from ems.services.employee_mirror import employee_mirror
from ems.services.employee_store import employee_store
from ems.services.form_extractor import form_extractor

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    if employee_store.initialized:
        ok = await employee_store.check_connection()
        services["cosmos_db"] = "ok" if ok else "error"
    else:
        services["cosmos_db"] = "not_configured"

    if chat_service.initialized and form_extractor.initialized:
        services["azure_openai"] = "ok"
    else:
        services["azure_openai"] = "not_configured"

    if not employee_mirror.running:
        services["mirror"] = "not_configured"
    elif employee_mirror.last_error:
        services["mirror"] = "error"
    else:
        services["mirror"] = "ok"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(user: UserInfo = Depends(get_current_user)):
    return {"status": "ok", "user": user.model_dump()}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
