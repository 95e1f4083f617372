from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ems.api.v1.router import api_router
from ems.core.config import settings
from ems.services.chat_service import chat_service
from ems.services.employee_mirror import employee_mirror
from ems.services.employee_store import employee_store
from ems.services.form_extractor import form_extractor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await employee_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize EmployeeStore, continuing without DB")
    try:
        await employee_mirror.start(settings)
    except Exception:
        logger.exception("Failed to start EmployeeMirror, continuing with an empty list")
    try:
        await chat_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize ChatService, continuing without chat")
    try:
        await form_extractor.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize FormExtractor, continuing without form scanning")
    yield
    await employee_mirror.stop()
    await employee_store.close()
    await chat_service.close()
    await form_extractor.close()


app = FastAPI(
    title="Nexus EMS API",
    description="Employee management dashboard backend with AI assistant",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Nexus EMS API"}
