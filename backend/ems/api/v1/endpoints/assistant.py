from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ems.core.dependencies import get_current_user
from ems.models.assistant import ChatMessage, ChatReply, ChatRequest
from ems.models.auth import UserInfo
from ems.models.notification import Notification
from ems.services.chat_service import ChatServiceError, chat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["assistant"])

UNAVAILABLE_REPLY = (
    "I'm currently unable to process requests. This is usually due to an invalid "
    "or missing API key in the system environment."
)
UNAVAILABLE_NOTICE = "AI Assistant unavailable. Check API credentials."


@router.post("/chat", response_model=ChatReply)
async def chat(
    request: ChatRequest,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    logger.info("Assistant chat from user=%s query=%s", user.name, request.query[:50])
    try:
        message = await chat_service.chat(request.query)
    except ChatServiceError as e:
        logger.error("Assistant chat failed for user=%s: %s", user.name, e)
        return ChatReply(
            message=ChatMessage(role="assistant", text=UNAVAILABLE_REPLY),
            notification=Notification.error(UNAVAILABLE_NOTICE),
        )
    return ChatReply(message=message)
