from __future__ import annotations

import logging
from typing import Any

from openai import AsyncAzureOpenAI

from ems.core.config import Settings
from ems.models.assistant import ChatMessage, SourceCitation

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the Nexus EMS Intelligence Engine. You help HR professionals with workforce analytics, "
    "policy explanation, and general management tasks. Be professional, concise, and accurate. "
    "Use web search for real-time information regarding labor laws or workforce trends."
)

FALLBACK_REPLY = "I'm sorry, I couldn't generate a response."
DEFAULT_SOURCE_TITLE = "External Source"

LLM_TEMPERATURE = 0.7
LLM_MAX_TOKENS = 1500


class ChatServiceError(Exception):
    pass


def extract_citations(annotations: list[Any] | None) -> list[SourceCitation]:
    """Turn URL-citation annotations into (title, uri) pairs, first occurrence wins."""
    sources: list[SourceCitation] = []
    seen: set[str] = set()
    for annotation in annotations or []:
        if getattr(annotation, "type", None) != "url_citation":
            continue
        citation = getattr(annotation, "url_citation", None)
        uri = getattr(citation, "url", None)
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(SourceCitation(title=getattr(citation, "title", None) or DEFAULT_SOURCE_TITLE, uri=uri))
    return sources


class ChatService:
    def __init__(self) -> None:
        self.client: AsyncAzureOpenAI | None = None
        self.initialized = False
        self.model = ""
        self.web_search = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.OPENAI_ENDPOINT or not settings.OPENAI_API_KEY:
            logger.warning("OpenAI credentials missing, ChatService not initialized")
            return

        self.client = AsyncAzureOpenAI(
            azure_endpoint=settings.OPENAI_ENDPOINT,
            api_key=settings.OPENAI_API_KEY,
            api_version=settings.OPENAI_API_VERSION,
        )
        self.model = settings.OPENAI_CHAT_MODEL
        self.web_search = settings.OPENAI_WEB_SEARCH
        self.initialized = True

    async def close(self) -> None:
        self.client = None
        self.initialized = False

    def _build_request(self, query: str) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "max_tokens": LLM_MAX_TOKENS,
        }
        if self.web_search:
            # search-enabled models reject sampling parameters
            request["web_search_options"] = {}
        else:
            request["temperature"] = LLM_TEMPERATURE
        return request

    async def chat(self, query: str) -> ChatMessage:
        """Single-turn question; the reply carries citations when web search grounded it."""
        if not self.initialized or not self.client:
            raise ChatServiceError("ChatService not initialized")

        try:
            response = await self.client.chat.completions.create(**self._build_request(query))
        except Exception as e:
            raise ChatServiceError(f"LLM call failed: {e}") from e

        if not response.choices:
            return ChatMessage(role="assistant", text=FALLBACK_REPLY)

        message = response.choices[0].message
        return ChatMessage(
            role="assistant",
            text=message.content or FALLBACK_REPLY,
            sources=extract_citations(getattr(message, "annotations", None)),
        )


chat_service = ChatService()
