"""Reads employee fields off a photographed or scanned enrollment form."""

from __future__ import annotations

import json
import logging

from openai import AsyncAzureOpenAI
from pydantic import ValidationError

from ems.core.config import Settings
from ems.models.assistant import ExtractedEmployeeFields
from ems.models.employee import DEPARTMENTS
from ems.services.form_image import FormImage

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract employee details from this enrollment form. "
    "Search for Full Name, Email, Role, Department "
    f"({', '.join(DEPARTMENTS)}), Annual Salary and Join Date. "
    "Return ONLY valid JSON matching the schema. "
    "Use null for joinDate when the form has no join date; otherwise use ISO format YYYY-MM-DD."
)

EXTRACTION_SCHEMA: dict = {
    "name": "employee_enrollment",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "fullName": {"type": "string"},
            "email": {"type": "string"},
            "role": {"type": "string"},
            "department": {"type": "string", "enum": list(DEPARTMENTS)},
            "salary": {"type": "number"},
            "joinDate": {"type": ["string", "null"], "description": "ISO format YYYY-MM-DD"},
        },
        "required": ["fullName", "email", "role", "department", "salary", "joinDate"],
        "additionalProperties": False,
    },
}

LLM_TEMPERATURE = 0.0
LLM_MAX_TOKENS = 500


class FormExtractionError(Exception):
    pass


class FormExtractor:
    def __init__(self) -> None:
        self.client: AsyncAzureOpenAI | None = None
        self.initialized = False
        self.model = ""

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.OPENAI_ENDPOINT or not settings.OPENAI_API_KEY:
            logger.warning("OpenAI credentials missing, FormExtractor not initialized")
            return

        self.client = AsyncAzureOpenAI(
            azure_endpoint=settings.OPENAI_ENDPOINT,
            api_key=settings.OPENAI_API_KEY,
            api_version=settings.OPENAI_API_VERSION,
        )
        self.model = settings.OPENAI_EXTRACTION_MODEL
        self.initialized = True

    async def close(self) -> None:
        self.client = None
        self.initialized = False

    def _build_messages(self, image: FormImage) -> list[dict]:
        return [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image.to_data_url()}},
                    {"type": "text", "text": EXTRACTION_PROMPT},
                ],
            }
        ]

    async def extract(self, image: FormImage) -> ExtractedEmployeeFields:
        """Return the extracted fields, or raise if the reply is not schema-conformant JSON."""
        if not self.initialized or not self.client:
            raise FormExtractionError("FormExtractor not initialized")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(image),  # type: ignore[arg-type]
                temperature=LLM_TEMPERATURE,
                max_tokens=LLM_MAX_TOKENS,
                response_format={"type": "json_schema", "json_schema": EXTRACTION_SCHEMA},
            )
        except Exception as e:
            raise FormExtractionError(f"LLM call failed: {e}") from e

        if not response.choices:
            raise FormExtractionError("LLM returned no choices")

        content = response.choices[0].message.content
        if not content:
            raise FormExtractionError("Empty response from LLM")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse extraction response as JSON: %.200s", content)
            raise FormExtractionError(f"Failed to parse LLM JSON response: {e}") from e

        if not isinstance(data, dict):
            raise FormExtractionError("LLM response is not a JSON object")

        try:
            return ExtractedEmployeeFields.model_validate(data)
        except ValidationError as e:
            raise FormExtractionError(f"LLM response does not match the form schema: {e.error_count()} error(s)") from e


form_extractor = FormExtractor()
