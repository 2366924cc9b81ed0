"""
Policy extraction

1. extract_document: uploaded document text -> ExtractionResult
   structured JSON first, plain text fallback
2. extract_policy_fields: stored ocr_text -> insurer + wording_version
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from api.config_loader import get_extraction_max_chars
from services.llm.client import LLMCallError, LLMClient

from .prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    EXTRACTION_USER_TEMPLATE,
    FIELDS_SYSTEM_PROMPT,
    FIELDS_USER_TEMPLATE,
    PLAIN_TEXT_SYSTEM_PROMPT,
)
from .schemas import ExtractionResult, PlainTextExtraction, PolicyFields, StructuredExtraction

logger = logging.getLogger(__name__)


class FieldExtractionError(ValueError):
    """LLM reply lacked insurer or wording_version"""

    def __init__(self, message: str, parsed: dict | None = None):
        super().__init__(message)
        self.parsed = parsed or {}


async def extract_document(document_text: str, llm: LLMClient) -> ExtractionResult:
    """
    Document text -> StructuredExtraction | PlainTextExtraction

    Order:
    1. strict JSON {tables, text, metadata}
    2. plain text request (JSON failed or did not validate)
    3. local document text (both LLM calls failed)
    """
    text = document_text[: get_extraction_max_chars()]
    if not text.strip():
        logger.warning("Document has no text layer, skipping LLM extraction")
        return PlainTextExtraction(text="")

    user_prompt = EXTRACTION_USER_TEMPLATE.format(document_text=text)

    response = await llm.complete(
        EXTRACTION_SYSTEM_PROMPT, user_prompt, endpoint="extract_document", json_mode=True
    )
    if response.success and response.data is not None:
        try:
            return StructuredExtraction.model_validate(response.data)
        except ValidationError as e:
            logger.warning(f"Structured extraction did not validate, falling back: {e}")
    else:
        logger.warning(
            f"Primary JSON extraction failed ({response.error_code}), falling back to plain text"
        )

    fallback = await llm.complete(
        PLAIN_TEXT_SYSTEM_PROMPT, user_prompt, endpoint="extract_plain_text", json_mode=False
    )
    if fallback.success and fallback.text:
        return PlainTextExtraction(text=fallback.text.strip())

    logger.warning(f"Plain text extraction failed ({fallback.error_code}), storing local text")
    return PlainTextExtraction(text=text)


async def extract_policy_fields(ocr_text: str, llm: LLMClient) -> PolicyFields:
    """
    insurer + wording_version from stored schedule text

    Raises:
        LLMCallError: LLM failed / returned invalid JSON
        FieldExtractionError: a field is missing or blank
    """
    response = await llm.complete(
        FIELDS_SYSTEM_PROMPT,
        FIELDS_USER_TEMPLATE.format(ocr_text=ocr_text),
        endpoint="extract_fields",
        json_mode=True,
    )
    if not response.success or response.data is None:
        raise LLMCallError(response, "extract_fields")

    try:
        return PolicyFields.model_validate(response.data)
    except ValidationError:
        raise FieldExtractionError(
            "AI did not return insurer and wording_version", parsed=response.data
        )
