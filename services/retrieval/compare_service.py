"""
Schedule vs Wording comparison

Policy schedule (stored extraction) and the matched wording text go to the
LLM in one prompt; the strict JSON reply is validated into
ComparisonAnalysis and stored in the analysis table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from api.config_loader import get_compare_max_chars
from services.extraction.prompts import COMPARE_SYSTEM_PROMPT, COMPARE_USER_TEMPLATE
from services.llm.client import LLMCallError, LLMClient, LLMResponse, get_llm_compare_model
from services.storage.records import (
    AnalysisRecord,
    PolicyRecord,
    PolicyRepository,
    RecordNotFoundError,
    advance_status,
)

logger = logging.getLogger(__name__)


class CompareInputError(ValueError):
    """Policy not ready for comparison (no text / no wording)"""


# =============================================================================
# Analysis schema
# =============================================================================

def _limit_as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class SectionComparison(BaseModel):
    """Coverage section row"""
    name: str
    schedule_limit: str | None = None
    wording_limit: str | None = None
    match: bool = False
    notes: str | None = None

    @field_validator("schedule_limit", "wording_limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value: Any) -> str | None:
        return _limit_as_str(value)


class EndorsementDifference(BaseModel):
    """Endorsement present on one side only"""
    endorsement: str
    in_schedule: bool = False
    in_wording: bool = False


class ComparisonAnalysis(BaseModel):
    """LLM comparison result"""
    sections: list[SectionComparison] = Field(default_factory=list)
    missing_sections: list[str] = Field(default_factory=list)
    endorsement_differences: list[EndorsementDifference] = Field(default_factory=list)
    overall_risk_summary: str | None = None

    @property
    def mismatch_count(self) -> int:
        return sum(1 for s in self.sections if not s.match)


@dataclass
class CompareOutcome:
    """Stored analysis + updated policy"""
    analysis: ComparisonAnalysis
    record: AnalysisRecord
    policy: PolicyRecord


class InvalidAnalysisError(RuntimeError):
    """LLM reply was JSON but not a comparison analysis"""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


# =============================================================================
# Compare
# =============================================================================

def build_compare_prompt(schedule_text: str, wording_text: str, max_chars: int) -> str:
    """Both sides truncated to max_chars"""
    return COMPARE_USER_TEMPLATE.format(
        schedule_text=schedule_text[:max_chars],
        wording_text=wording_text[:max_chars],
    )


def parse_analysis(response: LLMResponse) -> ComparisonAnalysis:
    """
    Raises:
        LLMCallError: LLM failed / invalid JSON
        InvalidAnalysisError: JSON did not validate
    """
    if not response.success or response.data is None:
        raise LLMCallError(response, "compare")
    try:
        return ComparisonAnalysis.model_validate(response.data)
    except ValidationError as e:
        raise InvalidAnalysisError(f"AI returned an invalid analysis: {e}", raw=response.text)


async def compare_policy(
    repository: PolicyRepository,
    llm: LLMClient,
    policy_id: str,
) -> CompareOutcome:
    """
    Compare a policy schedule with its matched wording

    Raises:
        RecordNotFoundError: unknown policy
        CompareInputError: no extracted text / no wording / empty wording
        LLMCallError, InvalidAnalysisError: LLM side failures
    """
    policy = repository.get_policy(policy_id)
    if policy is None:
        raise RecordNotFoundError(f"Policy not found: {policy_id}")
    if not policy.ocr_text:
        raise CompareInputError("Policy has no extracted text")
    if not policy.wording_id:
        raise CompareInputError("Policy has no matched wording")

    wording = repository.get_wording(policy.wording_id)
    if wording is None or not wording.wording_text:
        raise CompareInputError("Wording text missing")

    max_chars = get_compare_max_chars()
    logger.info(
        f"COMPARE policy={policy_id} schedule_len={len(policy.ocr_text)} "
        f"wording_len={len(wording.wording_text)} max_chars={max_chars}"
    )

    response = await llm.complete(
        COMPARE_SYSTEM_PROMPT,
        build_compare_prompt(policy.ocr_text, wording.wording_text, max_chars),
        endpoint="compare",
        json_mode=True,
        model=get_llm_compare_model(),
    )
    analysis = parse_analysis(response)

    record = repository.insert_analysis(
        policy_id=policy.id,
        wording_id=wording.id,
        result_json=analysis.model_dump(),
        summary=analysis.overall_risk_summary,
    )
    updated = repository.update_policy_status(
        policy.id, advance_status(policy.status, "compared")
    )

    logger.info(
        f"COMPARE done policy={policy_id} sections={len(analysis.sections)} "
        f"mismatches={analysis.mismatch_count}"
    )
    return CompareOutcome(analysis=analysis, record=record, policy=updated)
