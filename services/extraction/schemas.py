"""
Extraction result schemas

LLM extraction output is one of two shapes:
- StructuredExtraction: {tables, text, metadata} parsed from strict JSON
- PlainTextExtraction: text only (fallback when JSON extraction fails)

insurer / wording_version are read from the structured metadata here,
so callers never dig through untyped dicts.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean(value: Any) -> str | None:
    """str/number -> stripped str, blanks -> None"""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class ExtractionMetadata(BaseModel):
    """Schedule metadata (extra keys kept)"""
    model_config = ConfigDict(extra="allow")

    insurer: str | None = Field(None, description="Insurer entity name")
    issued_by: str | None = Field(None, description="Issuer (insurer fallback)")
    wording_version: str | None = Field(None, description="Wording version / reference")
    wording_reference: str | None = Field(None, description="Wording reference (version fallback)")

    @field_validator(
        "insurer", "issued_by", "wording_version", "wording_reference", mode="before"
    )
    @classmethod
    def _coerce(cls, value: Any) -> str | None:
        return _clean(value)


class StructuredExtraction(BaseModel):
    """Strict JSON extraction {tables, text, metadata}"""
    kind: Literal["structured"] = "structured"
    tables: Any = None
    text: str | None = None
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("text", mode="before")
    @classmethod
    def _text_as_str(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    @property
    def insurer(self) -> str | None:
        return self.metadata.insurer or self.metadata.issued_by

    @property
    def wording_version(self) -> str | None:
        return self.metadata.wording_version or self.metadata.wording_reference

    def stored_text(self) -> str:
        """Text persisted as policies.ocr_text (pretty JSON)"""
        return json.dumps(
            self.model_dump(exclude={"kind"}), indent=2, ensure_ascii=False
        )


class PlainTextExtraction(BaseModel):
    """Text-only extraction"""
    kind: Literal["plain_text"] = "plain_text"
    text: str = ""

    @property
    def insurer(self) -> str | None:
        return None

    @property
    def wording_version(self) -> str | None:
        return None

    def stored_text(self) -> str:
        return self.text


ExtractionResult = Annotated[
    Union[StructuredExtraction, PlainTextExtraction],
    Field(discriminator="kind"),
]


class PolicyFields(BaseModel):
    """
    insurer + wording_version extracted from a schedule

    Both required and non-blank.
    """
    insurer: str = Field(..., min_length=1)
    wording_version: str = Field(..., min_length=1)

    @field_validator("insurer", "wording_version", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        cleaned = _clean(value)
        return cleaned if cleaned is not None else ""
