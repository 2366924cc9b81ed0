"""
Record types for customers / policies / wordings / analyses

Rows come back from psycopg as dicts (dict_row); from_row() converts
UUID/datetime columns into plain values for the API layer.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

PolicyStatus = Literal["uploaded", "extracted", "matched", "compared"]

# lifecycle order (status never moves backwards)
STATUS_ORDER: tuple[str, ...] = ("uploaded", "extracted", "matched", "compared")


class RecordNotFoundError(LookupError):
    """Requested customer/policy/wording does not exist"""


class WordingAlreadyAssignedError(RuntimeError):
    """Policy already references a wording (match is immutable)"""


def advance_status(current: str, target: str) -> str:
    """
    Return the later of two lifecycle states

    advance_status("matched", "extracted") -> "matched"
    """
    if current not in STATUS_ORDER:
        return target
    if STATUS_ORDER.index(target) > STATUS_ORDER.index(current):
        return target
    return current


def _str_or_none(value: Any) -> str | None:
    return str(value) if value is not None else None


@dataclass
class CustomerRecord:
    """customers row"""
    id: str
    name: str
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CustomerRecord":
        return cls(
            id=str(row["id"]),
            name=row["name"],
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PolicyRecord:
    """policies row"""
    id: str
    customer_id: str | None
    file_name: str | None = None
    file_url: str | None = None
    ocr_text: str | None = None
    insurer: str | None = None
    wording_version: str | None = None
    wording_id: str | None = None
    status: str = "uploaded"
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PolicyRecord":
        return cls(
            id=str(row["id"]),
            customer_id=_str_or_none(row.get("customer_id")),
            file_name=row.get("file_name"),
            file_url=row.get("file_url"),
            ocr_text=row.get("ocr_text"),
            insurer=row.get("insurer"),
            wording_version=row.get("wording_version"),
            wording_id=_str_or_none(row.get("wording_id")),
            status=row.get("status") or "uploaded",
            created_at=row.get("created_at"),
        )

    @property
    def has_match_fields(self) -> bool:
        """insurer and wording_version both populated"""
        return bool((self.insurer or "").strip()) and bool((self.wording_version or "").strip())

    def to_dict(self, include_text: bool = False) -> dict[str, Any]:
        data = asdict(self)
        if not include_text:
            data.pop("ocr_text")
        return data


@dataclass
class WordingRecord:
    """policy_wording row"""
    id: str
    insurer: str
    wording_version: str | None = None
    file_name: str | None = None
    wording_text: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "WordingRecord":
        return cls(
            id=str(row["id"]),
            insurer=row.get("insurer") or "",
            wording_version=row.get("wording_version"),
            file_name=row.get("file_name"),
            wording_text=row.get("wording_text"),
            created_at=row.get("created_at"),
        )

    def to_dict(self, include_text: bool = False) -> dict[str, Any]:
        data = asdict(self)
        if not include_text:
            data.pop("wording_text")
        return data


@dataclass
class AnalysisRecord:
    """analysis row"""
    id: str
    policy_id: str
    wording_id: str | None
    result_json: dict[str, Any] = field(default_factory=dict)
    summary: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AnalysisRecord":
        result = row.get("result_json") or {}
        if isinstance(result, str):
            result = json.loads(result)
        return cls(
            id=str(row["id"]),
            policy_id=str(row["policy_id"]),
            wording_id=_str_or_none(row.get("wording_id")),
            result_json=result,
            summary=row.get("summary"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class PolicyRepository(Protocol):
    """Storage operations used by the services (PolicyStore or a test double)"""

    def list_customers(self) -> list[CustomerRecord]: ...

    def get_customer(self, customer_id: str) -> CustomerRecord | None: ...

    def create_customer(self, name: str) -> CustomerRecord: ...

    def list_policies(self, customer_id: str) -> list[PolicyRecord]: ...

    def get_policy(self, policy_id: str) -> PolicyRecord | None: ...

    def insert_policy(
        self,
        customer_id: str,
        file_name: str,
        file_url: str,
        ocr_text: str | None,
        insurer: str | None,
        wording_version: str | None,
        wording_id: str | None = None,
    ) -> PolicyRecord: ...

    def update_policy_fields(
        self, policy_id: str, insurer: str, wording_version: str
    ) -> PolicyRecord: ...

    def attach_wording(self, policy_id: str, wording_id: str) -> PolicyRecord | None: ...

    def update_policy_status(self, policy_id: str, status: str) -> PolicyRecord: ...

    def list_wordings(self) -> list[WordingRecord]: ...

    def get_wording(self, wording_id: str) -> WordingRecord | None: ...

    def insert_wording(
        self,
        insurer: str,
        wording_version: str,
        file_name: str | None,
        wording_text: str | None,
    ) -> WordingRecord: ...

    def insert_analysis(
        self,
        policy_id: str,
        wording_id: str | None,
        result_json: dict[str, Any],
        summary: str | None,
    ) -> AnalysisRecord: ...
