"""
Shared test fixtures

InMemoryRepository: dict-backed PolicyRepository
FakeLLMClient: canned LLM replies (services.llm.client)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_file_store, get_llm, get_store
from api.main import app
from services.llm.client import FakeLLMClient
from services.storage.file_store import FileStore
from services.storage.records import (
    AnalysisRecord,
    CustomerRecord,
    PolicyRecord,
    RecordNotFoundError,
    WordingRecord,
)


class InMemoryRepository:
    """PolicyRepository backed by dicts"""

    def __init__(self):
        self.customers: dict[str, CustomerRecord] = {}
        self.policies: dict[str, PolicyRecord] = {}
        self.wordings: dict[str, WordingRecord] = {}
        self.analyses: dict[str, AnalysisRecord] = {}
        self.attach_calls: list[tuple[str, str]] = []
        self._clock = datetime(2025, 1, 1)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    # customers
    def list_customers(self) -> list[CustomerRecord]:
        return sorted(self.customers.values(), key=lambda c: c.created_at, reverse=True)

    def get_customer(self, customer_id: str) -> CustomerRecord | None:
        return self.customers.get(customer_id)

    def create_customer(self, name: str) -> CustomerRecord:
        customer = CustomerRecord(id=str(uuid.uuid4()), name=name, created_at=self._now())
        self.customers[customer.id] = customer
        return customer

    # policies
    def list_policies(self, customer_id: str) -> list[PolicyRecord]:
        return [p for p in self.policies.values() if p.customer_id == customer_id]

    def get_policy(self, policy_id: str) -> PolicyRecord | None:
        return self.policies.get(policy_id)

    def insert_policy(
        self,
        customer_id: str,
        file_name: str,
        file_url: str,
        ocr_text: str | None,
        insurer: str | None,
        wording_version: str | None,
        wording_id: str | None = None,
    ) -> PolicyRecord:
        policy = PolicyRecord(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            file_name=file_name,
            file_url=file_url,
            ocr_text=ocr_text,
            insurer=insurer,
            wording_version=wording_version,
            wording_id=wording_id,
            status="uploaded",
            created_at=self._now(),
        )
        self.policies[policy.id] = policy
        return policy

    def update_policy_fields(self, policy_id: str, insurer: str, wording_version: str) -> PolicyRecord:
        policy = self.policies.get(policy_id)
        if policy is None:
            raise RecordNotFoundError(policy_id)
        policy.insurer = insurer
        policy.wording_version = wording_version
        if policy.status == "uploaded":
            policy.status = "extracted"
        return policy

    def attach_wording(self, policy_id: str, wording_id: str) -> PolicyRecord | None:
        self.attach_calls.append((policy_id, wording_id))
        policy = self.policies.get(policy_id)
        if policy is None or policy.wording_id is not None:
            return None
        policy.wording_id = wording_id
        if policy.status != "compared":
            policy.status = "matched"
        return policy

    def update_policy_status(self, policy_id: str, status: str) -> PolicyRecord:
        policy = self.policies.get(policy_id)
        if policy is None:
            raise RecordNotFoundError(policy_id)
        policy.status = status
        return policy

    # wordings
    def list_wordings(self) -> list[WordingRecord]:
        return sorted(self.wordings.values(), key=lambda w: (w.insurer, w.id))

    def get_wording(self, wording_id: str) -> WordingRecord | None:
        return self.wordings.get(wording_id)

    def insert_wording(
        self,
        insurer: str,
        wording_version: str,
        file_name: str | None,
        wording_text: str | None,
    ) -> WordingRecord:
        wording = WordingRecord(
            id=str(uuid.uuid4()),
            insurer=insurer,
            wording_version=wording_version,
            file_name=file_name,
            wording_text=wording_text,
            created_at=self._now(),
        )
        self.wordings[wording.id] = wording
        return wording

    # analysis
    def insert_analysis(
        self,
        policy_id: str,
        wording_id: str | None,
        result_json: dict[str, Any],
        summary: str | None,
    ) -> AnalysisRecord:
        record = AnalysisRecord(
            id=str(uuid.uuid4()),
            policy_id=policy_id,
            wording_id=wording_id,
            result_json=result_json,
            summary=summary,
            created_at=self._now(),
        )
        self.analyses[record.id] = record
        return record


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def file_store(tmp_path) -> FileStore:
    return FileStore(root=tmp_path / "uploads")


@pytest.fixture
def api_client(repo, fake_llm, file_store):
    """TestClient with repository / LLM / file storage overridden"""
    app.dependency_overrides[get_store] = lambda: repo
    app.dependency_overrides[get_llm] = lambda: fake_llm
    app.dependency_overrides[get_file_store] = lambda: file_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def no_webhook(monkeypatch):
    """Wording uploads stored locally"""
    monkeypatch.delenv("WORDING_WEBHOOK_URL", raising=False)
