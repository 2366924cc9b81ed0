"""
Request dependencies

Database, file storage and LLM handles are built here and injected into
the routers; tests replace them through app.dependency_overrides.
"""

from __future__ import annotations

from typing import Iterator

from services.llm.client import LLMClient, get_llm_client
from services.storage.db_store import PolicyStore
from services.storage.file_store import FileStore


def get_store() -> Iterator[PolicyStore]:
    """One DB connection per request"""
    store = PolicyStore()
    try:
        yield store
    finally:
        store.close()


def get_file_store() -> FileStore:
    """Upload storage rooted at UPLOAD_DIR"""
    return FileStore()


def get_llm() -> LLMClient:
    """Shared LLM client"""
    return get_llm_client()
