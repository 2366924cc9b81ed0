"""
Upload ingestion

Policy schedule upload: store file -> read text -> LLM extraction -> policies row
Wording upload: forward to intake webhook, or read text -> policy_wording row
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from api.config_loader import (
    get_allowed_upload_extensions,
    get_max_upload_bytes,
    get_wording_webhook_timeout,
    get_wording_webhook_url,
)
from services.extraction.policy_extractor import extract_document
from services.extraction.schemas import ExtractionResult
from services.llm.client import LLMClient
from services.storage.file_store import FileStore, file_extension
from services.storage.records import (
    PolicyRecord,
    PolicyRepository,
    RecordNotFoundError,
    WordingRecord,
)

from .pdf_loader import load_document
from .utils import sha256_bytes

logger = logging.getLogger(__name__)


class WebhookError(RuntimeError):
    """Wording intake webhook answered non-2xx or was unreachable"""


@dataclass
class PolicyUploadResult:
    """Inserted policy + what the LLM extracted"""
    policy: PolicyRecord
    extraction: ExtractionResult


def validate_upload(file_name: str | None, data: bytes) -> None:
    """
    Raises:
        ValueError: empty, too large or extension not allowed
    """
    if not data:
        raise ValueError("Missing file")
    if len(data) > get_max_upload_bytes():
        raise ValueError("File too large")

    ext = file_extension(file_name)
    if ext not in get_allowed_upload_extensions():
        raise ValueError(f"Unsupported file type: .{ext}")


async def ingest_policy_upload(
    repository: PolicyRepository,
    file_store: FileStore,
    llm: LLMClient,
    customer_id: str,
    file_name: str,
    data: bytes,
    wording_id: str | None = None,
) -> PolicyUploadResult:
    """
    Store a policy schedule for a customer

    Args:
        wording_id: wording picked by the uploader (optional)

    Raises:
        ValueError: invalid upload
        RecordNotFoundError: unknown customer / wording
        RuntimeError: document could not be read
    """
    validate_upload(file_name, data)

    if repository.get_customer(customer_id) is None:
        raise RecordNotFoundError(f"Customer not found: {customer_id}")
    if wording_id and repository.get_wording(wording_id) is None:
        raise RecordNotFoundError(f"Wording not found: {wording_id}")

    content = load_document(data, file_name)
    file_url = file_store.save("policies", file_name, data)
    logger.info(
        f"Stored policy upload {file_name} -> {file_url} "
        f"pages={content.total_pages} sha256={sha256_bytes(data)[:12]}"
    )

    extraction = await extract_document(content.full_text, llm)

    policy = repository.insert_policy(
        customer_id=customer_id,
        file_name=file_name,
        file_url=file_url,
        ocr_text=extraction.stored_text(),
        insurer=extraction.insurer,
        wording_version=extraction.wording_version,
        wording_id=wording_id or None,
    )
    logger.info(
        f"Inserted policy {policy.id} kind={extraction.kind} "
        f"insurer={policy.insurer!r} version={policy.wording_version!r}"
    )
    return PolicyUploadResult(policy=policy, extraction=extraction)


def forward_wording_to_webhook(
    url: str,
    insurer: str,
    wording_version: str,
    file_name: str,
    data: bytes,
    content_type: str | None = None,
) -> None:
    """
    Forward a wording upload (multipart: file, insurer, wordingVersion)

    Raises:
        WebhookError: non-2xx / connection failure
    """
    try:
        resp = requests.post(
            url,
            files={"file": (file_name, data, content_type or "application/pdf")},
            data={"insurer": insurer, "wordingVersion": wording_version},
            timeout=get_wording_webhook_timeout(),
        )
    except requests.RequestException as e:
        raise WebhookError(f"Wording webhook unreachable: {e}")

    if not resp.ok:
        raise WebhookError(f"Wording webhook failed: {resp.status_code} {resp.text[:500]}")


def ingest_wording_upload(
    repository: PolicyRepository,
    insurer: str | None,
    wording_version: str | None,
    file_name: str,
    data: bytes,
    content_type: str | None = None,
) -> WordingRecord | None:
    """
    Register a reference wording

    Returns:
        inserted WordingRecord, or None when forwarded to the webhook

    Raises:
        ValueError: missing insurer/version or invalid file
        WebhookError: webhook failure
        RuntimeError: document could not be read
    """
    insurer = (insurer or "").strip()
    wording_version = (wording_version or "").strip()
    if not insurer or not wording_version:
        raise ValueError("Missing insurer or version")
    validate_upload(file_name, data)

    webhook_url = get_wording_webhook_url()
    if webhook_url:
        forward_wording_to_webhook(
            webhook_url, insurer, wording_version, file_name, data, content_type
        )
        logger.info(f"Forwarded wording {insurer} {wording_version} to webhook")
        return None

    content = load_document(data, file_name)
    wording = repository.insert_wording(
        insurer=insurer,
        wording_version=wording_version,
        file_name=file_name,
        wording_text=content.full_text,
    )
    logger.info(f"Inserted wording {wording.id} {insurer} {wording_version}")
    return wording
