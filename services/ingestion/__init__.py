"""
Ingestion Module

Uploaded policy schedules / wordings -> text -> database rows
"""

from .pdf_loader import DocumentContent, PageContent, load_document, load_pdf_bytes, load_text_bytes
from .upload import (
    PolicyUploadResult,
    WebhookError,
    forward_wording_to_webhook,
    ingest_policy_upload,
    ingest_wording_upload,
    validate_upload,
)
from .utils import setup_logging, sha256_bytes, truncate_text

__all__ = [
    # Loader
    "DocumentContent",
    "PageContent",
    "load_document",
    "load_pdf_bytes",
    "load_text_bytes",
    # Upload
    "PolicyUploadResult",
    "WebhookError",
    "forward_wording_to_webhook",
    "ingest_policy_upload",
    "ingest_wording_upload",
    "validate_upload",
    # Utils
    "setup_logging",
    "sha256_bytes",
    "truncate_text",
]
