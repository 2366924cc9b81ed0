"""
Upload ingestion tests

Document loading (PyMuPDF / text), policy upload, wording upload + webhook
"""

import asyncio
from unittest.mock import MagicMock, patch

import fitz
import pytest
import requests

from services.ingestion.pdf_loader import load_document, load_pdf_bytes
from services.ingestion.upload import (
    WebhookError,
    ingest_policy_upload,
    ingest_wording_upload,
    validate_upload,
)
from services.llm.client import FakeLLMClient
from services.storage.records import RecordNotFoundError


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class TestDocumentLoader:
    """load_document()"""

    def test_pdf_pages(self):
        content = load_pdf_bytes(_pdf_bytes("Insurer: DUAL", "Wording PI-2023"), "s.pdf")

        assert content.total_pages == 2
        assert "Insurer: DUAL" in content.pages[0].text
        assert "PI-2023" in content.full_text

    def test_text_file(self):
        content = load_document(b"Line one\n\n\n\nLine   two", "notes.txt")

        assert content.total_pages == 1
        assert content.full_text == "Line one\n\nLine two"

    def test_broken_pdf(self):
        with pytest.raises(RuntimeError):
            load_pdf_bytes(b"not a pdf", "broken.pdf")

    def test_empty(self):
        with pytest.raises(ValueError):
            load_pdf_bytes(b"", "empty.pdf")


class TestValidateUpload:

    def test_unsupported_extension(self):
        with pytest.raises(ValueError, match="Unsupported"):
            validate_upload("evil.exe", b"data")

    def test_missing(self):
        with pytest.raises(ValueError, match="Missing"):
            validate_upload("a.pdf", b"")


class TestIngestPolicyUpload:
    """ingest_policy_upload()"""

    def test_structured_upload(self, repo, file_store):
        """file stored, extraction persisted on the policy row"""
        customer = repo.create_customer("Acme")
        llm = FakeLLMClient({"extract_document": {
            "tables": [], "text": "Schedule",
            "metadata": {"insurer": "DUAL Australia", "wording_version": "PI-2023"},
        }})

        result = asyncio.run(ingest_policy_upload(
            repo, file_store, llm, customer.id, "Schedule.PDF", _pdf_bytes("Insurer: DUAL"),
        ))

        policy = result.policy
        assert policy.customer_id == customer.id
        assert policy.insurer == "DUAL Australia"
        assert policy.wording_version == "PI-2023"
        assert policy.status == "uploaded"
        assert policy.file_url.startswith("policies/") and policy.file_url.endswith(".pdf")
        assert file_store.path_for(policy.file_url).exists()
        assert '"insurer": "DUAL Australia"' in policy.ocr_text

    def test_plain_text_upload(self, repo, file_store):
        """extraction fallback -> fields left empty"""
        customer = repo.create_customer("Acme")

        result = asyncio.run(ingest_policy_upload(
            repo, file_store, FakeLLMClient(), customer.id, "schedule.txt", b"Insurer: DUAL",
        ))

        assert result.extraction.kind == "plain_text"
        assert result.policy.insurer is None
        assert result.policy.ocr_text == "Insurer: DUAL"

    def test_unknown_customer(self, repo, file_store):
        with pytest.raises(RecordNotFoundError):
            asyncio.run(ingest_policy_upload(
                repo, file_store, FakeLLMClient(), "missing", "s.txt", b"text",
            ))

    def test_preselected_wording(self, repo, file_store):
        customer = repo.create_customer("Acme")
        wording = repo.insert_wording("DUAL", "PI", None, "text")

        result = asyncio.run(ingest_policy_upload(
            repo, file_store, FakeLLMClient(), customer.id, "s.txt", b"text",
            wording_id=wording.id,
        ))

        assert result.policy.wording_id == wording.id


class TestIngestWordingUpload:
    """ingest_wording_upload()"""

    def test_stored_locally(self, repo, no_webhook):
        wording = ingest_wording_upload(repo, " DUAL ", "PI-2023", "w.txt", b"Section 1 Cover")

        assert wording.insurer == "DUAL"
        assert wording.wording_text == "Section 1 Cover"
        assert repo.get_wording(wording.id) is wording

    def test_missing_version(self, repo, no_webhook):
        with pytest.raises(ValueError, match="Missing insurer or version"):
            ingest_wording_upload(repo, "DUAL", "  ", "w.txt", b"text")

    def test_forwarded_to_webhook(self, repo, monkeypatch):
        """webhook configured -> multipart forward, nothing stored"""
        monkeypatch.setenv("WORDING_WEBHOOK_URL", "https://hooks.example.test/wording")
        ok = MagicMock(ok=True, status_code=200)

        with patch("services.ingestion.upload.requests.post", return_value=ok) as post:
            result = ingest_wording_upload(
                repo, "DUAL", "PI-2023", "w.pdf", b"%PDF", content_type="application/pdf",
            )

        assert result is None
        assert repo.wordings == {}
        args, kwargs = post.call_args
        assert args[0] == "https://hooks.example.test/wording"
        assert kwargs["data"] == {"insurer": "DUAL", "wordingVersion": "PI-2023"}
        assert kwargs["files"]["file"][0] == "w.pdf"

    def test_webhook_failure(self, repo, monkeypatch):
        monkeypatch.setenv("WORDING_WEBHOOK_URL", "https://hooks.example.test/wording")
        bad = MagicMock(ok=False, status_code=500, text="down")

        with patch("services.ingestion.upload.requests.post", return_value=bad):
            with pytest.raises(WebhookError):
                ingest_wording_upload(repo, "DUAL", "PI", "w.pdf", b"%PDF")

    def test_webhook_unreachable(self, repo, monkeypatch):
        monkeypatch.setenv("WORDING_WEBHOOK_URL", "https://hooks.example.test/wording")

        with patch(
            "services.ingestion.upload.requests.post",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(WebhookError):
                ingest_wording_upload(repo, "DUAL", "PI", "w.pdf", b"%PDF")
