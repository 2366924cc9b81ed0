"""
Document Loader

Page text from uploaded PDF bytes (PyMuPDF), or UTF-8 text files
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import fitz  # PyMuPDF

from services.storage.file_store import file_extension


@dataclass
class PageContent:
    """Single page"""

    page_no: int  # 1-indexed
    text: str
    char_count: int


@dataclass
class DocumentContent:
    """Whole document"""

    file_name: str | None
    pages: list[PageContent]
    total_pages: int
    total_chars: int

    @property
    def full_text(self) -> str:
        """All page text joined"""
        return "\n\n".join(page.text for page in self.pages if page.text)


def load_pdf_bytes(data: bytes, file_name: str | None = None) -> DocumentContent:
    """
    Per-page text from PDF bytes

    Raises:
        ValueError: empty input
        RuntimeError: PDF could not be opened
    """
    if not data:
        raise ValueError("Empty document")

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise RuntimeError(f"Failed to open PDF: {file_name} - {e}")

    pages: list[PageContent] = []
    total_chars = 0

    try:
        for page_idx in range(len(doc)):
            text = _clean_text(doc[page_idx].get_text("text"))
            total_chars += len(text)
            pages.append(
                PageContent(page_no=page_idx + 1, text=text, char_count=len(text))
            )
    finally:
        doc.close()

    return DocumentContent(
        file_name=file_name,
        pages=pages,
        total_pages=len(pages),
        total_chars=total_chars,
    )


def load_text_bytes(data: bytes, file_name: str | None = None) -> DocumentContent:
    """Plain text file as a single page"""
    text = _clean_text(data.decode("utf-8", errors="replace"))
    return DocumentContent(
        file_name=file_name,
        pages=[PageContent(page_no=1, text=text, char_count=len(text))],
        total_pages=1,
        total_chars=len(text),
    )


def load_document(data: bytes, file_name: str | None) -> DocumentContent:
    """Dispatch on extension (txt -> text, anything else -> PDF)"""
    if file_extension(file_name) == "txt":
        return load_text_bytes(data, file_name)
    return load_pdf_bytes(data, file_name)


def _clean_text(text: str) -> str:
    """Whitespace cleanup"""
    # at most one blank line
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()
