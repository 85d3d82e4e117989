"""Plain-text extraction for uploaded resumes."""
from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import Iterable, Literal, Optional, Protocol

import pdfplumber
from docx import Document

logger = logging.getLogger(__name__)

ResumeKind = Literal["pdf", "docx"]

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
UNSUPPORTED_MESSAGE = "Please upload a PDF or DOCX file."

_KINDS_BY_MIME = {PDF_MIME: "pdf", DOCX_MIME: "docx"}
_KINDS_BY_SUFFIX = {".pdf": "pdf", ".docx": "docx"}


class UnsupportedResumeError(ValueError):
    """Raised for files that are neither PDF nor DOCX."""

    def __init__(self, filename: str, content_type: Optional[str]) -> None:
        super().__init__(UNSUPPORTED_MESSAGE)
        self.filename = filename
        self.content_type = content_type


class ResumeTextExtractor(Protocol):
    def extract(self, filename: str, content_type: Optional[str], data: bytes) -> str: ...


def detect_resume_kind(filename: str, content_type: Optional[str]) -> ResumeKind:
    """Classify an upload by MIME type, falling back to the file suffix.

    Generic MIME types such as ``application/octet-stream`` defer to the suffix.
    """

    kind = _KINDS_BY_MIME.get((content_type or "").split(";")[0].strip().lower())
    if kind is None:
        suffix = ""
        if "." in filename:
            suffix = "." + filename.rsplit(".", 1)[1].lower()
        kind = _KINDS_BY_SUFFIX.get(suffix)
    if kind is None:
        raise UnsupportedResumeError(filename, content_type)
    return kind  # type: ignore[return-value]


def extract_pdf_text(data: bytes) -> str:
    chunks: list[str] = []
    with pdfplumber.open(BytesIO(data)) as pdf:
        for index, page in enumerate(pdf.pages, start=1):
            page_text = page.extract_text() or ""
            if not page_text:
                logger.info("PDF page %d has no extractable text", index)
                continue
            chunks.append(page_text)
    return normalize_text(chunks)


def extract_docx_text(data: bytes) -> str:
    doc = Document(BytesIO(data))
    return normalize_text(_iter_docx_text(doc))


def _iter_docx_text(doc) -> Iterable[str]:
    for para in doc.paragraphs:
        if para.text:
            yield para.text
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text:
                    yield cell.text


def normalize_text(chunks: Iterable[str]) -> str:
    """Trim chunks, drop empty ones and join them with single line breaks."""

    cleaned = [chunk.strip() for chunk in chunks if chunk and chunk.strip()]
    if not cleaned:
        return ""
    text = "\n".join(cleaned)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


class DocumentResumeExtractor:  # Default extractor used by the controller
    def extract(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        kind = detect_resume_kind(filename, content_type)
        if kind == "pdf":
            text = extract_pdf_text(data)
        else:
            text = extract_docx_text(data)
        if not text:
            logger.warning("Resume %s contained no extractable text", filename)
        return text
