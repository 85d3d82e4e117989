from .extractor import (
    DOCX_MIME,
    PDF_MIME,
    UNSUPPORTED_MESSAGE,
    DocumentResumeExtractor,
    ResumeTextExtractor,
    UnsupportedResumeError,
    detect_resume_kind,
    extract_docx_text,
    extract_pdf_text,
)

__all__ = [
    "DOCX_MIME",
    "PDF_MIME",
    "UNSUPPORTED_MESSAGE",
    "DocumentResumeExtractor",
    "ResumeTextExtractor",
    "UnsupportedResumeError",
    "detect_resume_kind",
    "extract_docx_text",
    "extract_pdf_text",
]
