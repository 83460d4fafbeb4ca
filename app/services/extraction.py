"""
Document text extraction for uploaded PDF and plain-text files.

Readers only pull raw text out of the file; all cleanup goes through
text_normalizer.normalize().
"""
import io
import os

import structlog
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from app.services.text_normalizer import normalize

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = (".pdf", ".txt")


class DocumentError(Exception):
    """Raised when an uploaded document cannot be turned into text."""


# -------------------- READERS --------------------

def extract_text_from_pdf(filelike) -> str:
    """Extract raw text from every page of a PDF, pages separated by blank lines"""
    try:
        reader = PdfReader(filelike)
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError) as e:
        raise DocumentError(f"PDF parse error: {e}") from e

    text = "\n\n".join(p for p in pages if p.strip())
    if not text.strip():
        raise DocumentError("No text content found in PDF")
    logger.debug("pdf_text_extracted", pages=len(pages), chars=len(text))
    return text


def decode_text_file(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    if "\ufffd" in text:
        # Not valid UTF-8; legacy office exports are usually Windows-1252
        text = data.decode("cp1252", errors="replace")
    return text


# -------------------- DISPATCH --------------------

def extract_document_text(filename: str, data: bytes) -> str:
    """Read an uploaded file and return its normalized text"""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".pdf":
        raw = extract_text_from_pdf(io.BytesIO(data))
    elif ext == ".txt":
        raw = decode_text_file(data)
    else:
        raise DocumentError(f"Unsupported file type: {ext or 'none'} (expected {', '.join(SUPPORTED_EXTENSIONS)})")
    return normalize(raw)
