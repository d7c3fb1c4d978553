"""Text extraction from uploaded files."""

import io
import logging

from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)

TEXT_FILE_TYPES = {"txt", "md", "csv"}
SUPPORTED_FILE_TYPES = TEXT_FILE_TYPES | {"pdf"}


def file_type_from_name(filename: str | None) -> str:
    """Lower-case extension of a filename, or "" when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def extract_pdf_text(data: bytes) -> str:
    """Concatenate page text of a PDF; unreadable PDFs yield "".

    Malformed page content fails inside PyPDF2 with assorted exception types,
    not only PdfReadError, so any parse failure counts as no text.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        logger.warning(f"[extract] unreadable PDF ({type(e).__name__}): {e}")
        return ""
    return "\n\n".join(p.strip() for p in pages if p.strip())


def extract_text(data: bytes, file_type: str) -> str:
    """Extract plain text from file bytes.

    Unsupported file types yield "" (the document is stored but has no
    searchable chunks).
    """
    kind = file_type.lower().lstrip(".")
    if kind == "pdf":
        return extract_pdf_text(data)
    if kind in TEXT_FILE_TYPES:
        return data.decode("utf-8", errors="replace")

    logger.info(f"[extract] no text extractor for file_type={kind!r}")
    return ""
