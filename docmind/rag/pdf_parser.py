"""PDF text extraction."""
import unicodedata
from io import BytesIO
import pdfplumber
import structlog

from docmind.errors import PDFParseError

logger = structlog.get_logger()

PDF_MAGIC = b"%PDF-"


def is_pdf(data: bytes) -> bool:
    """Check the file signature rather than trusting the upload's name."""
    return data[:1024].lstrip().startswith(PDF_MAGIC)


def extract_text(data: bytes, filename: str = "") -> str:
    """Extract the text of every page of a PDF, joined by newlines.

    Args:
        data: Raw PDF bytes
        filename: Name used in log events

    Returns:
        Extracted text (may be empty for scanned documents)

    Raises:
        PDFParseError: If the bytes are not a readable PDF
    """
    if not is_pdf(data):
        raise PDFParseError(f"{filename or 'upload'} is not a PDF file")

    pages = []
    try:
        with pdfplumber.open(BytesIO(data)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                text = unicodedata.normalize("NFKC", text).strip()
                if text:
                    pages.append(text)
            page_count = len(pdf.pages)
    except Exception as e:
        logger.error("pdf_parse_failed", filename=filename, error=str(e))
        raise PDFParseError(f"Could not read {filename or 'PDF'}: {e}") from e

    text = "\n".join(pages)
    logger.info(
        "pdf_text_extracted",
        filename=filename,
        page_count=page_count,
        text_length=len(text),
    )
    return text
