"""Turn an uploaded file into text.

PDFs go through ``pypdf`` first, which handles compressed content streams.
When the parser rejects the file or finds no text, the raw bytes are handed
to the heuristic scavenger. Anything else is read as UTF-8.
"""

from __future__ import annotations

from io import BytesIO
import logging

from pypdf import PdfReader

from docqa.services.retrieval.scavenger import extract_text
from docqa.services.retrieval.types import ExtractedText, ExtractionStatus, RawDocument

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = (
    "I couldn't extract any text content from the file. It might be a scanned "
    "document, an image, or contain only non-textual content."
)


def parse_pdf(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    pages = (page.extract_text() or "" for page in reader.pages)
    return "\n\n".join(text.strip() for text in pages if text.strip())


def _load_pdf(document: RawDocument) -> ExtractedText:
    try:
        text = parse_pdf(document.data)
    except Exception as exc:  # pypdf raises assorted error types on malformed input
        logger.info("PDF parser rejected %s (%s), scavenging raw bytes", document.name, exc)
        return extract_text(document.data)

    if not text:
        logger.info("PDF parser found no text in %s, scavenging raw bytes", document.name)
        return extract_text(document.data)

    return ExtractedText(text=text, status=ExtractionStatus.FULL)


def load_document(document: RawDocument) -> ExtractedText:
    if document.is_pdf:
        extracted = _load_pdf(document)
    else:
        text = document.data.decode("utf-8", errors="replace").strip()
        if text:
            extracted = ExtractedText(text=text, status=ExtractionStatus.FULL)
        else:
            extracted = ExtractedText(text=EMPTY_FILE_MESSAGE, status=ExtractionStatus.NONE)

    logger.info(
        "Extracted %s (%d bytes) status=%s chars=%d",
        document.name,
        document.size,
        extracted.status.value,
        len(extracted.text),
    )
    return extracted
