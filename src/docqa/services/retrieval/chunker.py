from __future__ import annotations

import logging
import re

from docqa.services.retrieval.types import Chunk

logger = logging.getLogger(__name__)

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\t]")
_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")
_SECTION_BREAK = re.compile(r"\n{2,}")
_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace and drop non-ASCII noise, keeping blank-line paragraph breaks."""
    text = _NON_PRINTABLE.sub(" ", text)
    paragraphs = (_WHITESPACE.sub(" ", part).strip() for part in _PARAGRAPH_BREAK.split(text))
    return "\n\n".join(paragraph for paragraph in paragraphs if paragraph)


def _check_window(max_chunk_size: int, overlap: int) -> None:
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be > 0")
    if overlap < 0:
        raise ValueError("overlap must be >= 0")
    if overlap >= max_chunk_size:
        raise ValueError("overlap must be smaller than max_chunk_size")


def _window_section(section: str, *, max_chunk_size: int, overlap: int) -> list[str]:
    chunks: list[str] = []
    step = max_chunk_size - overlap
    start = 0
    section_length = len(section)

    while start < section_length:
        end = start + max_chunk_size
        if end < section_length:
            next_space = section.find(" ", end)
            if next_space != -1:
                end = next_space

        chunk = section[start:end].strip()
        if chunk:
            chunks.append(chunk)
        start += step

    return chunks


def chunk_text(text: str, *, max_chunk_size: int, overlap: int) -> list[str]:
    _check_window(max_chunk_size, overlap)

    chunks: list[str] = []
    for section in _SECTION_BREAK.split(clean_text(text)):
        section = section.strip()
        if not section:
            continue
        if len(section) <= max_chunk_size:
            chunks.append(section)
            continue
        chunks.extend(_window_section(section, max_chunk_size=max_chunk_size, overlap=overlap))

    return chunks


def chunk_document(
    text: str,
    *,
    source: str,
    max_chunk_size: int,
    overlap: int,
    max_chunks: int | None = None,
) -> list[Chunk]:
    chunks = chunk_text(text, max_chunk_size=max_chunk_size, overlap=overlap)
    if max_chunks is not None and len(chunks) > max_chunks:
        logger.info(
            "Keeping %d of %d chunks for %s", max_chunks, len(chunks), source
        )
        chunks = chunks[:max_chunks]

    logger.debug("Chunked %s into %d chunks", source, len(chunks))
    return [
        Chunk(text=chunk, source=source, ordinal=ordinal)
        for ordinal, chunk in enumerate(chunks)
    ]
