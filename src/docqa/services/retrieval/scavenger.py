"""Heuristic text recovery from raw PDF bytes.

No PDF object model is built. The byte stream is decoded one byte per
character and scanned for string literals ``( ... )`` by an ordered set of
pattern passes, each tuned to a different text-showing convention.
Whatever survives the printable-ASCII filter is unescaped, normalized and
deduplicated.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import logging
import math
import re
from typing import Sequence

from docqa.services.retrieval.types import ExtractedText, ExtractionStatus

logger = logging.getLogger(__name__)

SCANNED_PDF_MESSAGE = (
    "This PDF file doesn't contain easily extractable text. "
    "It might be scanned or image-based."
)
DECODE_ERROR_MESSAGE = "Error decoding PDF data"
MIN_TEXT_LENGTH = 10
CHARS_PER_PAGE = 3000

_DATA_URL_PREFIX = re.compile(r"^data:application/pdf;base64,", re.IGNORECASE)
_PRINTABLE = re.compile(r"[\x20-\x7E\s]+", re.ASCII)
_LITERAL = re.compile(r"\(([^)]+)\)")
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_SENTENCE_BREAK = re.compile(r"[.!?]\s+")


@dataclass(frozen=True)
class TextPass:
    """One pattern pass over the decoded stream.

    ``operator`` marks passes keyed on a PDF text-showing operator; text
    found only by non-operator passes is reported as partial.
    """

    name: str
    pattern: re.Pattern[str]
    operator: bool = False
    inner: re.Pattern[str] | None = None
    min_tokens: int = 0

    def fragments(self, stream: str) -> list[str]:
        found: list[str] = []
        for match in self.pattern.finditer(stream):
            if self.inner is not None:
                candidates = self.inner.findall(match.group(0))
            else:
                candidates = [match.group(1)]

            for candidate in candidates:
                if self.min_tokens and len(candidate.split()) < self.min_tokens:
                    continue
                if _is_printable(candidate):
                    found.append(candidate)
        return found


DEFAULT_PASSES: tuple[TextPass, ...] = (
    TextPass("literal", _LITERAL),
    TextPass("text-marker", re.compile(r"/Text[^(]*\(([^)]+)\)"), operator=True),
    TextPass(
        "tj-array",
        re.compile(r"/TJ\s*\[\s*(?:\([^)]+\)\s*)+\]"),
        operator=True,
        inner=_LITERAL,
    ),
    TextPass("tj-single", re.compile(r"/Tj\s*\(([^)]+)\)"), operator=True),
    TextPass("contents", re.compile(r"/Contents\s*\(([^)]+)\)"), operator=True),
    TextPass("begin-text", re.compile(r"BT\s*\(([^)]+)\)"), operator=True),
    TextPass(
        "word-run",
        re.compile(r"\(([a-zA-Z0-9,.\s']{3,})\)", re.ASCII),
        min_tokens=2,
    ),
)


def _is_printable(fragment: str) -> bool:
    return len(fragment) > 1 and _PRINTABLE.fullmatch(fragment) is not None


def _decode_stream(raw: bytes | str) -> str | None:
    if isinstance(raw, str):
        payload = "".join(_DATA_URL_PREFIX.sub("", raw.strip()).split())
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return None
    return raw.decode("latin-1")


def _unescape(text: str) -> str:
    text = (
        text.replace("\\n", "\n")
        .replace("\\r", "")
        .replace("\\(", "(")
        .replace("\\)", ")")
        .replace("\\", "")
    )
    return _WHITESPACE.sub(" ", text).strip()


def _unique_fragments(fragments: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for fragment in fragments:
        normalized = _WHITESPACE.sub(" ", fragment).strip()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def _dedupe_sentences(text: str) -> str:
    # the final piece keeps its terminator, so keys are compared without one
    sentences = (sentence.rstrip(".!?") for sentence in _SENTENCE_BREAK.split(text))
    deduped = ". ".join(dict.fromkeys(sentences))
    if text.endswith((".", "!", "?")):
        deduped += text[-1]
    return deduped


def extract_text(
    raw: bytes | str,
    passes: Sequence[TextPass] = DEFAULT_PASSES,
) -> ExtractedText:
    """Recover readable text from PDF bytes or a base64 (data URL) string.

    Never raises: undecodable input and streams without usable literals
    come back with status ``none`` and a fixed placeholder message.
    """
    stream = _decode_stream(raw)
    if stream is None:
        logger.warning("PDF payload could not be decoded as base64")
        return ExtractedText(text=DECODE_ERROR_MESSAGE, status=ExtractionStatus.NONE)

    fragments: list[str] = []
    operator_hits = 0
    for text_pass in passes:
        found = text_pass.fragments(stream)
        logger.debug("pass=%s fragments=%d", text_pass.name, len(found))
        if text_pass.operator:
            operator_hits += len(found)
        fragments.extend(found)

    # Several passes catch the same literal, so repeats are folded twice:
    # once per fragment, then per sentence of the joined text.
    text = _unescape(" ".join(_unique_fragments(fragments)))
    text = _dedupe_sentences(text)

    if len(text) < MIN_TEXT_LENGTH:
        return ExtractedText(text=SCANNED_PDF_MESSAGE, status=ExtractionStatus.NONE)

    status = ExtractionStatus.FULL if operator_hits else ExtractionStatus.PARTIAL
    return ExtractedText(text=text, status=status)


def estimate_pages(extracted: ExtractedText) -> int:
    if not extracted.has_content:
        return 0
    return max(1, math.ceil(len(extracted.text) / CHARS_PER_PAGE))
