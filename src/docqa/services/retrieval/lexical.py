"""Keyword-overlap retrieval used when no embedding provider is configured.

Each chunk earns one point per query keyword it contains, two when the
keyword is restated verbatim in the query. Alongside the score, the chunk's
most illustrative sentence is picked as its snippet: short sentences that
contain a keyword win (``1000 / len + 10``). Sentences longer than a window
do not qualify, so unpunctuated runs fall back to the 300-character window
with the most keyword hits.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from docqa.services.retrieval.types import Chunk, ScoredChunk

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({"the", "and", "that", "for", "this", "are", "with"})
LEXICAL_TOP_N = 3
WINDOW_SIZE = 300
WINDOW_STEP = 100
NO_RELEVANT_CONTENT_MESSAGE = (
    "I couldn't find information relevant to your question in the uploaded documents."
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_SENTENCE = re.compile(r"[^.!?]+[.!?]*")


def extract_keywords(query: str) -> list[str]:
    tokens = _PUNCTUATION.sub("", query.lower()).split()
    long_tokens = [token for token in tokens if len(token) > 2]
    keywords = [token for token in long_tokens if token not in STOP_WORDS]
    if not keywords:
        keywords = long_tokens
    return list(dict.fromkeys(keywords))


def _split_sentences(text: str) -> list[str]:
    sentences = (match.group(0).strip() for match in _SENTENCE.finditer(text))
    return [sentence for sentence in sentences if sentence]


def best_window(text: str, keywords: Sequence[str]) -> str:
    patterns = [re.compile(re.escape(keyword), re.IGNORECASE) for keyword in keywords]
    best_text = text[:WINDOW_SIZE]
    best_count = -1

    for start in range(0, max(len(text) - WINDOW_SIZE, 0) + 1, WINDOW_STEP):
        window = text[start : start + WINDOW_SIZE]
        count = sum(len(pattern.findall(window)) for pattern in patterns)
        if count > best_count:
            best_text = window
            best_count = count

    return best_text.strip()


def score_chunk(chunk: Chunk, keywords: Sequence[str], query: str) -> ScoredChunk:
    lowered_text = chunk.text.lower()
    lowered_query = query.lower()
    sentences = _split_sentences(chunk.text)

    relevance = 0
    best_sentence: str | None = None
    best_sentence_score = 0.0

    for keyword in keywords:
        if keyword not in lowered_text:
            continue
        relevance += 2 if keyword in lowered_query else 1

        for sentence in sentences:
            if len(sentence) > WINDOW_SIZE or keyword not in sentence.lower():
                continue
            sentence_score = 1000 / len(sentence) + 10
            if sentence_score > best_sentence_score:
                best_sentence = sentence
                best_sentence_score = sentence_score

    snippet = best_sentence
    if relevance and snippet is None:
        snippet = best_window(chunk.text, keywords)

    return ScoredChunk(chunk=chunk, score=float(relevance), snippet=snippet)


def rank_by_keyword(
    chunks: Sequence[Chunk],
    query: str,
    *,
    limit: int = LEXICAL_TOP_N,
) -> list[ScoredChunk]:
    keywords = extract_keywords(query)
    if not keywords:
        logger.info("Query %r has no usable keywords", query)
        return []

    scored = [score_chunk(chunk, keywords, query) for chunk in chunks]
    relevant = [hit for hit in scored if hit.score > 0]
    relevant.sort(key=lambda hit: hit.score, reverse=True)
    logger.debug(
        "Lexical ranking keywords=%s relevant=%d of %d", keywords, len(relevant), len(chunks)
    )
    return relevant[: max(0, limit)]


def compose_answer(scored: Sequence[ScoredChunk]) -> str:
    """Join ranked snippets into answer text, grouped by source document."""
    if not scored:
        return NO_RELEVANT_CONTENT_MESSAGE
    if len(scored) == 1:
        return scored[0].snippet or scored[0].text

    grouped: dict[str, list[str]] = {}
    for hit in scored:
        grouped.setdefault(hit.source, []).append(hit.snippet or hit.text)

    return "\n\n".join(
        f"From {source}: {' '.join(snippets)}" for source, snippets in grouped.items()
    )
