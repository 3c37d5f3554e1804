from __future__ import annotations

import logging
import math
from typing import Sequence

from docqa.services.retrieval.chunker import clean_text
from docqa.services.retrieval.embedding_client import (
    EmbeddingClient,
    EmbeddingUnavailableError,
)
from docqa.services.retrieval.types import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def _embed(embedding_client: EmbeddingClient, texts: list[str]) -> list[list[float]]:
    try:
        vectors = embedding_client.embed_texts(texts)
    except EmbeddingUnavailableError:
        raise
    except Exception as exc:
        raise EmbeddingUnavailableError(f"Embedding provider failed: {exc}") from exc

    if len(vectors) != len(texts):
        raise EmbeddingUnavailableError(
            f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
        )
    return vectors


def rank_by_embedding(
    chunks: Sequence[Chunk],
    query: str,
    embedding_client: EmbeddingClient,
    k: int,
) -> list[ScoredChunk]:
    """Rank chunks by cosine similarity to the query embedding.

    The call succeeds or fails as a unit: any provider error raises
    ``EmbeddingUnavailableError`` and no partial ranking is returned.
    """
    top_k = max(0, min(k, len(chunks)))
    if not chunks:
        return []

    chunk_vectors = _embed(embedding_client, [chunk.text for chunk in chunks])
    query_vector = _embed(embedding_client, [clean_text(query)])[0]

    scored = [
        ScoredChunk(chunk=chunk, score=cosine_similarity(query_vector, vector))
        for chunk, vector in zip(chunks, chunk_vectors)
    ]
    # list.sort is stable with reverse=True, so ties keep chunk order
    scored.sort(key=lambda hit: hit.score, reverse=True)
    logger.debug("Vector ranking scored %d chunks, keeping %d", len(scored), top_k)
    return scored[:top_k]
