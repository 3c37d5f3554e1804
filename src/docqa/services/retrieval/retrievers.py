from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence, Union

from docqa.services.retrieval.embedding_client import EmbeddingClient
from docqa.services.retrieval.lexical import LEXICAL_TOP_N, rank_by_keyword
from docqa.services.retrieval.types import Chunk, ScoredChunk
from docqa.services.retrieval.vector import rank_by_embedding


@dataclass(frozen=True)
class VectorRetriever:
    embedding_client: EmbeddingClient
    mode: Literal["vector"] = "vector"

    def limit_for(self, k: int) -> int:
        return k

    def rank(self, chunks: Sequence[Chunk], query: str, k: int) -> list[ScoredChunk]:
        return rank_by_embedding(chunks, query, self.embedding_client, k)


@dataclass(frozen=True)
class LexicalRetriever:
    limit: int = LEXICAL_TOP_N
    mode: Literal["lexical"] = "lexical"

    def limit_for(self, k: int) -> int:
        return self.limit

    def rank(self, chunks: Sequence[Chunk], query: str, k: int) -> list[ScoredChunk]:
        # k only applies to the vector path; lexical keeps a fixed top-N
        del k
        return rank_by_keyword(chunks, query, limit=self.limit)


Retriever = Union[VectorRetriever, LexicalRetriever]


def select_retriever(embedding_client: EmbeddingClient | None) -> Retriever:
    if embedding_client is None:
        return LexicalRetriever()
    return VectorRetriever(embedding_client=embedding_client)
