from docqa.services.retrieval.chunker import chunk_document, chunk_text
from docqa.services.retrieval.citations import assemble_citations
from docqa.services.retrieval.embedding_client import (
    EmbeddingClient,
    EmbeddingTimeoutError,
    EmbeddingUnavailableError,
)
from docqa.services.retrieval.lexical import compose_answer, rank_by_keyword
from docqa.services.retrieval.retrievers import (
    LexicalRetriever,
    Retriever,
    VectorRetriever,
    select_retriever,
)
from docqa.services.retrieval.scavenger import extract_text
from docqa.services.retrieval.types import (
    Chunk,
    Citation,
    CitationBundle,
    ExtractedText,
    ExtractionStatus,
    RawDocument,
    ScoredChunk,
)
from docqa.services.retrieval.vector import rank_by_embedding

__all__ = [
    "Chunk",
    "Citation",
    "CitationBundle",
    "EmbeddingClient",
    "EmbeddingTimeoutError",
    "EmbeddingUnavailableError",
    "ExtractedText",
    "ExtractionStatus",
    "LexicalRetriever",
    "RawDocument",
    "Retriever",
    "ScoredChunk",
    "VectorRetriever",
    "assemble_citations",
    "chunk_document",
    "chunk_text",
    "compose_answer",
    "extract_text",
    "rank_by_embedding",
    "rank_by_keyword",
    "select_retriever",
]
