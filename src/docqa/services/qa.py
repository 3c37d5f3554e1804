"""One question-answering run over a set of uploaded documents.

Every call builds its own chunk set; nothing is shared between requests.
Extraction and chunking of each document run concurrently in worker
threads, ranking waits for all of them. The vector path runs under its own
deadline, shorter than the request deadline, and degrades to lexical
ranking when the embedding provider is missing, failing or slow.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Sequence

from docqa.config import Settings
from docqa.llm import LLMClient, LLMClientError
from docqa.services.retrieval.chunker import chunk_document
from docqa.services.retrieval.citations import assemble_citations
from docqa.services.retrieval.embedding_client import (
    EmbeddingClient,
    EmbeddingUnavailableError,
)
from docqa.services.retrieval.lexical import NO_RELEVANT_CONTENT_MESSAGE, compose_answer
from docqa.services.retrieval.loader import load_document
from docqa.services.retrieval.retrievers import (
    LexicalRetriever,
    Retriever,
    VectorRetriever,
    select_retriever,
)
from docqa.services.retrieval.types import (
    Chunk,
    Citation,
    ExtractionStatus,
    RawDocument,
    ScoredChunk,
)

logger = logging.getLogger(__name__)

DEFAULT_QUESTION = "What is this document about?"
NO_CONTENT_MESSAGE = (
    "I couldn't extract useful content from the documents. "
    "Please try with different files."
)


class PipelineTimeoutError(RuntimeError):
    pass


@dataclass(frozen=True)
class DocumentReport:
    name: str
    status: ExtractionStatus
    chunk_count: int


@dataclass(frozen=True)
class QAResult:
    answer: str
    retrieval_mode: str
    retrieval_k: int = 0
    context: str = ""
    citations: list[Citation] = field(default_factory=list)
    documents: list[DocumentReport] = field(default_factory=list)
    model: str | None = None
    used_fallback: bool = False
    used_lexical_fallback: bool = False


def _prepare_document(
    document: RawDocument, settings: Settings
) -> tuple[DocumentReport, list[Chunk]]:
    extracted = load_document(document)
    if not extracted.has_content:
        logger.warning("No usable text in %s: %s", document.name, extracted.text)
        return DocumentReport(document.name, extracted.status, 0), []

    chunks = chunk_document(
        extracted.text,
        source=document.name,
        max_chunk_size=settings.chunk_size,
        overlap=settings.chunk_overlap,
        max_chunks=settings.max_chunks_per_document,
    )
    return DocumentReport(document.name, extracted.status, len(chunks)), chunks


async def _rank(
    chunks: Sequence[Chunk],
    question: str,
    *,
    k: int,
    settings: Settings,
    embedding_client: EmbeddingClient | None,
) -> tuple[list[ScoredChunk], Retriever, bool]:
    retriever = select_retriever(embedding_client)
    if isinstance(retriever, VectorRetriever):
        try:
            hits = await asyncio.wait_for(
                asyncio.to_thread(retriever.rank, chunks, question, k),
                timeout=settings.embed_timeout_seconds,
            )
            return hits, retriever, False
        except TimeoutError:
            logger.warning(
                "Embedding ranking exceeded %.1fs, using keyword ranking",
                settings.embed_timeout_seconds,
            )
        except EmbeddingUnavailableError as exc:
            logger.warning("Embedding provider unavailable (%s), using keyword ranking", exc)

        lexical = LexicalRetriever()
        return lexical.rank(chunks, question, k), lexical, True

    return retriever.rank(chunks, question, k), retriever, False


async def _generate(
    question: str,
    context: str,
    hits: Sequence[ScoredChunk],
    llm_client: LLMClient | None,
) -> tuple[str, str | None, bool]:
    composed = compose_answer(hits)
    if llm_client is None:
        return composed, None, False

    try:
        result = await asyncio.to_thread(
            llm_client.generate_answer, question=question, context=context
        )
    except LLMClientError as exc:
        logger.warning("Answer generation failed (%s), returning retrieved passages", exc)
        return composed, None, True

    return result.answer, result.model, result.used_fallback


async def _run(
    documents: Sequence[RawDocument],
    question: str,
    *,
    k: int,
    settings: Settings,
    embedding_client: EmbeddingClient | None,
    llm_client: LLMClient | None,
) -> QAResult:
    prepared = await asyncio.gather(
        *(asyncio.to_thread(_prepare_document, document, settings) for document in documents)
    )
    reports = [report for report, _ in prepared]
    chunks = [chunk for _, document_chunks in prepared for chunk in document_chunks]

    if not chunks:
        return QAResult(
            answer=NO_CONTENT_MESSAGE, retrieval_mode="none", retrieval_k=k, documents=reports
        )

    logger.info("Ranking %d chunks from %d documents", len(chunks), len(documents))
    hits, retriever, used_lexical_fallback = await _rank(
        chunks,
        question,
        k=k,
        settings=settings,
        embedding_client=embedding_client,
    )
    mode = retriever.mode
    retrieval_k = retriever.limit_for(k)
    if not hits:
        return QAResult(
            answer=NO_RELEVANT_CONTENT_MESSAGE,
            retrieval_mode=mode,
            retrieval_k=retrieval_k,
            documents=reports,
            used_lexical_fallback=used_lexical_fallback,
        )

    bundle = assemble_citations(hits)
    answer, model, used_fallback = await _generate(question, bundle.context, hits, llm_client)

    return QAResult(
        answer=answer,
        retrieval_mode=mode,
        retrieval_k=retrieval_k,
        context=bundle.context,
        citations=bundle.citations,
        documents=reports,
        model=model,
        used_fallback=used_fallback,
        used_lexical_fallback=used_lexical_fallback,
    )


async def answer_question(
    documents: Sequence[RawDocument],
    question: str,
    *,
    settings: Settings,
    embedding_client: EmbeddingClient | None = None,
    llm_client: LLMClient | None = None,
    k: int | None = None,
) -> QAResult:
    normalized_question = question.strip() or DEFAULT_QUESTION
    try:
        return await asyncio.wait_for(
            _run(
                documents,
                normalized_question,
                k=k if k is not None else settings.retrieval_k,
                settings=settings,
                embedding_client=embedding_client,
                llm_client=llm_client,
            ),
            timeout=settings.request_timeout_seconds,
        )
    except TimeoutError as exc:
        raise PipelineTimeoutError(
            f"Request exceeded {settings.request_timeout_seconds:.0f}s deadline"
        ) from exc


def result_payload(result: QAResult) -> dict[str, Any]:
    return {
        "text": result.answer,
        "citations": [
            {
                "text": citation.snippet_text,
                "source": citation.source,
                "page": citation.page,
            }
            for citation in result.citations
        ],
        "meta": {
            "retrieval_mode": result.retrieval_mode,
            "model": result.model,
            "used_fallback": result.used_fallback,
            "used_lexical_fallback": result.used_lexical_fallback,
            "retrieval_k": result.retrieval_k,
            "retrieved_count": len(result.citations),
            "documents": [
                {
                    "name": report.name,
                    "status": report.status.value,
                    "chunk_count": report.chunk_count,
                }
                for report in result.documents
            ],
        },
    }
