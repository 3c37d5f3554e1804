from __future__ import annotations

from typing import Sequence

from docqa.services.retrieval.types import Citation, CitationBundle, ScoredChunk

MAX_SNIPPET_LENGTH = 150
ELLIPSIS = "..."


def truncate_snippet(text: str, limit: int = MAX_SNIPPET_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def assemble_citations(scored: Sequence[ScoredChunk]) -> CitationBundle:
    context = "\n\n".join(hit.text for hit in scored)
    citations = [
        Citation(
            snippet_text=truncate_snippet(hit.text),
            source=hit.source,
            page=hit.page,
        )
        for hit in scored
    ]
    return CitationBundle(context=context, citations=citations)
