from docqa.services.retrieval.citations import assemble_citations, truncate_snippet
from docqa.services.retrieval.types import Chunk, Citation, ScoredChunk


def _hit(text: str, ordinal: int, source: str = "report.pdf") -> ScoredChunk:
    return ScoredChunk(chunk=Chunk(text=text, source=source, ordinal=ordinal), score=1.0)


def test_assemble_citations_builds_context_and_pages() -> None:
    bundle = assemble_citations([_hit("First passage.", 0), _hit("Second passage.", 3, "b.txt")])

    assert bundle.context == "First passage.\n\nSecond passage."
    assert bundle.citations == [
        Citation(snippet_text="First passage.", source="report.pdf", page=1),
        Citation(snippet_text="Second passage.", source="b.txt", page=2),
    ]
    assert not bundle.is_empty


def test_long_chunks_are_truncated_with_ellipsis() -> None:
    bundle = assemble_citations([_hit("x" * 400, 5)])

    snippet = bundle.citations[0].snippet_text
    assert len(snippet) == 150
    assert snippet.endswith("...")
    assert bundle.citations[0].page == 3


def test_snippet_at_limit_is_untouched() -> None:
    text = "y" * 150

    assert truncate_snippet(text) == text


def test_no_ranked_chunks_means_no_citations() -> None:
    bundle = assemble_citations([])

    assert bundle.context == ""
    assert bundle.citations == []
    assert bundle.is_empty
