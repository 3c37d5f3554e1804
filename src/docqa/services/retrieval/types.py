from dataclasses import dataclass, field
from enum import Enum


class ExtractionStatus(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True)
class RawDocument:
    name: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_pdf(self) -> bool:
        return (
            self.media_type.lower() == "application/pdf"
            or self.name.lower().endswith(".pdf")
        )


@dataclass(frozen=True)
class ExtractedText:
    text: str
    status: ExtractionStatus

    @property
    def has_content(self) -> bool:
        return self.status is not ExtractionStatus.NONE


@dataclass(frozen=True)
class Chunk:
    text: str
    source: str
    ordinal: int

    @property
    def page(self) -> int:
        # Synthetic: two chunks per "page". Not a real PDF page boundary.
        return self.ordinal // 2 + 1


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    score: float
    snippet: str | None = None

    @property
    def text(self) -> str:
        return self.chunk.text

    @property
    def source(self) -> str:
        return self.chunk.source

    @property
    def ordinal(self) -> int:
        return self.chunk.ordinal

    @property
    def page(self) -> int:
        return self.chunk.page


@dataclass(frozen=True)
class Citation:
    snippet_text: str
    source: str
    page: int


@dataclass(frozen=True)
class CitationBundle:
    context: str
    citations: list[Citation] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.citations
