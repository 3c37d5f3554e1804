from dataclasses import dataclass
from functools import lru_cache
import os


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


def _optional(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    chunk_size: int
    chunk_overlap: int
    max_chunks_per_document: int
    retrieval_k: int
    request_timeout_seconds: float
    embed_timeout_seconds: float
    ollama_embed_base_url: str | None
    ollama_embed_model: str
    ollama_base_url: str | None
    ollama_model: str
    ollama_fallback_model: str
    ollama_timeout_seconds: float
    log_level: str


@lru_cache
def get_settings() -> Settings:
    chunk_size = _to_int(os.getenv("DOCQA_CHUNK_SIZE"), default=120, minimum=20)
    chunk_overlap = _to_int(os.getenv("DOCQA_CHUNK_OVERLAP"), default=15, minimum=0)
    request_timeout_seconds = _to_float(
        os.getenv("DOCQA_REQUEST_TIMEOUT_SECONDS"), default=55.0, minimum=1.0
    )
    embed_timeout_seconds = _to_float(
        os.getenv("DOCQA_EMBED_TIMEOUT_SECONDS"), default=10.0, minimum=0.1
    )

    return Settings(
        chunk_size=chunk_size,
        # overlap must stay below the window size or the chunker cannot advance
        chunk_overlap=min(chunk_overlap, chunk_size - 1),
        max_chunks_per_document=_to_int(
            os.getenv("DOCQA_MAX_CHUNKS_PER_DOCUMENT"), default=50, minimum=1
        ),
        retrieval_k=_to_int(os.getenv("DOCQA_RETRIEVAL_K"), default=2, minimum=1),
        request_timeout_seconds=request_timeout_seconds,
        embed_timeout_seconds=min(embed_timeout_seconds, request_timeout_seconds / 2),
        ollama_embed_base_url=_optional(os.getenv("OLLAMA_EMBED_BASE_URL")),
        ollama_embed_model=os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text"),
        ollama_base_url=_optional(os.getenv("OLLAMA_BASE_URL")),
        ollama_model=os.getenv("OLLAMA_MODEL", "qwen2.5:7b-instruct-q4_K_M"),
        ollama_fallback_model=os.getenv("OLLAMA_FALLBACK_MODEL", "qwen2.5:3b-instruct-q4_K_M"),
        ollama_timeout_seconds=float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "25")),
        log_level=os.getenv("DOCQA_LOG_LEVEL", "INFO").upper(),
    )
