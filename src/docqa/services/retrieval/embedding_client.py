from __future__ import annotations

from typing import Protocol

import httpx


class EmbeddingUnavailableError(RuntimeError):
    pass


class EmbeddingTimeoutError(EmbeddingUnavailableError):
    pass


class EmbeddingClient(Protocol):
    def embed_texts(self, texts: list[str]) -> list[list[float]]: ...


class OllamaEmbeddingClient:
    def __init__(self, *, base_url: str, model: str, timeout_seconds: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_seconds = timeout_seconds

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        try:
            response = httpx.post(
                f"{self._base_url}/embeddings",
                json={"model": self._model, "input": texts},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise EmbeddingTimeoutError(
                f"Embedding request exceeded {self._timeout_seconds}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise EmbeddingUnavailableError(str(exc)) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise EmbeddingUnavailableError("Invalid embeddings payload: not JSON") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise EmbeddingUnavailableError("Invalid embeddings payload: missing data")

        vectors: list[list[float]] = []
        for item in data:
            embedding = item.get("embedding") if isinstance(item, dict) else None
            if not isinstance(embedding, list) or not embedding:
                raise EmbeddingUnavailableError(
                    "Invalid embeddings payload: missing embedding vector"
                )
            vectors.append([float(value) for value in embedding])

        if len(vectors) != len(texts):
            raise EmbeddingUnavailableError(
                f"Invalid embeddings payload: expected {len(texts)} vectors, got {len(vectors)}"
            )

        return vectors
