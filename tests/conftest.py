from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from docqa.config import get_settings
from docqa.main import app


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in (
        "OLLAMA_BASE_URL",
        "OLLAMA_EMBED_BASE_URL",
        "DOCQA_CHUNK_SIZE",
        "DOCQA_CHUNK_OVERLAP",
        "DOCQA_RETRIEVAL_K",
        "DOCQA_REQUEST_TIMEOUT_SECONDS",
        "DOCQA_EMBED_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
