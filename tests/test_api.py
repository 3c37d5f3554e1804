import base64

from fastapi.testclient import TestClient

from docqa.llm import ChatResult
from docqa.main import app, get_embedding_client, get_llm_client
from docqa.services.qa import NO_CONTENT_MESSAGE
from docqa.services.retrieval.scavenger import DECODE_ERROR_MESSAGE

POLICY_PDF = (
    b"%PDF-1.4\n"
    b"BT /F1 12 Tf /Tj (Our refund policy allows returns within 30 days.) ET\n"
    b"BT /F1 12 Tf /Tj (Shipping is free on orders over fifty dollars.) ET\n"
    b"%%EOF\n"
)


class FakeEmbeddingClient:
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [
            [float(text.lower().count("refund")), float(text.lower().count("shipping"))]
            for text in texts
        ]


class FakeLLMClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def generate_answer(self, *, question: str, context: str) -> ChatResult:
        self.calls.append((question, context))
        return ChatResult(answer="mocked answer", model="fake-model", used_fallback=False)


def test_health_returns_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_extract_endpoint_returns_text_and_pages(client: TestClient) -> None:
    encoded = "data:application/pdf;base64," + base64.b64encode(POLICY_PDF).decode("ascii")

    response = client.post("/extract", json={"data": encoded, "name": "policy.pdf"})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "policy.pdf"
    assert body["status"] == "full"
    assert body["pages"] == 1
    assert "refund policy" in body["text"]


def test_extract_endpoint_reports_undecodable_payload(client: TestClient) -> None:
    response = client.post("/extract", json={"data": "%%%not-base64%%%"})

    assert response.status_code == 200
    assert response.json() == {
        "name": "document.pdf",
        "text": DECODE_ERROR_MESSAGE,
        "status": "none",
        "pages": 0,
    }


def test_extract_endpoint_requires_data(client: TestClient) -> None:
    response = client.post("/extract", json={"data": ""})

    assert response.status_code == 422


def test_ask_without_collaborators_uses_keyword_ranking(client: TestClient) -> None:
    response = client.post(
        "/ask",
        data={"question": "What is the refund policy?"},
        files=[("files", ("policy.pdf", POLICY_PDF, "application/pdf"))],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["text"] == "Our refund policy allows returns within 30 days."
    assert body["citations"][0]["source"] == "policy.pdf"
    assert body["citations"][0]["page"] >= 1
    assert body["meta"]["retrieval_mode"] == "lexical"
    assert body["meta"]["documents"] == [
        {"name": "policy.pdf", "status": "full", "chunk_count": 1}
    ]


def test_ask_with_embeddings_and_llm(client: TestClient) -> None:
    llm = FakeLLMClient()
    app.dependency_overrides[get_embedding_client] = lambda: FakeEmbeddingClient()
    app.dependency_overrides[get_llm_client] = lambda: llm

    response = client.post(
        "/ask",
        data={"question": "Is shipping free?", "k": "1"},
        files=[
            ("files", ("policy.pdf", POLICY_PDF, "application/pdf")),
            ("files", ("faq.txt", b"Shipping takes three days.", "text/plain")),
        ],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["text"] == "mocked answer"
    assert body["meta"]["retrieval_mode"] == "vector"
    assert body["meta"]["model"] == "fake-model"
    assert body["meta"]["retrieval_k"] == 1
    assert body["meta"]["retrieved_count"] == 1
    assert len(llm.calls) == 1
    assert llm.calls[0][0] == "Is shipping free?"


def test_ask_with_scanned_pdf_returns_empty_citations(client: TestClient) -> None:
    response = client.post(
        "/ask",
        data={"question": "What does it say?"},
        files=[("files", ("scan.pdf", b"%PDF-1.4 stream \x89\x00\xff endstream", "application/pdf"))],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["text"] == NO_CONTENT_MESSAGE
    assert body["citations"] == []
    assert body["meta"]["retrieval_mode"] == "none"


def test_ask_requires_files(client: TestClient) -> None:
    response = client.post("/ask", data={"question": "hello"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload a document to analyze"


def test_ask_validates_k_bounds(client: TestClient) -> None:
    response = client.post(
        "/ask",
        data={"question": "hello", "k": "0"},
        files=[("files", ("a.txt", b"hello world", "text/plain"))],
    )

    assert response.status_code == 422
