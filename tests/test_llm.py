import httpx
import pytest

from docqa.llm import LLMClientError, OllamaChatClient, build_prompt


class _FakeResponse:
    def __init__(self, payload: dict[str, object], *, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
            response = httpx.Response(self.status_code, request=request)
            raise httpx.HTTPStatusError("request failed", request=request, response=response)

    def json(self) -> dict[str, object]:
        return self._payload


def _answer(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client() -> OllamaChatClient:
    return OllamaChatClient(
        base_url="http://localhost:11434/v1",
        default_model="primary",
        fallback_model="backup",
        timeout_seconds=7,
    )


def test_generate_answer_sends_context_and_question(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        captured["url"] = url
        captured["json"] = json
        captured["timeout"] = timeout
        return _FakeResponse(_answer("  Returns are accepted for 30 days.  "))

    monkeypatch.setattr("docqa.llm.httpx.post", fake_post)

    result = _client().generate_answer(question="Refunds?", context="Refund policy text")

    assert result.answer == "Returns are accepted for 30 days."
    assert result.model == "primary"
    assert result.used_fallback is False
    assert captured["url"] == "http://localhost:11434/v1/chat/completions"
    assert captured["timeout"] == 7
    messages = captured["json"]["messages"]  # type: ignore[index]
    assert len(messages) == 1
    assert messages[0]["content"] == build_prompt("Refunds?", "Refund policy text")
    assert "Context: Refund policy text\n\nQuestion: Refunds?\n\nAnswer:" in messages[0]["content"]


def test_generate_answer_uses_fallback_model(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        if json["model"] == "primary":
            return _FakeResponse({}, status_code=503)
        return _FakeResponse(_answer("fallback answer"))

    monkeypatch.setattr("docqa.llm.httpx.post", fake_post)

    result = _client().generate_answer(question="q", context="c")

    assert result.model == "backup"
    assert result.used_fallback is True


def test_generate_answer_raises_when_all_models_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        return _FakeResponse({"choices": []})

    monkeypatch.setattr("docqa.llm.httpx.post", fake_post)

    with pytest.raises(LLMClientError, match="missing choices"):
        _client().generate_answer(question="q", context="c")


def test_same_default_and_fallback_model_is_tried_once(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        calls.append(str(json["model"]))
        return _FakeResponse({}, status_code=500)

    monkeypatch.setattr("docqa.llm.httpx.post", fake_post)
    client = OllamaChatClient(
        base_url="http://localhost:11434/v1", default_model="primary", fallback_model="primary"
    )

    with pytest.raises(LLMClientError):
        client.generate_answer(question="q", context="c")

    assert calls == ["primary"]
