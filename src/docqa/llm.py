from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

PROMPT_TEMPLATE = """You are a helpful assistant analyzing document content. Use the following pieces of context to answer the question at the end.
If you don't know the answer, just say that you don't know, don't try to make up an answer.
Keep your answer concise and focused on the question.

Context: {context}

Question: {question}

Answer:"""


class LLMClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ChatResult:
    answer: str
    model: str
    used_fallback: bool


class LLMClient(Protocol):
    def generate_answer(self, *, question: str, context: str) -> ChatResult: ...


def build_prompt(question: str, context: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, question=question)


def _answer_text(payload: Any) -> str:
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices:
        raise ValueError("Invalid chat completion payload: missing choices")

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        raise ValueError("Invalid chat completion payload: missing assistant content")
    return content.strip()


class OllamaChatClient:
    """Answers a question from retrieved context through an OpenAI-compatible
    ``/chat/completions`` endpoint, retrying once on the fallback model."""

    def __init__(
        self,
        *,
        base_url: str,
        default_model: str,
        fallback_model: str,
        timeout_seconds: float = 25.0,
        temperature: float = 0.5,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._models = [default_model]
        if fallback_model and fallback_model != default_model:
            self._models.append(fallback_model)
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature

    def generate_answer(self, *, question: str, context: str) -> ChatResult:
        prompt = build_prompt(question, context)
        last_error: Exception | None = None

        for attempt, model in enumerate(self._models):
            try:
                answer = self._complete(model, prompt)
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                continue
            return ChatResult(answer=answer, model=model, used_fallback=attempt > 0)

        raise LLMClientError(str(last_error)) from last_error

    def _complete(self, model: str, prompt: str) -> str:
        response = httpx.post(
            f"{self._base_url}/chat/completions",
            json={
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self._temperature,
            },
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        return _answer_text(response.json())
