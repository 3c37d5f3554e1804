from typing import Annotated, Any

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from docqa.config import get_settings
from docqa.llm import LLMClient, OllamaChatClient
from docqa.logger import configure_logging
from docqa.services.qa import (
    DEFAULT_QUESTION,
    PipelineTimeoutError,
    answer_question,
    result_payload,
)
from docqa.services.retrieval.embedding_client import EmbeddingClient, OllamaEmbeddingClient
from docqa.services.retrieval.scavenger import estimate_pages, extract_text
from docqa.services.retrieval.types import RawDocument

app = FastAPI(title="Document Q&A API", version="0.1.0")


class ExtractRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data: str = Field(min_length=1)
    name: str = "document.pdf"


def get_llm_client() -> LLMClient | None:
    settings = get_settings()
    if settings.ollama_base_url is None:
        return None
    return OllamaChatClient(
        base_url=settings.ollama_base_url,
        default_model=settings.ollama_model,
        fallback_model=settings.ollama_fallback_model,
        timeout_seconds=settings.ollama_timeout_seconds,
    )


def get_embedding_client() -> EmbeddingClient | None:
    settings = get_settings()
    if settings.ollama_embed_base_url is None:
        return None
    return OllamaEmbeddingClient(
        base_url=settings.ollama_embed_base_url,
        model=settings.ollama_embed_model,
        timeout_seconds=settings.embed_timeout_seconds,
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/extract")
def extract(request: ExtractRequest) -> dict[str, Any]:
    extracted = extract_text(request.data)
    return {
        "name": request.name,
        "text": extracted.text,
        "status": extracted.status.value,
        "pages": estimate_pages(extracted),
    }


@app.post("/ask")
async def ask(
    embedding_client: Annotated[EmbeddingClient | None, Depends(get_embedding_client)],
    llm_client: Annotated[LLMClient | None, Depends(get_llm_client)],
    files: Annotated[list[UploadFile] | None, File()] = None,
    question: Annotated[str, Form()] = DEFAULT_QUESTION,
    k: Annotated[int | None, Form(ge=1, le=20)] = None,
) -> dict[str, Any]:
    if not files:
        raise HTTPException(status_code=400, detail="Please upload a document to analyze")

    settings = get_settings()
    documents = [
        RawDocument(
            name=upload.filename or "document",
            media_type=upload.content_type or "application/octet-stream",
            data=await upload.read(),
        )
        for upload in files
    ]
    try:
        result = await answer_question(
            documents,
            question,
            settings=settings,
            embedding_client=embedding_client,
            llm_client=llm_client,
            k=k,
        )
    except PipelineTimeoutError as exc:
        raise HTTPException(
            status_code=504,
            detail=(
                "The request took too long to process. Please try with smaller "
                f"documents or a simpler question. ({exc})"
            ),
        ) from exc

    return result_payload(result)


def run() -> None:
    import uvicorn

    configure_logging(get_settings().log_level)
    uvicorn.run("docqa.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
