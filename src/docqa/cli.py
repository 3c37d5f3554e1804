from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import json
import mimetypes
from pathlib import Path
import sys

from docqa.config import get_settings
from docqa.logger import configure_logging
from docqa.main import get_embedding_client, get_llm_client
from docqa.services.qa import DEFAULT_QUESTION, answer_question, result_payload
from docqa.services.retrieval.types import RawDocument


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="docqa-ask",
        description="Answer a question from local documents and print citations as JSON",
    )
    parser.add_argument("files", nargs="+", help="PDF or text files to search")
    parser.add_argument("--question", "-q", default=DEFAULT_QUESTION, help="Question to answer")
    parser.add_argument(
        "--k",
        type=int,
        default=settings.retrieval_k,
        help="Number of chunks to keep on the embedding path",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.chunk_size,
        help="Chunk size in characters",
    )
    parser.add_argument(
        "--chunk-overlap",
        type=int,
        default=settings.chunk_overlap,
        help="Chunk overlap in characters (must be smaller than --chunk-size)",
    )
    return parser


def _read_document(path: Path) -> RawDocument:
    media_type, _ = mimetypes.guess_type(path.name)
    return RawDocument(
        name=path.name,
        media_type=media_type or "application/octet-stream",
        data=path.read_bytes(),
    )


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        if args.chunk_overlap >= args.chunk_size:
            raise ValueError("--chunk-overlap must be smaller than --chunk-size")

        documents = [_read_document(Path(name)) for name in args.files]
        run_settings = replace(
            settings,
            chunk_size=args.chunk_size,
            chunk_overlap=args.chunk_overlap,
        )
        result = asyncio.run(
            answer_question(
                documents,
                args.question,
                settings=run_settings,
                embedding_client=get_embedding_client(),
                llm_client=get_llm_client(),
                k=args.k,
            )
        )
    except Exception as exc:
        print(f"[docqa-ask] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    print(json.dumps(result_payload(result), indent=2), flush=True)


if __name__ == "__main__":
    main()
