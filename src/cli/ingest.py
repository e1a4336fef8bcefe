# =============================================================================
# src/cli/ingest.py — CLI for the study-material index
# =============================================================================
#
# Standalone CLI for loading course material into the studyrag document
# store and querying it without running the web server.
#
# Supported subcommands:
#
#   ingest — Copy a file into the upload directory, create its document and
#            run the full pipeline (extract → clean → chunk → embed → store)
#            to completion
#   query  — Vector retrieval with keyword fallback (or --keyword-only)
#   ask    — Answer a question from the stored material (needs an LLM key)
#   chunk  — Run the chunker over a text file and print the chunks
#   list   — List stored documents, newest first
#   delete — Delete a document, its chunks and its stored file
#
# Provider selection is identical to the server: the object graph comes
# from src.main.build_components, so EMBEDDING_BACKEND, OPENAI_API_KEY etc.
# apply here too.
#
# Usage examples:
#   python -m src.cli ingest --file notes.pdf --course CSC201
#   python -m src.cli ingest --file board.jpg --course CSC201 --category past-question
#   python -m src.cli query "what is a linked list" --course CSC201
#   python -m src.cli ask "define recursion" --course CSC201 --mode eli5
#   python -m src.cli chunk --file lecture.txt --size 300 --overlap 30
#   python -m src.cli list --course CSC201
#   python -m src.cli delete 6f1c...
# =============================================================================

"""Standalone CLI for the studyrag document store.

Usage::

    python -m src.cli ingest --file notes.pdf --course CSC201

    python -m src.cli query "what is a linked list" --course CSC201

    python -m src.cli ask "define recursion" --mode eli5

    python -m src.cli chunk --file lecture.txt

No extra dependencies beyond the core project requirements.
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import shutil
import sys
import uuid
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.document import Document, IngestionStatus, SourceCategory
from src.models.rag import AnswerMode
from src.services.ingestion.chunker import TextChunker
from src.utils.errors import LLMError, ProviderUnavailableError
from src.utils.media_types import detect_media_type, extension_for, is_allowed

_PREVIEW_LENGTH = 200


# ---------------------------------------------------------------------------
# Component assembly
# ---------------------------------------------------------------------------


async def _open_components(app_settings: Settings) -> dict[str, Any]:
    # Deferred import: src.main configures logging and builds the FastAPI
    # app at import time, which the chunk command does not need.
    from src.main import build_components

    components = build_components(app_settings)
    await components["document_store"].initialize()
    return components


async def _close_components(components: dict[str, Any]) -> None:
    from src.main import close_components

    await close_components(components)


def _guess_mime(path: Path, explicit: str | None) -> str:
    if explicit:
        return explicit.split(";", 1)[0].strip().lower()
    guessed, _ = mimetypes.guess_type(path.name)
    return (guessed or "").lower()


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest one file and wait for the pipeline to finish."""
    source = Path(args.file)
    if not source.is_file():
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1

    mime_type = _guess_mime(source, args.mime)
    if not is_allowed(mime_type):
        print(f"Error: unsupported file type: {mime_type or 'unknown'}", file=sys.stderr)
        return 1

    document_id = str(uuid.uuid4())
    media_type = detect_media_type(mime_type)
    filename = f"{document_id}{extension_for(mime_type)}"
    target = Path(app_settings.upload_dir) / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(shutil.copyfile, source, target)

    print(f"Ingesting {media_type.value.upper()}: {source.name}")
    print(f"  Course:   {args.course or '-'}")
    print(f"  Category: {args.category}")

    components = await _open_components(app_settings)
    try:
        await components["document_store"].create_document(
            Document(
                document_id=document_id,
                media_type=media_type,
                mime_type=mime_type,
                source_category=SourceCategory(args.category),
                course_code=args.course,
                filename=filename,
                original_name=source.name,
                size_bytes=target.stat().st_size,
            )
        )
        result = await components["ingestion_service"].process_document(
            document_id, str(target), media_type
        )
    finally:
        await _close_components(components)

    print("\nIngestion complete:")
    print(f"  Status:          {result.status.value}")
    print(f"  Confidence:      {result.confidence.value}")
    print(f"  Chunks created:  {result.chunks_created}")
    print(f"  Chunks embedded: {result.chunks_embedded}")
    print(f"  Time:            {result.elapsed_seconds:.2f}s")
    print(f"  Document ID:     {result.document_id}")
    if result.error:
        print(f"  Error:           {result.error}")
    return 0 if result.status is IngestionStatus.DONE else 1


async def _handle_query(args: argparse.Namespace, app_settings: Settings) -> int:
    """Run retrieval and print ranked chunks."""
    components = await _open_components(app_settings)
    try:
        retrieval = components["retrieval_service"]
        if args.keyword_only:
            chunks = await retrieval.keyword_search(
                args.query, course_code=args.course, limit=args.top_k
            )
            confidence, strategy = "low", "keyword"
        else:
            result = await retrieval.search(args.query, course_code=args.course, top_k=args.top_k)
            chunks = result.chunks
            confidence, strategy = result.confidence.value, result.strategy.value
    finally:
        await _close_components(components)

    print(f"Query: {args.query}")
    print(f"  Strategy:   {strategy}")
    print(f"  Confidence: {confidence}")
    print(f"  Results:    {len(chunks)}")
    for rank, chunk in enumerate(chunks, start=1):
        preview = chunk.content[:_PREVIEW_LENGTH].replace("\n", " ")
        print(f"\n[{rank}] score={chunk.score:.3f} doc={chunk.document_id} #{chunk.chunk_index}")
        print(f"    {preview}")
    return 0


async def _handle_ask(args: argparse.Namespace, app_settings: Settings) -> int:
    """Answer a question from the stored material and print its sources."""
    components = await _open_components(app_settings)
    try:
        answer = await components["qa_service"].ask(
            args.question,
            course_code=args.course,
            mode=AnswerMode(args.mode),
            top_k=args.top_k,
        )
    except (ProviderUnavailableError, LLMError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await _close_components(components)

    print(f"Question: {answer.question}")
    print(f"  Mode:       {answer.mode.value}")
    print(f"  Strategy:   {answer.strategy.value}")
    print(f"  Confidence: {answer.confidence.value}")
    print(f"\n{answer.answer}")
    if answer.sources:
        print("\nSources:")
        for rank, source in enumerate(answer.sources, start=1):
            print(f"  [{rank}] doc={source['document_id']} ({source['confidence']})")
            print(f"      {source['excerpt']}")
    return 0


def _handle_chunk(args: argparse.Namespace, app_settings: Settings) -> int:
    """Chunk a text file without touching the store."""
    source = Path(args.file)
    if not source.is_file():
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1

    size = args.size if args.size is not None else app_settings.chunk_size
    overlap = args.overlap if args.overlap is not None else app_settings.chunk_overlap
    try:
        chunker = TextChunker(chunk_size=size, overlap=overlap)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    chunks = chunker.chunk(source.read_text(encoding="utf-8"))
    print(f"{len(chunks)} chunks (size={size}, overlap={overlap})")
    for index, chunk in enumerate(chunks):
        print(f"\n--- chunk {index} ({len(chunk)} chars) ---")
        print(chunk)
    return 0


async def _handle_list(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print stored documents."""
    components = await _open_components(app_settings)
    try:
        summaries = await components["document_store"].list_documents(course_code=args.course)
    finally:
        await _close_components(components)

    if not summaries:
        print("No documents.")
        return 0

    print(f"{'ID':<36}  {'STATUS':<10} {'CONF':<6} {'CHUNKS':>6}  {'COURSE':<8} NAME")
    for summary in summaries:
        doc = summary.document
        print(
            f"{doc.document_id:<36}  {doc.status.value:<10} {doc.confidence.value:<6} "
            f"{summary.chunk_count:>6}  {doc.course_code or '-':<8} {doc.original_name}"
        )
    return 0


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    """Delete a document and its stored file."""
    components = await _open_components(app_settings)
    try:
        store = components["document_store"]
        document = await store.get_document(args.document_id)
        if document is None:
            print(f"Error: document {args.document_id} not found", file=sys.stderr)
            return 1
        await store.delete_document(args.document_id)
    finally:
        await _close_components(components)

    if document.filename:
        (Path(app_settings.upload_dir) / document.filename).unlink(missing_ok=True)
    print(f"Deleted {args.document_id} ({document.original_name})")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the studyrag CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Ingest and query studyrag course material.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (overrides DATABASE_PATH)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF, image or audio file")
    ingest_parser.add_argument("--file", required=True, help="Path to the file")
    ingest_parser.add_argument(
        "--mime", default=None, help="MIME type (guessed from the extension if omitted)"
    )
    ingest_parser.add_argument("--course", default=None, help="Course code, e.g. CSC201")
    ingest_parser.add_argument(
        "--category",
        default=SourceCategory.HANDOUT.value,
        choices=[c.value for c in SourceCategory],
        help="Source category (default: handout)",
    )

    # -- query --
    query_parser = subparsers.add_parser("query", help="Retrieve chunks for a question")
    query_parser.add_argument("query", help="Question text")
    query_parser.add_argument("--course", default=None, help="Restrict to one course code")
    query_parser.add_argument("--top-k", type=int, default=None, dest="top_k")
    query_parser.add_argument(
        "--keyword-only",
        action="store_true",
        dest="keyword_only",
        help="Skip vector retrieval",
    )

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Answer a question with the LLM")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument("--course", default=None, help="Restrict to one course code")
    ask_parser.add_argument(
        "--mode",
        default=AnswerMode.EXAM.value,
        choices=[m.value for m in AnswerMode],
        help="Answer style (default: exam)",
    )
    ask_parser.add_argument("--top-k", type=int, default=None, dest="top_k")

    # -- chunk --
    chunk_parser = subparsers.add_parser("chunk", help="Chunk a text file and print the chunks")
    chunk_parser.add_argument("--file", required=True, help="Path to a UTF-8 text file")
    chunk_parser.add_argument("--size", type=int, default=None, help="Chunk size in characters")
    chunk_parser.add_argument("--overlap", type=int, default=None, help="Overlap in characters")

    # -- list --
    list_parser = subparsers.add_parser("list", help="List stored documents")
    list_parser.add_argument("--course", default=None, help="Restrict to one course code")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("document_id", help="Document identifier")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings from the environment / .env file,
    and dispatches to the matching handler.  ``chunk`` runs without the
    store or any provider.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    if args.db:
        app_settings = app_settings.model_copy(update={"database_path": args.db})

    if args.command == "chunk":
        sys.exit(_handle_chunk(args, app_settings))

    handlers = {
        "ingest": _handle_ingest,
        "query": _handle_query,
        "ask": _handle_ask,
        "list": _handle_list,
        "delete": _handle_delete,
    }
    exit_code = asyncio.run(handlers[args.command](args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
