# =============================================================================
# docaugment/cli/commands.py: pipeline CLI
# =============================================================================
#
# Runs pipeline operations from the command line without any server:
#
#   ingest      extract text from a file, store it and summarize it
#   summarize   (re)generate the summary of a stored document
#   embed       (re)generate the embedding chunk set of a document
#   search      vector search across a user's embedded documents
#   keywords    extract key terms from a document
#   chat        ask one question about a document
#   list        page through a user's documents, newest first
#   find        text search over titles, file names and extracted text
#   get         show one stored document
#   delete      delete a document with its chunks and chat sessions
#   sessions    page through a user's chat sessions, or show chat stats
#   delete-session  delete one chat session and its messages
#   stats       document counts by status and total size
#
# Typical usage:
#   python -m docaugment.cli ingest paper.pdf --user 1
#   python -m docaugment.cli embed 12
#   python -m docaugment.cli search "protein folding" --user 1 --limit 3
#   python -m docaugment.cli find "ribosome" --user 1
#   python -m docaugment.cli --json stats
#
# Every command exits 0 on success and 1 when the pipeline raised a
# DocAugmentError, whose message is printed to stderr.
# =============================================================================

"""Command-line interface for the docaugment pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

from docaugment.config.settings import Settings
from docaugment.main import build_pipeline
from docaugment.models.document import DocumentPage
from docaugment.pipeline.document_pipeline import DocumentPipeline
from docaugment.utils.errors import DocAugmentError

Handler = Callable[[argparse.Namespace, DocumentPipeline], Awaitable[int]]


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _handle_ingest(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    kind = args.kind or mimetypes.guess_type(path.name)[0]
    document = await pipeline.ingest(
        path.read_bytes(),
        path.name,
        kind,
        args.user,
        title=args.title,
    )
    if args.json:
        _print_json(document.to_artifact())
        return 0

    print(f"Document {document.id}: {document.title}")
    print(f"  Status:  {document.status.value}")
    print(f"  Summary: {document.summary_status.value}")
    if document.summary:
        print()
        print(document.summary)
    return 0


async def _handle_summarize(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    summary = await pipeline.summarize(args.document_id, args.user)
    print(summary)
    return 0


async def _handle_embed(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    chunks = await pipeline.generate_embeddings(args.document_id, args.user)
    dimension = chunks[0].dimension if chunks else 0
    print(f"Embedded {len(chunks)} chunks ({dimension} dims) for document {args.document_id}")
    return 0


async def _handle_search(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    hits = await pipeline.search(args.user, args.query, args.limit)
    if args.json:
        _print_json(
            [
                {
                    "document_id": h.document.id,
                    "title": h.document.title,
                    "distance": h.distance,
                    "score": h.score,
                    "chunk_index": h.chunk_index,
                    "chunk_text": h.chunk_text,
                }
                for h in hits
            ]
        )
        return 0

    if not hits:
        print("No matching documents.")
        return 0
    for rank, hit in enumerate(hits, start=1):
        print(f"{rank}. [{hit.score:.3f}] {hit.document.title} (document {hit.document.id})")
        print(f"   {hit.chunk_text[:160]}")
    return 0


async def _handle_keywords(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    keywords = await pipeline.extract_keywords(args.document_id, args.user)
    if args.json:
        _print_json(keywords)
    else:
        print(", ".join(keywords))
    return 0


async def _handle_chat(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    answer = await pipeline.chat(args.document_id, args.message, args.user)
    print(answer)
    return 0


def _print_document_page(args: argparse.Namespace, page: DocumentPage) -> None:
    if args.json:
        _print_json(
            {
                "data": [d.to_artifact() for d in page.data],
                "page": page.page,
                "limit": page.limit,
                "total": page.total,
                "total_pages": page.total_pages,
            }
        )
        return

    if not page.data:
        print("No documents.")
        return
    for document in page.data:
        print(f"{document.id:>5}  {document.status.value:<10}  {document.title}")
    print(f"Page {page.page} of {page.total_pages} ({page.total} documents)")


async def _handle_list(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    page = await pipeline.list_documents(args.user, page=args.page, limit=args.limit)
    _print_document_page(args, page)
    return 0


async def _handle_find(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    page = await pipeline.search_documents(args.user, args.term, page=args.page, limit=args.limit)
    _print_document_page(args, page)
    return 0


async def _handle_get(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    document = await pipeline.get_document(args.document_id, args.user)
    if args.json:
        _print_json(document.to_artifact())
        return 0

    print(f"Document {document.id}: {document.title}")
    print(f"  File:       {document.file_name} ({document.file_type}, {document.file_size} bytes)")
    print(f"  Status:     {document.status.value}")
    print(f"  Summary:    {document.summary_status.value}")
    print(f"  Embeddings: {document.embedding_status.value}")
    if document.summary:
        print()
        print(document.summary)
    return 0


async def _handle_delete(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    await pipeline.delete_document(args.document_id, args.user)
    print(f"Deleted document {args.document_id}")
    return 0


async def _handle_sessions(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    if args.stats:
        stats = await pipeline.chat_stats(args.user)
        payload = {
            "total": stats.total,
            "total_messages": stats.total_messages,
            "average_messages_per_session": stats.average_messages_per_session,
        }
        if args.json:
            _print_json(payload)
        else:
            print(f"Sessions: {stats.total}")
            print(f"Messages: {stats.total_messages}")
            print(f"Average:  {stats.average_messages_per_session:.1f} messages per session")
        return 0

    page = await pipeline.list_chat_sessions(
        args.user, page=args.page, limit=args.limit, document_id=args.document
    )
    if args.json:
        _print_json(
            {
                "data": [s.model_dump(mode="json") for s in page.data],
                "page": page.page,
                "limit": page.limit,
                "total": page.total,
                "total_pages": page.total_pages,
            }
        )
        return 0

    if not page.data:
        print("No chat sessions.")
        return 0
    for session in page.data:
        print(
            f"{session.id:>5}  document {session.document_id:<5}  "
            f"{session.message_count:>3} messages  {session.session_name}"
        )
    print(f"Page {page.page} of {page.total_pages} ({page.total} sessions)")
    return 0


async def _handle_delete_session(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    await pipeline.delete_chat_session(args.user, args.session_id)
    print(f"Deleted chat session {args.session_id}")
    return 0


async def _handle_stats(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    stats = await pipeline.stats(args.user)
    if args.json:
        _print_json(stats.model_dump())
        return 0

    print(f"Documents:  {stats.total}")
    print(f"Total size: {stats.total_size} bytes")
    for status, count in sorted(stats.by_status.items()):
        print(f"  {status:<11} {count}")
    return 0


_HANDLERS: dict[str, Handler] = {
    "ingest": _handle_ingest,
    "summarize": _handle_summarize,
    "embed": _handle_embed,
    "search": _handle_search,
    "keywords": _handle_keywords,
    "chat": _handle_chat,
    "list": _handle_list,
    "find": _handle_find,
    "get": _handle_get,
    "delete": _handle_delete,
    "sessions": _handle_sessions,
    "delete-session": _handle_delete_session,
    "stats": _handle_stats,
}


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the pipeline CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docaugment.cli",
        description="Ingest documents and augment them with summaries, keywords and embeddings.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML config file (default: config/config.yaml)",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    subparsers = parser.add_subparsers(dest="command", help="Pipeline commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest and summarize a file")
    ingest_parser.add_argument("file", help="Path to a TXT, PDF, DOCX or XLSX file")
    ingest_parser.add_argument("--user", type=int, default=1, help="Owner user id (default: 1)")
    ingest_parser.add_argument("--title", help="Document title (default: file name)")
    ingest_parser.add_argument("--kind", help="MIME type (default: guessed from the name)")

    # -- summarize / embed / keywords --
    for name, help_text in (
        ("summarize", "Regenerate a document summary"),
        ("embed", "Regenerate a document's embedding chunks"),
        ("keywords", "Extract key terms from a document"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("document_id", type=int, help="Document id")
        sub.add_argument("--user", type=int, help="Restrict to documents of this user")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Vector search a user's documents")
    search_parser.add_argument("query", help="Free-text query")
    search_parser.add_argument("--user", type=int, default=1, help="User id (default: 1)")
    search_parser.add_argument("--limit", type=int, help="Maximum number of documents")

    # -- chat --
    chat_parser = subparsers.add_parser("chat", help="Ask a question about a document")
    chat_parser.add_argument("document_id", type=int, help="Document id")
    chat_parser.add_argument("message", help="Question to ask")
    chat_parser.add_argument("--user", type=int, help="Restrict to documents of this user")

    # -- list / find --
    list_parser = subparsers.add_parser("list", help="List a user's documents, newest first")
    find_parser = subparsers.add_parser("find", help="Text search a user's documents")
    find_parser.add_argument("term", help="Text to look for in titles, file names and text")
    for sub in (list_parser, find_parser):
        sub.add_argument("--user", type=int, default=1, help="User id (default: 1)")
        sub.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
        sub.add_argument("--limit", type=int, default=10, help="Page size (default: 10)")

    # -- get / delete --
    for name, help_text in (
        ("get", "Show a stored document"),
        ("delete", "Delete a document with its chunks and chat sessions"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("document_id", type=int, help="Document id")
        sub.add_argument("--user", type=int, help="Restrict to documents of this user")

    # -- sessions / delete-session --
    sessions_parser = subparsers.add_parser("sessions", help="List a user's chat sessions")
    sessions_parser.add_argument("--user", type=int, default=1, help="User id (default: 1)")
    sessions_parser.add_argument("--document", type=int, help="Only sessions on this document")
    sessions_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    sessions_parser.add_argument("--limit", type=int, default=10, help="Page size (default: 10)")
    sessions_parser.add_argument(
        "--stats", action="store_true", help="Show session and message counts instead"
    )
    delete_session_parser = subparsers.add_parser(
        "delete-session", help="Delete a chat session and its messages"
    )
    delete_session_parser.add_argument("session_id", type=int, help="Chat session id")
    delete_session_parser.add_argument(
        "--user", type=int, default=1, help="Owner user id (default: 1)"
    )

    # -- stats --
    stats_parser = subparsers.add_parser("stats", help="Show document statistics")
    stats_parser.add_argument("--user", type=int, help="Only count this user's documents")

    return parser


async def _run(args: argparse.Namespace, pipeline: DocumentPipeline) -> int:
    await pipeline.initialize()
    try:
        return await _HANDLERS[args.command](args, pipeline)
    except DocAugmentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await pipeline.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Logs go to stderr so stdout carries only command output.
    pipeline = build_pipeline(Settings(), config_path=args.config, log_stream=sys.stderr)
    return asyncio.run(_run(args, pipeline))
