# =============================================================================
# javari_knowledge/cli/ingest.py -- Knowledge base ingestion CLI
# =============================================================================
#
# Subcommands:
#
#   text      -- Ingest raw text passed on the command line (or "-" for stdin)
#   file      -- Ingest a .txt / .md / .pdf file
#   url       -- Fetch a web page and ingest its readable text
#   directory -- Ingest every supported file in a directory
#   search    -- Semantic search over stored knowledge records
#
# --dry-run swaps the Supabase store for the in-memory store: documents are
# still chunked and embedded, but nothing is written to the database.
#
# Usage examples:
#   python -m javari_knowledge.cli.ingest text "Javari can ..." --source faq
#   python -m javari_knowledge.cli.ingest file --path docs/manual.md --category manual
#   python -m javari_knowledge.cli.ingest url --url https://craudiovizai.com/about
#   python -m javari_knowledge.cli.ingest search "how do credits work"
# =============================================================================

"""Standalone CLI for loading documents into the Javari knowledge base."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from javari_knowledge.config.settings import Settings
from javari_knowledge.utils.errors import ConfigurationError, KnowledgeError

_SUPPORTED_SUFFIXES = (".txt", ".md", ".markdown", ".pdf")


def _build_components(app_settings: Settings, dry_run: bool) -> dict[str, Any]:
    """Construct the services, deferring provider imports until needed."""
    from javari_knowledge.main import build_components

    if not app_settings.openai_api_key:
        raise ConfigurationError(
            message="OPENAI_API_KEY is not set; embeddings are unavailable",
            provider_name="openai_embedding",
        )
    return build_components(app_settings, dry_run=dry_run)


def _print_error(exc: KnowledgeError) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if exc.progress is not None:
        progress = exc.progress
        print(
            f"  Partial progress: {progress.chunks_embedded} embedded, "
            f"{progress.records_written} written of {progress.chunks_created} chunks",
            file=sys.stderr,
        )


def _print_result(result) -> None:  # noqa: ANN001
    if result.skipped_duplicate:
        print(f"Skipped {result.source}: content already stored ({result.content_hash})")
        return
    print("\nIngestion complete:")
    print(f"  Source:          {result.source}")
    print(f"  Chunks created:  {result.chunks_created}")
    print(f"  Records written: {result.records_written}")
    print(f"  Total tokens:    {result.total_tokens}")
    print(f"  Time:            {result.ingestion_time:.2f}s")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_text(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from javari_knowledge.services.ingestion.loader import DocumentLoader

    text = sys.stdin.read() if args.text == "-" else args.text
    document = DocumentLoader.from_text(text, source=args.source, category=args.category, title=args.title)
    result = await components["ingestion_service"].ingest(document)
    _print_result(result)
    return 0


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from javari_knowledge.services.ingestion.loader import DocumentLoader

    print(f"Ingesting file: {args.path}")
    document = DocumentLoader().from_file(
        args.path, source=args.source, category=args.category, title=args.title
    )
    result = await components["ingestion_service"].ingest(document)
    _print_result(result)
    return 0


async def _handle_url(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from javari_knowledge.services.ingestion.loader import DocumentLoader

    print(f"Ingesting URL: {args.url}")
    document = await DocumentLoader().from_url(args.url, category=args.category, title=args.title)
    result = await components["ingestion_service"].ingest(document)
    _print_result(result)
    return 0


async def _handle_directory(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from javari_knowledge.services.ingestion.loader import DocumentLoader

    directory = Path(args.path)
    if not directory.is_dir():
        print(f"Error: not a directory: {directory}", file=sys.stderr)
        return 1

    loader = DocumentLoader()
    files = sorted(p for p in directory.iterdir() if p.suffix.lower() in _SUPPORTED_SUFFIXES)
    print(f"Ingesting directory: {directory} ({len(files)} files)")

    failures = 0
    loaded: list[Path] = []
    documents = []
    for path in files:
        try:
            documents.append(loader.from_file(path, category=args.category))
        except KnowledgeError as exc:
            failures += 1
            print(f"  FAILED {path.name}: {exc}", file=sys.stderr)
        else:
            loaded.append(path)

    results = await components["ingestion_service"].ingest_many(
        documents, max_parallel_documents=args.parallel
    )

    total_chunks = 0
    for path, result in zip(loaded, results):
        if isinstance(result, KnowledgeError):
            failures += 1
            print(f"  FAILED {path.name}: {result}", file=sys.stderr)
        elif isinstance(result, BaseException):
            raise result
        else:
            total_chunks += result.records_written

    print("\nDirectory ingestion complete:")
    print(f"  Files processed: {len(files)}")
    print(f"  Files failed:    {failures}")
    print(f"  Records written: {total_chunks}")
    return 1 if failures else 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    app_settings: Settings = components["settings"]
    threshold = args.threshold if args.threshold is not None else app_settings.search_match_threshold
    count = args.count if args.count is not None else app_settings.search_match_count
    hits = await components["search_service"].search(
        args.query, match_threshold=threshold, match_count=count
    )
    if not hits:
        print("No matching knowledge records.")
        return 0
    for rank, hit in enumerate(hits, start=1):
        section = f" / {hit.section}" if hit.section else ""
        print(f"{rank:>2}. [{hit.similarity:.3f}] {hit.source}{section}")
        print(f"    {hit.content[:200].replace(chr(10), ' ')}")
    return 0


_HANDLERS = {
    "text": _handle_text,
    "file": _handle_file,
    "url": _handle_url,
    "directory": _handle_directory,
    "search": _handle_search,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    try:
        components = _build_components(app_settings, dry_run=args.dry_run)
    except KnowledgeError as exc:
        _print_error(exc)
        return 1

    try:
        return await _HANDLERS[args.command](args, components)
    except KnowledgeError as exc:
        _print_error(exc)
        return 1
    finally:
        await components["knowledge_store"].aclose()


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m javari_knowledge.cli.ingest",
        description="Load documents into the Javari knowledge base.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Chunk and embed, but keep records in memory instead of Supabase",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- text --
    text_parser = subparsers.add_parser("text", help="Ingest raw text ('-' reads stdin)")
    text_parser.add_argument("text", help="Document text, or '-' for stdin")
    text_parser.add_argument("--source", required=True, help="Source identifier")
    text_parser.add_argument("--category", default="manual", help="Category (default: manual)")
    text_parser.add_argument("--title", default=None, help="Optional title")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a .txt, .md or .pdf file")
    file_parser.add_argument("--path", required=True, help="Path to the file")
    file_parser.add_argument("--source", default=None, help="Source identifier (default: file name)")
    file_parser.add_argument("--category", default="document", help="Category (default: document)")
    file_parser.add_argument("--title", default=None, help="Optional title")

    # -- url --
    url_parser = subparsers.add_parser("url", help="Ingest the readable text of a web page")
    url_parser.add_argument("--url", required=True, help="Page URL")
    url_parser.add_argument("--category", default="webpage", help="Category (default: webpage)")
    url_parser.add_argument("--title", default=None, help="Optional title")

    # -- directory --
    dir_parser = subparsers.add_parser("directory", help="Ingest all supported files in a directory")
    dir_parser.add_argument("--path", required=True, help="Directory path")
    dir_parser.add_argument("--category", default="document", help="Category (default: document)")
    dir_parser.add_argument(
        "--parallel",
        type=int,
        default=2,
        help="Documents ingested at once (default: 2)",
    )

    # -- search --
    search_parser = subparsers.add_parser("search", help="Semantic search over the knowledge base")
    search_parser.add_argument("query", help="Natural-language query")
    search_parser.add_argument("--threshold", type=float, default=None, help="Minimum similarity")
    search_parser.add_argument("--count", type=int, default=None, help="Maximum results")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, load settings, dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    from javari_knowledge.utils.logging import configure_logging

    configure_logging(log_level=app_settings.log_level)

    exit_code = asyncio.run(_run(args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
