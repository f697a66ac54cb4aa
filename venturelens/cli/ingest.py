# =============================================================================
# venturelens/cli/ingest.py: CLI Ingest Command (Knowledge Base Management)
# =============================================================================
#
# Standalone CLI for filling the VentureLens knowledge base without running
# the API server.  It builds the same components as the web app (see
# venturelens.main.build_components) against the configured SQLite file.
#
# Supported subcommands:
#
#   file  : Upload a local document (PDF, DOCX, XLSX, XLS, JSON, TXT, CSV)
#           and process it: extract -> chunk -> tag -> store -> deals
#   crawl : Run one crawl pass over the configured funding-news sources
#   deals : Print the most recently extracted funding deals
#
# Usage examples:
#   python -m venturelens.cli.ingest file --path reports/q3.pdf --category reports
#   python -m venturelens.cli.ingest crawl
#   python -m venturelens.cli.ingest deals --limit 20
# =============================================================================

"""Standalone CLI for building the VentureLens knowledge base.

Usage::

    python -m venturelens.cli.ingest file --path /path/to/report.pdf
    python -m venturelens.cli.ingest crawl
    python -m venturelens.cli.ingest deals --limit 20
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Any

from venturelens.models.knowledge import DocumentStatus


async def _open_components() -> dict[str, Any]:
    """Build and initialise the application components.

    Imported lazily so ``--help`` never touches settings or the database.
    """
    from venturelens.main import build_components, config, settings

    components = build_components(settings, config)
    await components["store"].initialize()
    return components


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: {path} is not a file", file=sys.stderr)
        return 1

    service = components["ingestion_service"]
    media_type, _ = mimetypes.guess_type(path.name)
    print(f"Ingesting document: {path.name}")

    document = await service.register_upload(
        path.read_bytes(),
        file_name=path.name,
        media_type=media_type,
        category=args.category,
    )
    result = await service.process_document(document.document_id)

    if result.status is DocumentStatus.ERROR:
        print(f"\nIngestion failed: {result.error}", file=sys.stderr)
        return 1

    print("\nIngestion complete:")
    print(f"  Document ID:     {result.document_id}")
    print(f"  Chunks created:  {result.chunks_created}")
    print(f"  Keywords tagged: {result.keywords_tagged}")
    print(f"  Deals found:     {result.deals_extracted}")
    return 0


async def _handle_crawl(components: dict[str, Any]) -> int:
    coordinator = components["crawl_coordinator"]
    print(f"Crawling {len(coordinator.sources)} sources")

    report = await coordinator.run()
    for result in report.results:
        detail = result.reason or result.error or f"{result.chunks} chunks"
        print(f"  {result.status.value:<8} {result.source:<30} {detail}")

    print(
        f"\nProcessed {report.processed}, skipped {report.skipped}, "
        f"errors {report.errors} in {report.duration_seconds:.2f}s"
    )
    return 0 if report.errors == 0 else 2


async def _handle_deals(args: argparse.Namespace, components: dict[str, Any]) -> int:
    deals = await components["store"].list_deals(limit=args.limit)
    if not deals:
        print("No deals extracted yet.")
        return 0

    for deal in deals:
        round_name = deal.funding_round or "-"
        print(f"  {deal.startup_name:<30} ${deal.funding_amount:>16,.0f}  {round_name}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    components = await _open_components()
    try:
        if args.command == "file":
            return await _handle_file(args, components)
        if args.command == "crawl":
            return await _handle_crawl(components)
        return await _handle_deals(args, components)
    finally:
        await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m venturelens.cli.ingest",
        description="Manage the VentureLens knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a local document")
    file_parser.add_argument("--path", required=True, help="Path to the document")
    file_parser.add_argument("--category", default=None, help="Category label")

    # -- crawl --
    subparsers.add_parser("crawl", help="Run one crawl pass over the configured sources")

    # -- deals --
    deals_parser = subparsers.add_parser("deals", help="Show recently extracted deals")
    deals_parser.add_argument("--limit", type=int, default=20, help="Maximum rows (default: 20)")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for the ingestion tool."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
