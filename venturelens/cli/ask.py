# =============================================================================
# venturelens/cli/ask.py: CLI Ask Command (Streamed Question Answering)
# =============================================================================
#
# Asks one question against the knowledge base from the terminal and prints
# the answer as it streams in, followed by the source list.  Uses the same
# QueryService the /api/v1/query endpoint uses.
#
# Typical usage:
#   python -m venturelens.cli.ask "Which fintech startups raised in Bangalore?"
#   python -m venturelens.cli.ask "Latest Series A rounds" --mode web
#   python -m venturelens.cli.ask "Seed rounds this month" --language hi
# =============================================================================

"""Standalone CLI for asking the VentureLens knowledge base a question."""

from __future__ import annotations

import argparse
import asyncio
import sys

from venturelens.models.query import QueryAnswer, QueryRequest, RetrievalMode
from venturelens.utils.errors import VentureLensError, categorize_error


async def _run(args: argparse.Namespace) -> int:
    from venturelens.main import build_components, config, settings

    components = build_components(settings, config)
    await components["store"].initialize()
    service = components["query_service"]
    request = QueryRequest(
        query=args.question,
        mode=RetrievalMode(args.mode),
        language=args.language,
    )

    answer: QueryAnswer | None = None
    try:
        async for item in service.stream(request):
            if isinstance(item, QueryAnswer):
                answer = item
            else:
                print(item.content, end="", flush=True)
    except VentureLensError as exc:
        print(f"\nError ({categorize_error(exc).value}): {exc.message}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()

    print()
    if answer is None:
        return 1
    if answer.citations:
        print("\nSources:")
        for citation in answer.citations:
            suffix = f"  {citation.url}" if citation.url else ""
            print(f"  - {citation.name} ({citation.category}){suffix}")
    if answer.web is not None and answer.web.content:
        print("\nFrom the web:\n")
        print(answer.web.content)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m venturelens.cli.ask",
        description="Ask a question about startup funding.",
    )
    parser.add_argument("question", help="The question to answer")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in RetrievalMode],
        default=RetrievalMode.COMBINED.value,
        help="Where the answer may come from (default: combined)",
    )
    parser.add_argument("--language", default="en", help="Response language code (default: en)")
    return parser


def main() -> None:
    """CLI entry point for the ask tool."""
    args = _build_parser().parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
