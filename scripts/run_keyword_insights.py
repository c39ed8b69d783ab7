"""
Run a keyword insights search from CLI.

Prints the ranked table, then an analysis of the top results or a
generated idea when the dashboard has no data.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from app.conversation import ResultFormatter
from app.services.insight_service import InsightService
from llm_synthesis import CompletionUnavailableError


async def _run(args: argparse.Namespace) -> int:
    service = InsightService()
    try:
        outcome = await service.keyword_insights(
            keyword=args.keyword,
            period_days=args.period,
            limit=args.limit,
            min_growth_threshold=args.min_growth,
        )
        if not outcome.succeeded and not outcome.needs_fallback:
            print(json.dumps({"failure_code": outcome.failure_code, "message": outcome.message}, indent=2))
            return 1

        if outcome.insights:
            formatter = ResultFormatter(result_limit=args.limit)
            print(formatter.summary(outcome))
            print(formatter.insights_table(outcome.insights).text)
        else:
            print(f'No Creative Center data for "{args.keyword}".')

        if args.no_analysis:
            return 0
        try:
            print()
            print(await service.analyze(outcome, top_n=args.top))
        except CompletionUnavailableError as exc:
            print(f"Analysis unavailable: {exc}")
            return 1
        return 0
    finally:
        await service.shutdown()


def main() -> int:
    parser = argparse.ArgumentParser(description="Search TikTok Creative Center keyword insights.")
    parser.add_argument("keyword", nargs="?", default="fitness", help="Keyword to search for.")
    parser.add_argument("--period", type=int, default=None, help="Period in days, e.g. 7, 30 or 120.")
    parser.add_argument("--limit", type=int, default=10, help="Maximum number of ranked records.")
    parser.add_argument("--top", type=int, default=5, help="Records included in the analysis.")
    parser.add_argument(
        "--min-growth",
        dest="min_growth",
        type=float,
        default=None,
        help="Keep only records whose popularity change reaches this percentage.",
    )
    parser.add_argument(
        "--no-analysis",
        dest="no_analysis",
        action="store_true",
        help="Skip the LLM analysis step.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").strip().upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
