"""
Enrich every accessible GitHub repository and write the two JSON documents.

Lists the repositories visible to GITHUB_TOKEN, enriches each one with its
last commit, 52-week commit activity, language breakdown and top
contributors, then writes repos_index_enriched.json and repos_summary.json
for the visualization layer.

Usage:
    python -m gitlore.jobs.enrich_repos [--workers N] [--output-dir DIR]
                                        [--deadline-seconds S] [--debug]
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from gitlore.config.settings import settings
from gitlore.exceptions import EnricherError
from gitlore.orchestrator_enrich import EnrichmentOrchestrator, PipelineResult
from gitlore.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitlore-enrich",
        description="Enrich accessible GitHub repositories and build summary documents.",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=settings.ENRICH_WORKERS,
        help=f"Concurrent enrichment workers (default: {settings.ENRICH_WORKERS})",
    )
    parser.add_argument(
        "--output-dir",
        default=settings.OUTPUT_DIR,
        help=f"Directory for the JSON documents (default: {settings.OUTPUT_DIR})",
    )
    parser.add_argument(
        "--deadline-seconds",
        type=float,
        default=settings.RUN_DEADLINE_SECONDS,
        help="Stop dispatching new records after this many seconds",
    )
    parser.add_argument("--debug", action="store_true", default=settings.DEBUG, help="Verbose logging")
    return parser


def print_report(result: PipelineResult) -> None:
    """Print the end-of-run report."""
    summary = result.summary
    print("\nGenerated:")
    if result.documents is not None:
        print(f"   {result.documents.index_path}")
        print(f"   {result.documents.summary_path}")
    print("\nStats:")
    print(f"   Repositories: {len(result.records)}")
    print(f"   Total Stars: {summary.engagement.total_stars}")
    print(f"   Total Commits: {summary.engagement.total_commits}")
    print(f"   Stats pending (202): {summary.enrichment.repos_stats_pending}")
    if result.enrichment.cancelled:
        print(f"   Not enriched (deadline): {result.enrichment.not_started}")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logger("gitlore", level=logging.DEBUG if args.debug else logging.INFO)

    orchestrator = EnrichmentOrchestrator(
        workers=args.workers,
        deadline_seconds=args.deadline_seconds,
        output_dir=args.output_dir,
    )
    try:
        result = asyncio.run(orchestrator.run())
    except EnricherError as exc:
        logger.error(f"Enrichment run aborted: {exc}")
        return 1

    print_report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
