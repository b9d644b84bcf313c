"""Command-line entry point for the daily summary."""
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

import requests
from loguru import logger
from openai import OpenAIError

from daily_summary.graphql import GraphQLErrorsError, GraphQLRequestError
from daily_summary.narrative import OpenAIEmptyResponseError, OpenAIRetryError
from daily_summary.output import write_summary_files
from daily_summary.settings import Settings, get_settings
from daily_summary.summary import build_clients, generate_summary
from daily_summary.window import DayWindow

RUN_ERRORS = (
    GraphQLRequestError,
    GraphQLErrorsError,
    requests.RequestException,
    TypeError,
    ValueError,
    OpenAIError,
    OpenAIEmptyResponseError,
    OpenAIRetryError,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Daily activity summary")
    day = parser.add_mutually_exclusive_group()
    day.add_argument(
        "--date",
        type=date.fromisoformat,
        help="Day to summarize (YYYY-MM-DD); defaults to today",
    )
    day.add_argument(
        "--yesterday",
        action="store_true",
        help="Summarize yesterday instead of today",
    )
    parser.add_argument(
        "--skip-llm",
        action="store_true",
        help="Skip narrative generation",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print instead of writing output files",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for output files (overrides SUMMARY_OUTPUT_DIR)",
    )
    return parser.parse_args(argv)


def resolve_window(args: argparse.Namespace, settings: Settings) -> DayWindow:
    """Pick the day window from the arguments."""
    tz = settings.resolve_timezone()
    if args.date is not None:
        return DayWindow(args.date, tz)
    if args.yesterday:
        return DayWindow.yesterday(tz)
    return DayWindow.today(tz)


def run_summary(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the summary workflow and return an exit status."""
    window = resolve_window(args, settings)
    clients = build_clients(settings, skip_llm=args.skip_llm)
    try:
        result = generate_summary(window, settings, clients, skip_llm=args.skip_llm)
    except RUN_ERRORS as exc:
        logger.error("Error generating summary: {error}", error=str(exc))
        return 1
    finally:
        clients.close()

    if args.dry_run:
        logger.info("--- DRY RUN OUTPUT ---")
        logger.opt(raw=True).info(
            "{message}\n",
            message=json.dumps(result.to_payload(), indent=2),
        )
        return 0
    output_dir = Path(args.output_dir or settings.summary_output_dir)
    json_path, md_path = write_summary_files(result, output_dir, window.label)
    logger.info(
        "Summary generated and saved to {json_path} and {md_path}",
        json_path=str(json_path),
        md_path=str(md_path),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the summary CLI."""
    logger.info("Starting summary run")
    args = parse_args(argv)
    settings = get_settings()
    return run_summary(args, settings)


if __name__ == "__main__":
    sys.exit(main())
