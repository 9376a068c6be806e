"""Helper functions for sweep_articles CLI."""

from __future__ import annotations

import argparse

from common.cli_helpers import positive_int


def parse_sweep_articles_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for sweep_articles."""

    parser = argparse.ArgumentParser(
        description="Reset stale processing claims and report exhausted articles",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name (prod/test) or path to YAML file (default: PROCESS_ARTICLES_CONFIG or prod)",
    )
    parser.add_argument(
        "--stale-minutes",
        type=lambda v: positive_int(v, "stale-minutes"),
        default=None,
        help="Reset processing claims older than this many minutes (default from config)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count stale claims without resetting them",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Report failed articles that have exhausted their retries",
    )
    parser.add_argument(
        "--report-limit",
        type=lambda v: positive_int(v, "report-limit"),
        default=None,
        help="Maximum exhausted articles to list (default from config)",
    )
    return parser.parse_args(argv)
