"""Helper functions for process_articles CLI."""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Any

from common.models import RunSummary
from common.serialization import serialize_dataclass


def parse_process_articles_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for process_articles."""

    parser = argparse.ArgumentParser(
        description="Summarize pending raw articles into bilingual stories",
    )

    # Input options
    parser.add_argument(
        "--limit",
        default=None,
        help="Maximum articles to process (clamped to the configured maximum, default from config)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name (prod/test) or path to YAML file (default: PROCESS_ARTICLES_CONFIG or prod)",
    )
    parser.add_argument(
        "--ensure-schema",
        action="store_true",
        help="Create the unique indexes and columns the pipeline relies on before running",
    )

    # Output options
    parser.add_argument("--load-s3", action="store_true", help="Upload run results to S3")
    parser.add_argument("--load-local", action="store_true", help="Save run results to local file")

    return parser.parse_args(argv)


def build_run_records(summary: RunSummary, run_at: datetime) -> list[dict[str, Any]]:
    """Flatten a run into JSONL records: one per article, then one summary record."""
    records = []
    for result in summary.results:
        record = serialize_dataclass(result)
        record["record_type"] = "article"
        record["success"] = result.success
        record["run_at"] = run_at.isoformat()
        records.append(record)

    summary_record = {"record_type": "summary", "run_at": run_at.isoformat()}
    summary_record.update(summary.counts())
    records.append(summary_record)
    return records
