"""CLI for processing pending raw articles into stories."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from common.aws import upload_jsonl_records_to_s3
from common.cli_helpers import setup_logging
from common.content_store import ContentStore
from common.db import check_connection, ensure_schema, get_session
from common.errors import ConfigurationError
from common.local_io import save_jsonl_local
from process_articles.config import load_config, set_config
from process_articles.helpers import build_run_records, parse_process_articles_args
from process_articles.process_articles import process_articles
from process_articles.summarize import OpenAISummarizer

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    args = parse_process_articles_args(argv)

    try:
        config = load_config(args.config)
        set_config(config)
        summarizer = OpenAISummarizer(config=config.provider)

        with get_session() as session:
            check_connection(session)
            if args.ensure_schema:
                ensure_schema(session)

            run_at = datetime.now(timezone.utc)
            summary = process_articles(
                ContentStore(session),
                summarizer,
                limit=args.limit,
                config=config,
            )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except SQLAlchemyError as exc:
        logger.error("Content store unavailable: %s", exc)
        return 1

    print(json.dumps(summary.counts(), ensure_ascii=False))

    if args.load_s3 or args.load_local:
        records = build_run_records(summary, run_at)
        if args.load_s3:
            upload_jsonl_records_to_s3(records, "process_runs", run_at)
        if args.load_local:
            save_jsonl_local(records, "process_runs", run_at)

    return 0


if __name__ == "__main__":
    sys.exit(main())
