"""CLI for the processing recovery sweep."""

from __future__ import annotations

import logging
import sys
from datetime import timedelta

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from common.cli_helpers import setup_logging
from common.content_store import ContentStore
from common.db import get_session
from common.errors import ConfigurationError
from process_articles.config import load_config
from sweep_articles.helpers import parse_sweep_articles_args
from sweep_articles.sweep_articles import report_exhausted, reset_stale_claims

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    args = parse_sweep_articles_args(argv)

    try:
        config = load_config(args.config)
        stale_minutes = args.stale_minutes or config.sweep.stale_after_minutes
        report_limit = args.report_limit or config.sweep.report_limit

        with get_session() as session:
            store = ContentStore(session)
            reset_stale_claims(store, timedelta(minutes=stale_minutes), dry_run=args.dry_run)

            if args.report:
                total, articles = report_exhausted(store, config.batch.max_retries, report_limit)
                for article in articles:
                    logger.info(
                        "  %s | %s | retries=%d | %s",
                        article.id,
                        article.original_url,
                        article.retry_count,
                        article.error_message or "-",
                    )
                if total > len(articles):
                    logger.info("  ... and %d more", total - len(articles))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except SQLAlchemyError as exc:
        logger.error("Content store unavailable: %s", exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
