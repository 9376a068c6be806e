"""Recover interrupted claims and report articles that ran out of retries."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from common.models import ExhaustedArticle

logger = logging.getLogger(__name__)


def reset_stale_claims(
    store: Any,
    stale_after: timedelta,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> int:
    """
    Return articles stuck in processing for longer than stale_after to pending.

    An article only stays in processing when a run was interrupted mid-article.

    Returns:
        Number of articles reset (or that would be reset, with dry_run)
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - stale_after

    if dry_run:
        count = store.count_stale_claims(cutoff)
        logger.info("Dry run: %d articles claimed before %s would be reset", count, cutoff.isoformat())
        return count

    count = store.reset_stale_claims(cutoff)
    if count:
        logger.warning("Reset %d stale processing articles claimed before %s", count, cutoff.isoformat())
    else:
        logger.info("No stale processing articles")
    return count


def report_exhausted(store: Any, max_retries: int, limit: int) -> tuple[int, list[ExhaustedArticle]]:
    """
    Failed articles that will never be selected again.

    Returns:
        Tuple of (total count, up to ``limit`` most recent articles)
    """
    total = store.count_exhausted(max_retries)
    articles = store.list_exhausted(max_retries, limit) if total else []
    if total:
        logger.warning("%d articles exhausted %d retries", total, max_retries)
    return total, articles
