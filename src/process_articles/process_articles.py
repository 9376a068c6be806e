"""Turn pending raw articles into bilingual stories."""

from __future__ import annotations

import logging
from typing import Any, Optional

from common.errors import SummarizationError
from common.models import (
    ArticleStatus,
    ItemOutcome,
    ItemResult,
    ModelTier,
    RawArticle,
    RunSummary,
)
from process_articles.config import BatchConfig, ProcessConfig, get_config
from process_articles.create_story import build_story, create_story
from process_articles.pacing import IntervalLimiter
from process_articles.policy import (
    accept,
    is_content_sufficient,
    model_name,
    resolve_body,
    select_model,
    truncate_content,
)
from process_articles.resolve_source import resolve_source
from process_articles.resolve_topics import resolve_topics

logger = logging.getLogger(__name__)

CONTENT_TOO_SHORT = "Content too short"
ALREADY_CLAIMED = "Already claimed by another run"
STATUS_CHANGED = "Status changed by another run"
TITLE_PREVIEW_CHARS = 50


def clamp_limit(limit: Any, batch: BatchConfig) -> int:
    """Clamp a requested batch size into [1, max_limit]; default when absent or not a number."""
    if limit is None or isinstance(limit, bool):
        return batch.default_limit
    try:
        value = int(limit)
    except (TypeError, ValueError):
        logger.warning("Invalid limit %r, using default %d", limit, batch.default_limit)
        return batch.default_limit
    return max(1, min(value, batch.max_limit))


def _finish(
    store: Any,
    article: RawArticle,
    target: ArticleStatus,
    *,
    error_message: Optional[str] = None,
    story_id: Optional[str] = None,
    increment_retry: bool = False,
) -> bool:
    return store.transition(
        article.id,
        ArticleStatus.PROCESSING,
        target,
        error_message=error_message,
        story_id=story_id,
        increment_retry=increment_retry,
    )


def _status_changed(article: RawArticle, title: str, tier: Optional[ModelTier]) -> ItemResult:
    logger.warning("Skipping article %s: %s", article.id, STATUS_CHANGED)
    return ItemResult(article.id, title, ItemOutcome.SKIPPED, model_tier=tier, error=STATUS_CHANGED)


def _fail(
    store: Any,
    article: RawArticle,
    title: str,
    tier: Optional[ModelTier],
    error: str,
) -> ItemResult:
    try:
        written = _finish(store, article, ArticleStatus.FAILED, error_message=error, increment_retry=True)
    except Exception:
        # Left in processing; the recovery sweep returns it to pending.
        logger.exception("Could not record failure for article %s", article.id)
        written = True
    if not written:
        return _status_changed(article, title, tier)
    return ItemResult(article.id, title, ItemOutcome.FAILED, model_tier=tier, error=error)


def process_article(
    article: RawArticle,
    store: Any,
    summarizer: Any,
    config: ProcessConfig,
    limiter: IntervalLimiter,
) -> ItemResult:
    """
    Drive one article through claim, gating, summarization and story creation.

    Errors are recorded on the article and in the returned result, never raised.
    A status write that loses to another run is reported as skipped.
    """
    policy = config.policy
    title = (article.original_title or "")[:TITLE_PREVIEW_CHARS]

    try:
        claimed = store.claim(article.id, config.batch.max_retries)
    except Exception as exc:
        logger.exception("Could not claim article %s", article.id)
        return ItemResult(article.id, title, ItemOutcome.SKIPPED, error=f"Claim failed: {exc}")

    if not claimed:
        logger.warning("Skipping article %s: %s", article.id, ALREADY_CLAIMED)
        return ItemResult(article.id, title, ItemOutcome.SKIPPED, error=ALREADY_CLAIMED)

    tier: Optional[ModelTier] = None
    try:
        body = resolve_body(article)
        if not is_content_sufficient(body, policy):
            if not _finish(store, article, ArticleStatus.REJECTED, error_message=CONTENT_TOO_SHORT):
                return _status_changed(article, title, tier)
            logger.info("Rejected article %s: %s (%d chars)", article.id, CONTENT_TOO_SHORT, len(body))
            return ItemResult(article.id, title, ItemOutcome.REJECTED, error=CONTENT_TOO_SHORT)

        tier = select_model(article.source.reliability_score, policy)
        limiter.acquire()
        summary = summarizer.summarize(
            title=article.original_title,
            content=truncate_content(body, policy),
            language=article.source.language,
            source_name=article.source.name,
            model=model_name(tier, policy),
        )

        if not accept(summary.quality_score, policy):
            error = f"Quality score too low: {summary.quality_score}"
            if not _finish(store, article, ArticleStatus.REJECTED, error_message=error):
                return _status_changed(article, title, tier)
            logger.info("Rejected article %s: %s", article.id, error)
            return ItemResult(article.id, title, ItemOutcome.REJECTED, model_tier=tier, error=error)

        source_id = resolve_source(article.source, article.original_url, store)
        topic_ids = resolve_topics(
            summary.topics,
            article.topic_ids,
            store,
            fallback_slug=config.batch.fallback_topic_slug,
        )
        story = build_story(
            article,
            summary,
            source_id,
            topic_ids,
            auto_approve=config.batch.auto_approve,
        )
        story_id, created = create_story(story, store)
        finished = _finish(store, article, ArticleStatus.PROCESSED, story_id=story_id)

    except SummarizationError as exc:
        logger.warning("Summarization failed for article %s: %s", article.id, exc)
        return _fail(store, article, title, tier, str(exc))
    except Exception as exc:
        logger.exception("Processing failed for article %s", article.id)
        return _fail(store, article, title, tier, str(exc))

    if not finished:
        return _status_changed(article, title, tier)

    outcome = ItemOutcome.PROCESSED if created else ItemOutcome.DUPLICATE
    logger.info("Article %s %s -> story %s (%s tier)", article.id, outcome.value, story_id, tier.value)
    return ItemResult(article.id, title, outcome, story_id=story_id, model_tier=tier)


def process_articles(
    store: Any,
    summarizer: Any,
    limit: Any = None,
    config: Optional[ProcessConfig] = None,
    limiter: Optional[IntervalLimiter] = None,
) -> RunSummary:
    """
    Process the oldest claimable raw articles in a single sequential pass.

    Args:
        store: Content store (see common.content_store.ContentStore)
        summarizer: Object with summarize(title, content, language, source_name, model)
        limit: Requested batch size, clamped into [1, max_limit]
        config: Processing config (default: loaded config)
        limiter: Pacing for summarization calls (default: fixed delay from config)

    Returns:
        RunSummary with per-outcome counts, model tier usage and per-article results
    """
    config = config or get_config()
    limiter = limiter or IntervalLimiter(config.batch.delay_seconds)
    batch_size = clamp_limit(limit, config.batch)

    articles = store.select_claimable(batch_size, config.batch.max_retries)
    summary = RunSummary()
    if not articles:
        logger.info("No pending articles")
        return summary

    logger.info("Processing %d articles (limit=%d)", len(articles), batch_size)

    seen: set[str] = set()
    for article in articles:
        if article.id in seen:
            continue
        seen.add(article.id)
        summary.record(process_article(article, store, summarizer, config, limiter))

    logger.info(
        "Processed %d articles: %d successful (%d duplicates), %d rejected, %d failed, %d skipped",
        summary.total_processed,
        summary.successful,
        summary.duplicates_skipped,
        summary.rejected,
        summary.failed,
        summary.claims_lost,
    )
    return summary
