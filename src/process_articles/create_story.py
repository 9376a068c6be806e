"""Build stories and insert them at most once per (source, url)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from common.models import ArticleSummary, RawArticle, Story

logger = logging.getLogger(__name__)


def story_published_at(article: RawArticle, now: Optional[datetime] = None) -> datetime:
    """Published time, then fetch time, then now. Never None."""
    return article.published_at or article.fetched_at or now or datetime.now(timezone.utc)


def build_story(
    article: RawArticle,
    summary: ArticleSummary,
    source_id: str,
    topic_ids: list[str],
    auto_approve: bool = True,
    now: Optional[datetime] = None,
) -> Story:
    """Build the story record for an accepted article."""
    language = article.source.language
    return Story(
        source_id=source_id,
        original_url=article.original_url,
        original_title=article.original_title,
        title_ar=article.original_title if language == "ar" else None,
        title_en=article.original_title if language == "en" else None,
        summary_ar=summary.summary_ar,
        summary_en=summary.summary_en,
        why_it_matters_ar=summary.why_it_matters_ar,
        why_it_matters_en=summary.why_it_matters_en,
        ai_quality_score=summary.quality_score,
        full_content=article.full_content,
        content_quality=article.content_quality or 0.0,
        image_url=article.image_url,
        video_url=article.video_url,
        topic_ids=topic_ids,
        published_at=story_published_at(article, now),
        is_approved=auto_approve,
    )


def create_story(story: Story, store: Any) -> tuple[str, bool]:
    """
    Insert a story unless one already exists for its (source_id, original_url).

    Returns:
        Tuple of (story_id, created). created is False when an existing story was reused.

    Raises:
        RuntimeError: If the insert was refused and no existing story can be found
    """
    existing_id = store.find_story_id(story.source_id, story.original_url)
    if existing_id:
        logger.info("Story already exists for %s (id=%s)", story.original_url, existing_id)
        return existing_id, False

    story_id = store.insert_story(story)
    if story_id:
        return story_id, True

    # Another run inserted the same story between the lookup and the insert.
    existing_id = store.find_story_id(story.source_id, story.original_url)
    if existing_id is None:
        raise RuntimeError(f"Story insert for {story.original_url} was refused but no story matches")
    logger.info("Story for %s created concurrently (id=%s)", story.original_url, existing_id)
    return existing_id, False
