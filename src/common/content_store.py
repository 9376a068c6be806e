"""Postgres-backed content store used by the processing stages.

Every write is a single-row conditional statement keyed by a stable id or
natural key and is committed immediately, so a status written before a
model call is visible to other runs before that call starts.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.models import (
    CLAIMABLE_STATUSES,
    ArticleStatus,
    ExhaustedArticle,
    RawArticle,
    RssSource,
    SourceRecord,
    Story,
    validate_transition,
)

logger = logging.getLogger(__name__)


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _float_or_none(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_article(row: Any) -> RawArticle:
    source = RssSource(
        id=str(row["rss_source_id"]),
        name=row["source_name"],
        language=row["source_language"] or "ar",
        reliability_score=float(row["source_reliability"]) if row["source_reliability"] is not None else 0.8,
        website_url=row["source_website_url"],
        logo_url=row["source_logo_url"],
    )
    return RawArticle(
        id=str(row["id"]),
        rss_source_id=str(row["rss_source_id"]),
        original_url=row["original_url"],
        original_title=row["original_title"] or "",
        source=source,
        full_content=row["full_content"],
        original_content=row["original_content"],
        original_description=row["original_description"],
        image_url=row["image_url"],
        video_url=row["video_url"],
        content_quality=_float_or_none(row["content_quality"]),
        topic_ids=[str(topic_id) for topic_id in (row["topic_ids"] or [])],
        fetched_at=row["fetched_at"],
        published_at=row["published_at"],
        status=ArticleStatus(row["status"]),
        retry_count=row["retry_count"] or 0,
        error_message=row["error_message"],
        story_id=_str_or_none(row["story_id"]),
    )


class ContentStore:
    """Content store operations over a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def _execute(self, statement: Any, params: dict[str, Any]) -> Any:
        # A failed statement aborts the Postgres transaction; roll back so the
        # session stays usable for the next article.
        try:
            return self.session.execute(statement, params)
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    # Raw articles

    def select_claimable(self, limit: int, max_retries: int) -> list[RawArticle]:
        """Oldest claimable articles first, joined with their feed."""
        stmt = text(
            """
            SELECT
                a.id,
                a.rss_source_id,
                a.original_url,
                a.original_title,
                a.full_content,
                a.original_content,
                a.original_description,
                a.image_url,
                a.video_url,
                a.content_quality,
                a.topic_ids,
                a.fetched_at,
                a.published_at,
                a.status,
                a.retry_count,
                a.error_message,
                a.story_id,
                r.name AS source_name,
                r.language AS source_language,
                r.reliability_score AS source_reliability,
                r.website_url AS source_website_url,
                r.logo_url AS source_logo_url
            FROM raw_articles a
            JOIN rss_sources r ON r.id = a.rss_source_id
            WHERE a.status = ANY(:statuses)
              AND a.retry_count < :max_retries
            ORDER BY a.fetched_at ASC
            LIMIT :limit
            """
        )
        rows = self._execute(
            stmt,
            {
                "statuses": [status.value for status in CLAIMABLE_STATUSES],
                "max_retries": max_retries,
                "limit": limit,
            },
        ).mappings().all()
        articles = [_row_to_article(row) for row in rows]
        logger.info("Selected %d claimable articles", len(articles))
        return articles

    def claim(self, article_id: str, max_retries: int) -> bool:
        """Move an article to processing only if it is still claimable."""
        result = self._execute(
            text(
                """
                UPDATE raw_articles
                SET status = :processing,
                    claimed_at = :claimed_at
                WHERE id = :id
                  AND status = ANY(:statuses)
                  AND retry_count < :max_retries
                RETURNING id
                """
            ),
            {
                "processing": ArticleStatus.PROCESSING.value,
                "claimed_at": datetime.now(timezone.utc),
                "id": article_id,
                "statuses": [status.value for status in CLAIMABLE_STATUSES],
                "max_retries": max_retries,
            },
        )
        claimed = result.first() is not None
        self._commit()
        return claimed

    def transition(
        self,
        article_id: str,
        current: ArticleStatus,
        target: ArticleStatus,
        *,
        error_message: Optional[str] = None,
        story_id: Optional[str] = None,
        increment_retry: bool = False,
    ) -> bool:
        """Move an article from current to target status.

        Returns False if the article was no longer in ``current``.
        """
        validate_transition(current, target)
        processed_at = None if target is ArticleStatus.PENDING else datetime.now(timezone.utc)
        result = self._execute(
            text(
                """
                UPDATE raw_articles
                SET status = :target,
                    error_message = :error_message,
                    story_id = COALESCE(:story_id, story_id),
                    retry_count = retry_count + :retry_increment,
                    processed_at = COALESCE(:processed_at, processed_at),
                    claimed_at = NULL
                WHERE id = :id
                  AND status = :current
                RETURNING id
                """
            ),
            {
                "target": target.value,
                "error_message": error_message,
                "story_id": story_id,
                "retry_increment": 1 if increment_retry else 0,
                "processed_at": processed_at,
                "id": article_id,
                "current": current.value,
            },
        )
        updated = result.first() is not None
        self._commit()
        if not updated:
            logger.warning(
                "Article %s was not in status %s, %s not written",
                article_id, current.value, target.value,
            )
        return updated

    def reset_stale_claims(self, cutoff: datetime) -> int:
        """Return processing articles claimed before cutoff to pending."""
        validate_transition(ArticleStatus.PROCESSING, ArticleStatus.PENDING)
        result = self._execute(
            text(
                """
                UPDATE raw_articles
                SET status = :pending,
                    claimed_at = NULL
                WHERE status = :processing
                  AND (claimed_at IS NULL OR claimed_at < :cutoff)
                RETURNING id
                """
            ),
            {
                "pending": ArticleStatus.PENDING.value,
                "processing": ArticleStatus.PROCESSING.value,
                "cutoff": cutoff,
            },
        )
        reset = len(result.all())
        self._commit()
        return reset

    def count_stale_claims(self, cutoff: datetime) -> int:
        return self._execute(
            text(
                """
                SELECT COUNT(*)
                FROM raw_articles
                WHERE status = :processing
                  AND (claimed_at IS NULL OR claimed_at < :cutoff)
                """
            ),
            {"processing": ArticleStatus.PROCESSING.value, "cutoff": cutoff},
        ).scalar_one()

    def list_exhausted(self, max_retries: int, limit: int) -> list[ExhaustedArticle]:
        """Failed articles that have used up their retries, most recent first."""
        rows = self._execute(
            text(
                """
                SELECT id, original_url, original_title, retry_count, error_message, processed_at
                FROM raw_articles
                WHERE status = :failed
                  AND retry_count >= :max_retries
                ORDER BY processed_at DESC NULLS LAST
                LIMIT :limit
                """
            ),
            {"failed": ArticleStatus.FAILED.value, "max_retries": max_retries, "limit": limit},
        ).mappings().all()
        return [
            ExhaustedArticle(
                id=str(row["id"]),
                original_url=row["original_url"],
                original_title=row["original_title"] or "",
                retry_count=row["retry_count"],
                error_message=row["error_message"],
                processed_at=row["processed_at"],
            )
            for row in rows
        ]

    def count_exhausted(self, max_retries: int) -> int:
        return self._execute(
            text(
                """
                SELECT COUNT(*)
                FROM raw_articles
                WHERE status = :failed
                  AND retry_count >= :max_retries
                """
            ),
            {"failed": ArticleStatus.FAILED.value, "max_retries": max_retries},
        ).scalar_one()

    # Sources

    def find_source_id_by_name(self, name: str) -> Optional[str]:
        row = self._execute(
            text("SELECT id FROM sources WHERE name = :name LIMIT 1"),
            {"name": name},
        ).first()
        return str(row[0]) if row else None

    def find_source_id_by_url(self, url: str) -> Optional[str]:
        row = self._execute(
            text("SELECT id FROM sources WHERE url = :url LIMIT 1"),
            {"url": url},
        ).first()
        return str(row[0]) if row else None

    def insert_source(self, record: SourceRecord) -> Optional[str]:
        """Insert a source, returning None if a unique index already holds it."""
        row = self._execute(
            text(
                """
                INSERT INTO sources (name, url, logo_url, language, reliability_score)
                VALUES (:name, :url, :logo_url, :language, :reliability_score)
                ON CONFLICT DO NOTHING
                RETURNING id
                """
            ),
            {
                "name": record.name,
                "url": record.url,
                "logo_url": record.logo_url,
                "language": record.language,
                "reliability_score": record.reliability_score,
            },
        ).first()
        self._commit()
        return str(row[0]) if row else None

    # Topics

    def topic_ids_by_slug(self, slugs: Iterable[str]) -> dict[str, str]:
        slugs = list(slugs)
        if not slugs:
            return {}
        rows = self._execute(
            text("SELECT slug, id FROM topics WHERE slug = ANY(:slugs)"),
            {"slugs": slugs},
        ).all()
        return {slug: str(topic_id) for slug, topic_id in rows}

    # Stories

    def find_story_id(self, source_id: str, original_url: str) -> Optional[str]:
        row = self._execute(
            text(
                """
                SELECT id FROM stories
                WHERE source_id = :source_id
                  AND original_url = :original_url
                LIMIT 1
                """
            ),
            {"source_id": source_id, "original_url": original_url},
        ).first()
        return str(row[0]) if row else None

    def insert_story(self, story: Story) -> Optional[str]:
        """Insert a story, returning None if (source_id, original_url) exists."""
        row = self._execute(
            text(
                """
                INSERT INTO stories (
                    source_id,
                    original_url,
                    original_title,
                    title_ar,
                    title_en,
                    summary_ar,
                    summary_en,
                    why_it_matters_ar,
                    why_it_matters_en,
                    ai_quality_score,
                    full_content,
                    content_quality,
                    image_url,
                    video_url,
                    topic_ids,
                    published_at,
                    is_approved
                )
                VALUES (
                    :source_id,
                    :original_url,
                    :original_title,
                    :title_ar,
                    :title_en,
                    :summary_ar,
                    :summary_en,
                    :why_it_matters_ar,
                    :why_it_matters_en,
                    :ai_quality_score,
                    :full_content,
                    :content_quality,
                    :image_url,
                    :video_url,
                    CAST(:topic_ids AS UUID[]),
                    :published_at,
                    :is_approved
                )
                ON CONFLICT (source_id, original_url) DO NOTHING
                RETURNING id
                """
            ),
            {
                "source_id": story.source_id,
                "original_url": story.original_url,
                "original_title": story.original_title,
                "title_ar": story.title_ar,
                "title_en": story.title_en,
                "summary_ar": story.summary_ar,
                "summary_en": story.summary_en,
                "why_it_matters_ar": story.why_it_matters_ar,
                "why_it_matters_en": story.why_it_matters_en,
                "ai_quality_score": story.ai_quality_score,
                "full_content": story.full_content,
                "content_quality": story.content_quality,
                "image_url": story.image_url,
                "video_url": story.video_url,
                "topic_ids": story.topic_ids,
                "published_at": story.published_at,
                "is_approved": story.is_approved,
            },
        ).first()
        self._commit()
        return str(row[0]) if row else None
