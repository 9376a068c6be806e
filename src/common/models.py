"""Shared data models for the story pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from common.errors import InvalidTransitionError


class ArticleStatus(str, Enum):
    """Processing status of a raw article."""

    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    REJECTED = "rejected"
    FAILED = "failed"
    DUPLICATE = "duplicate"

    @property
    def is_terminal(self) -> bool:
        return self in (ArticleStatus.PROCESSED, ArticleStatus.REJECTED, ArticleStatus.DUPLICATE)


# Statuses an article may be claimed from. Failed articles are only
# claimable while under the retry limit; the store enforces that part.
CLAIMABLE_STATUSES = (ArticleStatus.PENDING, ArticleStatus.FAILED)

ALLOWED_TRANSITIONS: dict[ArticleStatus, frozenset[ArticleStatus]] = {
    ArticleStatus.PENDING: frozenset({ArticleStatus.PROCESSING}),
    ArticleStatus.FAILED: frozenset({ArticleStatus.PROCESSING}),
    ArticleStatus.PROCESSING: frozenset({
        ArticleStatus.PROCESSED,
        ArticleStatus.REJECTED,
        ArticleStatus.FAILED,
        ArticleStatus.DUPLICATE,
        ArticleStatus.PENDING,
    }),
    ArticleStatus.PROCESSED: frozenset(),
    ArticleStatus.REJECTED: frozenset(),
    ArticleStatus.DUPLICATE: frozenset(),
}


def validate_transition(current: ArticleStatus, target: ArticleStatus) -> None:
    """Raise InvalidTransitionError if current -> target is not allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Invalid status transition: {current.value} -> {target.value}"
        )


class ModelTier(str, Enum):
    """Cost/quality tier of the summarization model."""

    PREMIUM = "premium"
    STANDARD = "standard"


class ItemOutcome(str, Enum):
    """What happened to a single article during a run."""

    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class RssSource:
    """Feed registration an article was fetched from."""
    id: str
    name: str
    language: str = "ar"
    reliability_score: float = 0.8
    website_url: Optional[str] = None
    logo_url: Optional[str] = None


@dataclass
class RawArticle:
    """Fetched article awaiting enrichment."""
    id: str
    rss_source_id: str
    original_url: str
    original_title: str
    source: RssSource
    full_content: Optional[str] = None
    original_content: Optional[str] = None
    original_description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    content_quality: Optional[float] = None
    topic_ids: list[str] = field(default_factory=list)
    fetched_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    status: ArticleStatus = ArticleStatus.PENDING
    retry_count: int = 0
    error_message: Optional[str] = None
    story_id: Optional[str] = None


@dataclass
class SourceRecord:
    """De-duplicated publisher shown next to stories."""
    name: str
    url: str
    language: str = "ar"
    reliability_score: float = 0.8
    logo_url: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ArticleSummary:
    """Structured bilingual summary returned by the summarization model."""
    summary_ar: str
    summary_en: str
    why_it_matters_ar: str
    why_it_matters_en: str
    quality_score: float
    topics: list[str]


@dataclass
class Story:
    """Enriched, user-facing story."""
    source_id: str
    original_url: str
    original_title: str
    summary_ar: str
    summary_en: str
    why_it_matters_ar: str
    why_it_matters_en: str
    ai_quality_score: float
    topic_ids: list[str]
    published_at: datetime
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    full_content: Optional[str] = None
    content_quality: float = 0.0
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    is_approved: bool = True
    id: Optional[str] = None


@dataclass
class ExhaustedArticle:
    """Failed article that will no longer be retried."""
    id: str
    original_url: str
    original_title: str
    retry_count: int
    error_message: Optional[str]
    processed_at: Optional[datetime]


@dataclass
class ItemResult:
    """Outcome of processing one article."""
    article_id: str
    title: str
    outcome: ItemOutcome
    story_id: Optional[str] = None
    model_tier: Optional[ModelTier] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome in (ItemOutcome.PROCESSED, ItemOutcome.DUPLICATE)


@dataclass
class RunSummary:
    """Aggregate counts for one orchestrator run."""
    total_processed: int = 0
    successful: int = 0
    rejected: int = 0
    failed: int = 0
    duplicates_skipped: int = 0
    claims_lost: int = 0
    model_usage: dict[str, int] = field(
        default_factory=lambda: {tier.value: 0 for tier in ModelTier}
    )
    results: list[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        """Add a single article result to the running totals."""
        self.results.append(result)
        if result.model_tier is not None:
            self.model_usage[result.model_tier.value] += 1

        if result.outcome is ItemOutcome.SKIPPED:
            self.claims_lost += 1
            return

        self.total_processed += 1
        if result.success:
            self.successful += 1
            if result.outcome is ItemOutcome.DUPLICATE:
                self.duplicates_skipped += 1
        elif result.outcome is ItemOutcome.REJECTED:
            self.rejected += 1
        else:
            self.failed += 1

    def counts(self) -> dict[str, object]:
        """Return the counters without per-item results."""
        return {
            "total_processed": self.total_processed,
            "successful": self.successful,
            "rejected": self.rejected,
            "failed": self.failed,
            "duplicates_skipped": self.duplicates_skipped,
            "claims_lost": self.claims_lost,
            "model_usage": dict(self.model_usage),
        }
