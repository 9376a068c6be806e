"""Shared fixtures: an in-memory content store and a scripted summarizer."""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Iterable, Optional
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import InternalError, OperationalError

from common.models import (
    CLAIMABLE_STATUSES,
    ArticleStatus,
    ArticleSummary,
    ExhaustedArticle,
    RawArticle,
    RssSource,
    SourceRecord,
    Story,
    validate_transition,
)
from process_articles.config import BatchConfig, ProcessConfig

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
LONG_BODY = "Officials announced a new economic programme on Monday. " * 5

DEFAULT_TOPICS = {
    "general": "general-id",
    "technology": "technology-id",
    "economy": "economy-id",
    "sports": "sports-id",
}


class FakeContentStore:
    """In-memory stand-in for common.content_store.ContentStore with the same contracts."""

    def __init__(self, topics: Optional[dict[str, str]] = None):
        self.articles: dict[str, RawArticle] = {}
        self.claimed_at: dict[str, datetime] = {}
        self.processed_at: dict[str, datetime] = {}
        self.sources: list[SourceRecord] = []
        self.stories: list[Story] = []
        self.topics = dict(DEFAULT_TOPICS if topics is None else topics)
        self.now = BASE_TIME
        self._ids = count(1)

    def add_article(self, article: RawArticle) -> RawArticle:
        self.articles[article.id] = article
        return article

    # Raw articles

    def select_claimable(self, limit: int, max_retries: int) -> list[RawArticle]:
        eligible = [
            a for a in self.articles.values()
            if a.status in CLAIMABLE_STATUSES and a.retry_count < max_retries
        ]
        eligible.sort(key=lambda a: a.fetched_at or BASE_TIME)
        return [copy.deepcopy(a) for a in eligible[:limit]]

    def claim(self, article_id: str, max_retries: int) -> bool:
        article = self.articles[article_id]
        if article.status not in CLAIMABLE_STATUSES or article.retry_count >= max_retries:
            return False
        article.status = ArticleStatus.PROCESSING
        self.claimed_at[article_id] = self.now
        return True

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
        validate_transition(current, target)
        article = self.articles[article_id]
        if article.status is not current:
            return False
        article.status = target
        article.error_message = error_message
        if story_id is not None:
            article.story_id = story_id
        if increment_retry:
            article.retry_count += 1
        if target is not ArticleStatus.PENDING:
            self.processed_at[article_id] = self.now
        self.claimed_at.pop(article_id, None)
        return True

    def _stale(self, cutoff: datetime) -> list[RawArticle]:
        return [
            a for a in self.articles.values()
            if a.status is ArticleStatus.PROCESSING
            and (a.id not in self.claimed_at or self.claimed_at[a.id] < cutoff)
        ]

    def reset_stale_claims(self, cutoff: datetime) -> int:
        validate_transition(ArticleStatus.PROCESSING, ArticleStatus.PENDING)
        stale = self._stale(cutoff)
        for article in stale:
            article.status = ArticleStatus.PENDING
            self.claimed_at.pop(article.id, None)
        return len(stale)

    def count_stale_claims(self, cutoff: datetime) -> int:
        return len(self._stale(cutoff))

    def _exhausted(self, max_retries: int) -> list[RawArticle]:
        return [
            a for a in self.articles.values()
            if a.status is ArticleStatus.FAILED and a.retry_count >= max_retries
        ]

    def list_exhausted(self, max_retries: int, limit: int) -> list[ExhaustedArticle]:
        return [
            ExhaustedArticle(
                id=a.id,
                original_url=a.original_url,
                original_title=a.original_title,
                retry_count=a.retry_count,
                error_message=a.error_message,
                processed_at=self.processed_at.get(a.id),
            )
            for a in self._exhausted(max_retries)[:limit]
        ]

    def count_exhausted(self, max_retries: int) -> int:
        return len(self._exhausted(max_retries))

    # Sources

    def find_source_id_by_name(self, name: str) -> Optional[str]:
        return next((s.id for s in self.sources if s.name == name), None)

    def find_source_id_by_url(self, url: str) -> Optional[str]:
        return next((s.id for s in self.sources if s.url == url), None)

    def insert_source(self, record: SourceRecord) -> Optional[str]:
        if any(s.name == record.name or s.url == record.url for s in self.sources):
            return None
        saved = replace(record, id=f"source-{next(self._ids)}")
        self.sources.append(saved)
        return saved.id

    # Topics

    def topic_ids_by_slug(self, slugs: Iterable[str]) -> dict[str, str]:
        return {slug: self.topics[slug] for slug in slugs if slug in self.topics}

    # Stories

    def find_story_id(self, source_id: str, original_url: str) -> Optional[str]:
        return next(
            (s.id for s in self.stories if s.source_id == source_id and s.original_url == original_url),
            None,
        )

    def insert_story(self, story: Story) -> Optional[str]:
        if self.find_story_id(story.source_id, story.original_url):
            return None
        saved = replace(story, id=f"story-{next(self._ids)}")
        self.stories.append(saved)
        return saved.id


class FakeSummarizer:
    """Returns a fixed summary (or raises) and records every call."""

    def __init__(self, summary: Optional[ArticleSummary] = None, error: Optional[Exception] = None):
        self.summary = summary or make_summary()
        self.error = error
        self.calls: list[dict] = []

    def summarize(self, **kwargs) -> ArticleSummary:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.summary


class AbortingSession:
    """Session double that, like Postgres, refuses every statement after an error until rollback.

    Statements containing ``failing_sql`` raise OperationalError. Story lookups
    find nothing, other single-row statements return one row, and topic lookups
    only know ``general``.
    """

    def __init__(self, failing_sql: Optional[str] = None):
        self.failing_sql = failing_sql
        self.aborted = False
        self.rollbacks = 0
        self.statements: list[str] = []

    def _refuse(self, sql: str, params: Any) -> None:
        raise InternalError(sql, params, Exception("current transaction is aborted"))

    def execute(self, statement: Any, params: Any = None) -> MagicMock:
        sql = str(statement)
        if self.aborted:
            self._refuse(sql, params)
        self.statements.append(sql)
        if self.failing_sql and self.failing_sql in sql:
            self.aborted = True
            raise OperationalError(sql, params, Exception("canceling statement due to statement timeout"))
        result = MagicMock()
        result.first.return_value = None if "FROM stories" in sql else ("row-1",)
        result.all.return_value = [("general", "general-id")]
        return result

    def commit(self) -> None:
        if self.aborted:
            self._refuse("COMMIT", {})

    def rollback(self) -> None:
        self.rollbacks += 1
        self.aborted = False


def make_summary(quality_score: float = 0.9, topics: Optional[list[str]] = None) -> ArticleSummary:
    return ArticleSummary(
        summary_ar="ملخص الخبر.",
        summary_en="Summary of the news.",
        why_it_matters_ar="لماذا يهمك؟",
        why_it_matters_en="Why it matters.",
        quality_score=quality_score,
        topics=["economy"] if topics is None else topics,
    )


def make_article(
    article_id: str = "article-1",
    body: Optional[str] = LONG_BODY,
    reliability: float = 0.85,
    minutes: int = 0,
    **overrides,
) -> RawArticle:
    source = overrides.pop("source", None) or RssSource(
        id="rss-1",
        name="Tech News Daily",
        language="en",
        reliability_score=reliability,
        website_url="https://technews.example.com",
        logo_url="https://technews.example.com/logo.png",
    )
    fields = dict(
        id=article_id,
        rss_source_id=source.id,
        original_url=f"https://technews.example.com/articles/{article_id}",
        original_title="Breaking: Major Tech Announcement",
        source=source,
        original_content=body,
        fetched_at=BASE_TIME + timedelta(minutes=minutes),
        published_at=datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return RawArticle(**fields)


@pytest.fixture
def store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def config() -> ProcessConfig:
    return ProcessConfig(batch=BatchConfig(delay_seconds=0))


@pytest.fixture
def fakes():
    """Factories for tests that need more than the default fixtures."""

    class Fakes:
        ContentStore = FakeContentStore
        Summarizer = FakeSummarizer
        AbortingSession = AbortingSession
        article = staticmethod(make_article)
        summary = staticmethod(make_summary)
        base_time = BASE_TIME

    return Fakes
