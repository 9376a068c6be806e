"""Find or create the display source for an article."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

from common.models import RssSource, SourceRecord

logger = logging.getLogger(__name__)


def site_root(url: str) -> str:
    """Scheme and host of a URL, e.g. https://example.com/a/b -> https://example.com."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return url
    return f"{parts.scheme}://{parts.netloc}"


def canonical_source_url(rss_source: RssSource, article_url: str) -> str:
    """Prefer the feed's registered website over the article's own domain."""
    if rss_source.website_url:
        return rss_source.website_url.rstrip("/")
    return site_root(article_url)


def _lookup(store: Any, name: str, url: str) -> str | None:
    return store.find_source_id_by_name(name) or store.find_source_id_by_url(url)


def resolve_source(rss_source: RssSource, article_url: str, store: Any) -> str:
    """
    Return the id of the source record for a feed, creating it if needed.

    Looks up by exact name, then by canonical URL, and only inserts when
    neither matches. A concurrent insert that wins the unique index is
    picked up by looking up again.

    Raises:
        RuntimeError: If the insert was refused and no matching source can be found
    """
    url = canonical_source_url(rss_source, article_url)

    source_id = _lookup(store, rss_source.name, url)
    if source_id:
        return source_id

    record = SourceRecord(
        name=rss_source.name,
        url=url,
        language=rss_source.language,
        reliability_score=rss_source.reliability_score,
        logo_url=rss_source.logo_url,
    )
    source_id = store.insert_source(record)
    if source_id:
        logger.info("Created source %s (%s) id=%s", record.name, record.url, source_id)
        return source_id

    source_id = _lookup(store, rss_source.name, url)
    if source_id is None:
        raise RuntimeError(f"Source insert for {rss_source.name!r} was refused but no source matches")
    return source_id
