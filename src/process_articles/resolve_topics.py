"""Map model topic tags onto the canonical topic taxonomy."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from common.errors import TopicResolutionError

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_SLUG = "general"


def normalize_slug(tag: str) -> str:
    return tag.strip().lower()


def resolve_topics(
    ai_tags: Iterable[str],
    curator_topic_ids: Iterable[str],
    store: Any,
    fallback_slug: str = DEFAULT_FALLBACK_SLUG,
) -> list[str]:
    """
    Merge curator-assigned topic ids with topic ids resolved from model tags.

    Curator ids are kept as-is and come first. Tags with no matching slug are
    dropped. If nothing resolves, the fallback topic id is returned alone.

    Args:
        ai_tags: Free-text topic tags from the summarization model
        curator_topic_ids: Canonical topic ids already attached to the article's feed
        store: Content store with a topic_ids_by_slug(slugs) method
        fallback_slug: Slug of the topic used when the merged set is empty

    Returns:
        De-duplicated, non-empty list of topic ids

    Raises:
        TopicResolutionError: If the fallback topic is needed but not in the taxonomy
    """
    slugs: list[str] = []
    for tag in ai_tags:
        slug = normalize_slug(tag)
        if slug and slug not in slugs:
            slugs.append(slug)

    ids_by_slug = store.topic_ids_by_slug(slugs) if slugs else {}

    unknown = [slug for slug in slugs if slug not in ids_by_slug]
    if unknown:
        logger.info("Dropping unknown topic tags: %s", ", ".join(unknown))

    topic_ids: list[str] = []
    for topic_id in list(curator_topic_ids) + [ids_by_slug[s] for s in slugs if s in ids_by_slug]:
        if topic_id and topic_id not in topic_ids:
            topic_ids.append(topic_id)

    if topic_ids:
        return topic_ids

    fallback = store.topic_ids_by_slug([fallback_slug]).get(fallback_slug)
    if fallback is None:
        raise TopicResolutionError(f"Fallback topic '{fallback_slug}' not found in taxonomy")

    logger.info("No topics resolved, using fallback topic '%s'", fallback_slug)
    return [fallback]
