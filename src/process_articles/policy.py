"""Quality gating and model tier selection."""

from __future__ import annotations

from common.models import ModelTier, RawArticle
from process_articles.config import PolicyConfig

DEFAULT_POLICY = PolicyConfig()


def select_model(reliability_score: float, policy: PolicyConfig = DEFAULT_POLICY) -> ModelTier:
    """Premium tier for sources strictly above the reliability threshold, standard otherwise."""
    if reliability_score > policy.premium_reliability_threshold:
        return ModelTier.PREMIUM
    return ModelTier.STANDARD


def model_name(tier: ModelTier, policy: PolicyConfig = DEFAULT_POLICY) -> str:
    """Provider model name for a tier."""
    if tier is ModelTier.PREMIUM:
        return policy.premium_model
    return policy.standard_model


def accept(quality_score: float, policy: PolicyConfig = DEFAULT_POLICY) -> bool:
    """Whether a summarized article is good enough to become a story."""
    return quality_score >= policy.acceptance_threshold


def resolve_body(article: RawArticle) -> str:
    """Full scraped content, then RSS content, then RSS description."""
    return (
        article.full_content
        or article.original_content
        or article.original_description
        or ""
    )


def is_content_sufficient(body: str, policy: PolicyConfig = DEFAULT_POLICY) -> bool:
    return len(body.strip()) >= policy.min_content_length


def truncate_content(body: str, policy: PolicyConfig = DEFAULT_POLICY) -> str:
    return body[:policy.max_content_chars]
