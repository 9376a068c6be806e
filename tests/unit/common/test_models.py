"""Tests for common.models module."""

import pytest

from common.errors import InvalidTransitionError
from common.models import (
    ArticleStatus,
    ItemOutcome,
    ItemResult,
    ModelTier,
    RunSummary,
    validate_transition,
)


class TestValidateTransition:
    @pytest.mark.parametrize("current", [ArticleStatus.PENDING, ArticleStatus.FAILED])
    def test_claimable_statuses_move_to_processing(self, current: ArticleStatus) -> None:
        validate_transition(current, ArticleStatus.PROCESSING)

    @pytest.mark.parametrize(
        "target",
        [
            ArticleStatus.PROCESSED,
            ArticleStatus.REJECTED,
            ArticleStatus.FAILED,
            ArticleStatus.DUPLICATE,
            ArticleStatus.PENDING,
        ],
    )
    def test_processing_moves_to_any_outcome(self, target: ArticleStatus) -> None:
        validate_transition(ArticleStatus.PROCESSING, target)

    @pytest.mark.parametrize(
        "current", [ArticleStatus.PROCESSED, ArticleStatus.REJECTED, ArticleStatus.DUPLICATE]
    )
    def test_terminal_statuses_never_leave(self, current: ArticleStatus) -> None:
        assert current.is_terminal
        for target in ArticleStatus:
            with pytest.raises(InvalidTransitionError):
                validate_transition(current, target)

    def test_pending_cannot_skip_processing(self) -> None:
        with pytest.raises(InvalidTransitionError, match="pending -> processed"):
            validate_transition(ArticleStatus.PENDING, ArticleStatus.PROCESSED)

    def test_failed_is_not_terminal(self) -> None:
        assert not ArticleStatus.FAILED.is_terminal


class TestItemResult:
    def test_duplicate_counts_as_success(self) -> None:
        assert ItemResult("a1", "t", ItemOutcome.DUPLICATE).success

    def test_rejected_is_not_success(self) -> None:
        assert not ItemResult("a1", "t", ItemOutcome.REJECTED).success


class TestRunSummary:
    def test_defaults_have_zero_usage_for_every_tier(self) -> None:
        summary = RunSummary()
        assert summary.model_usage == {"premium": 0, "standard": 0}

    def test_record_tallies_each_outcome(self) -> None:
        summary = RunSummary()
        summary.record(ItemResult("a1", "t", ItemOutcome.PROCESSED, story_id="s1", model_tier=ModelTier.PREMIUM))
        summary.record(ItemResult("a2", "t", ItemOutcome.DUPLICATE, story_id="s1", model_tier=ModelTier.STANDARD))
        summary.record(ItemResult("a3", "t", ItemOutcome.REJECTED, error="Content too short"))
        summary.record(ItemResult("a4", "t", ItemOutcome.FAILED, model_tier=ModelTier.STANDARD, error="boom"))

        assert summary.total_processed == 4
        assert summary.successful == 2
        assert summary.duplicates_skipped == 1
        assert summary.rejected == 1
        assert summary.failed == 1
        assert summary.model_usage == {"premium": 1, "standard": 2}
        assert summary.total_processed == summary.successful + summary.rejected + summary.failed

    def test_skipped_only_counts_as_lost_claim(self) -> None:
        summary = RunSummary()
        summary.record(ItemResult("a1", "t", ItemOutcome.SKIPPED))

        assert summary.total_processed == 0
        assert summary.claims_lost == 1
        assert len(summary.results) == 1

    def test_counts_excludes_results(self) -> None:
        summary = RunSummary()
        summary.record(ItemResult("a1", "t", ItemOutcome.PROCESSED, model_tier=ModelTier.PREMIUM))

        counts = summary.counts()

        assert "results" not in counts
        assert counts["successful"] == 1
        assert counts["model_usage"] == {"premium": 1, "standard": 0}
