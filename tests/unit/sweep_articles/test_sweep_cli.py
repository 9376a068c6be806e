"""Tests for sweep_articles.cli and sweep_articles.helpers modules."""

from contextlib import contextmanager
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from common.errors import ConfigurationError
from process_articles.config import ProcessConfig
from sweep_articles import cli
from sweep_articles.helpers import parse_sweep_articles_args


@contextmanager
def _session():
    yield MagicMock()


class TestParseSweepArticlesArgs:
    def test_defaults(self) -> None:
        args = parse_sweep_articles_args([])
        assert args.stale_minutes is None
        assert not args.dry_run
        assert not args.report

    def test_rejects_non_positive_minutes(self) -> None:
        with pytest.raises(SystemExit):
            parse_sweep_articles_args(["--stale-minutes", "0"])


class TestMain:
    @patch("sweep_articles.cli.report_exhausted", return_value=(0, []))
    @patch("sweep_articles.cli.reset_stale_claims", return_value=2)
    @patch("sweep_articles.cli.get_session", side_effect=_session)
    @patch("sweep_articles.cli.load_config", return_value=ProcessConfig())
    def test_uses_configured_window(
        self,
        mock_load_config: MagicMock,
        mock_get_session: MagicMock,
        mock_reset: MagicMock,
        mock_report: MagicMock,
    ) -> None:
        assert cli.main([]) == 0
        assert mock_reset.call_args.args[1] == timedelta(minutes=30)
        assert mock_reset.call_args.kwargs["dry_run"] is False
        mock_report.assert_not_called()

    @patch("sweep_articles.cli.report_exhausted", return_value=(0, []))
    @patch("sweep_articles.cli.reset_stale_claims", return_value=0)
    @patch("sweep_articles.cli.get_session", side_effect=_session)
    @patch("sweep_articles.cli.load_config", return_value=ProcessConfig())
    def test_flags_override_config(
        self,
        mock_load_config: MagicMock,
        mock_get_session: MagicMock,
        mock_reset: MagicMock,
        mock_report: MagicMock,
    ) -> None:
        assert cli.main(["--stale-minutes", "5", "--dry-run", "--report", "--report-limit", "7"]) == 0
        assert mock_reset.call_args.args[1] == timedelta(minutes=5)
        assert mock_reset.call_args.kwargs["dry_run"] is True
        assert mock_report.call_args.args[1:] == (3, 7)

    @patch("sweep_articles.cli.load_config", side_effect=ConfigurationError("Config file not found: x.yaml"))
    def test_bad_config_exit_nonzero(self, mock_load_config: MagicMock) -> None:
        assert cli.main(["--config", "x"]) == 1
