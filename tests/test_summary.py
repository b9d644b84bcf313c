"""Tests for the end-to-end summary run."""
from __future__ import annotations

from datetime import UTC, date, datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from daily_summary.models import (
    ActivityCommit,
    LinearActivity,
    LinearTicket,
    PullRequestActivity,
)
from daily_summary.narrative import SKIPPED_RESPONSE
from daily_summary.settings import Settings
from daily_summary.summary import Clients, build_clients, generate_summary
from daily_summary.window import DayWindow

WINDOW = DayWindow(date(2025, 3, 14), UTC)
NOON = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


def _settings(**overrides) -> Settings:
    values = {
        "LINEAR_API_KEY": "lin_key",
        "GITHUB_TOKEN": "gh_token",
        "GH_TOKEN": None,
        "OPENAI_API_KEY": None,
    }
    values.update(overrides)
    return Settings(**values)


def _clients() -> Clients:
    return Clients(
        github=MagicMock(spec=requests.Session),
        linear=MagicMock(spec=requests.Session),
    )


class TestGenerateSummary:
    def test_groups_collected_activity(self):
        pr = PullRequestActivity(
            type="merged",
            url="https://github.com/acme/api/pull/3",
            title="ENG-9 Ship it",
            number=3,
            repo="acme/api",
            commits=[ActivityCommit(message="ship", timestamp=NOON)],
            status="merged",
            linear_issue=LinearTicket(
                identifier="ENG-9",
                title="Ship it",
                url="https://linear.app/acme/issue/ENG-9",
            ),
            last_updated=NOON,
        )
        linear = [
            LinearActivity(
                type="created",
                url="https://linear.app/acme/issue/ENG-9",
                ticket_id="ENG-9",
                title="Ship it",
                date=NOON,
            ),
        ]
        clients = _clients()
        with (
            patch("daily_summary.summary.collect_pr_activities", return_value=[pr]) as mock_prs,
            patch("daily_summary.summary.collect_linear_activities", return_value=linear),
        ):
            result = generate_summary(WINDOW, _settings(), clients, skip_llm=True)

        assert result.response == SKIPPED_RESPONSE
        assert [a.number for a in result.activities.merged_prs] == [3]
        assert result.activities.linear_issues == []
        args = mock_prs.call_args.args
        assert args[0] is clients.github
        assert args[1] is clients.linear
        assert args[4] == 20

    def test_collector_errors_propagate(self):
        with (
            patch(
                "daily_summary.summary.collect_pr_activities",
                side_effect=requests.ConnectionError("down"),
            ),
            patch("daily_summary.summary.collect_linear_activities", return_value=[]),
            pytest.raises(requests.ConnectionError),
        ):
            generate_summary(WINDOW, _settings(), _clients(), skip_llm=True)


class TestBuildClients:
    def test_requires_openai_key_unless_skipping(self):
        with pytest.raises(SystemExit):
            build_clients(_settings())

    def test_skip_llm_has_no_openai_client(self):
        clients = build_clients(_settings(), skip_llm=True)
        try:
            assert clients.openai is None
            assert clients.github.headers["Authorization"] == "Bearer gh_token"
            assert clients.linear.headers["Authorization"] == "lin_key"
        finally:
            clients.close()

    def test_missing_github_token_exits(self):
        with pytest.raises(SystemExit):
            build_clients(_settings(GITHUB_TOKEN=None), skip_llm=True)

    def test_missing_linear_key_exits(self):
        with pytest.raises(SystemExit):
            build_clients(_settings(LINEAR_API_KEY=None), skip_llm=True)
