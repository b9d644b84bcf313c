"""Tests for the GitHub collaborator."""
from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest

from daily_summary.github import (
    build_search_query,
    fetch_acting_user,
    fetch_pull_requests,
    parse_pr_node,
)


def _node(**overrides) -> dict[str, object]:
    node: dict[str, object] = {
        "title": "ENG-3 Add caching",
        "number": 12,
        "body": "## Summary",
        "url": "https://github.com/acme/api/pull/12",
        "repository": {"name": "api", "owner": {"login": "acme"}},
        "headRefName": "eng-3-caching",
        "commits": {
            "nodes": [
                {
                    "commit": {
                        "message": "Add cache layer",
                        "authoredDate": "2025-03-14T09:30:00Z",
                        "author": {"email": "mona@example.com", "name": "Mona Lisa"},
                    },
                },
            ],
        },
        "state": "OPEN",
        "reviews": {
            "nodes": [
                {
                    "state": "APPROVED",
                    "submittedAt": "2025-03-14T11:00:00Z",
                    "author": {"login": "hubot"},
                },
                {"state": "PENDING", "submittedAt": None, "author": None},
            ],
        },
        "createdAt": "2025-03-14T09:00:00Z",
        "updatedAt": "2025-03-14T11:00:00Z",
        "mergedAt": None,
    }
    node.update(overrides)
    return node


class TestParsePrNode:
    def test_parses_full_node(self):
        record = parse_pr_node(_node())
        assert record.repo == "acme/api"
        assert record.number == 12
        assert record.head_ref_name == "eng-3-caching"
        assert record.created_at == datetime(2025, 3, 14, 9, 0, tzinfo=UTC)
        assert record.merged_at is None
        [commit] = record.commits
        assert commit.author_email == "mona@example.com"
        assert commit.author_name == "Mona Lisa"
        assert commit.authored_date == datetime(2025, 3, 14, 9, 30, tzinfo=UTC)
        assert [r.state for r in record.reviews] == ["APPROVED", "PENDING"]
        assert record.reviews[1].author_login == ""
        assert record.reviews[1].submitted_at is None

    def test_builds_url_when_missing(self):
        record = parse_pr_node(_node(url=None))
        assert record.url == "https://github.com/acme/api/pull/12"

    def test_missing_body_and_commits(self):
        record = parse_pr_node(_node(body=None, commits=None))
        assert record.body == ""
        assert record.commits == []

    def test_missing_created_at_raises(self):
        with pytest.raises(TypeError):
            parse_pr_node(_node(createdAt=None))


class TestFetchActingUser:
    def test_null_profile_fields_become_empty(self):
        with patch(
            "daily_summary.github.call_graphql",
            return_value={"viewer": {"login": "octocat", "name": None, "email": ""}},
        ):
            user = fetch_acting_user(MagicMock())
        assert user.login == "octocat"
        assert user.name == ""
        assert user.email == ""


class TestFetchPullRequests:
    def test_search_query(self):
        assert build_search_query("octocat") == "author:octocat is:pr sort:updated-desc"

    def test_skips_empty_nodes_and_passes_limits(self):
        with patch(
            "daily_summary.github.call_graphql",
            return_value={"search": {"nodes": [_node(), {}, _node(number=13, url="")]}},
        ) as mock_call:
            records = fetch_pull_requests(MagicMock(), "octocat", 20)

        assert [r.number for r in records] == [12, 13]
        assert records[1].url == "https://github.com/acme/api/pull/13"
        variables = mock_call.call_args.args[3]
        assert variables == {
            "query": "author:octocat is:pr sort:updated-desc",
            "first": 20,
            "commits": 100,
            "reviews": 10,
        }

    def test_no_results(self):
        with patch("daily_summary.github.call_graphql", return_value={"search": {"nodes": None}}):
            assert fetch_pull_requests(MagicMock(), "octocat", 20) == []
