"""Tests for Linear activity collection."""
from __future__ import annotations

from datetime import UTC, date, datetime
from unittest.mock import MagicMock, patch

from daily_summary.issues import (
    MIN_COMMENT_LENGTH,
    build_linear_activities,
    collect_linear_activities,
    comment_activities,
    issue_activities,
)
from daily_summary.models import LinearCommentRecord, LinearIssueRecord
from daily_summary.window import DayWindow

WINDOW = DayWindow(date(2025, 3, 14), UTC)


def _at(hour: int) -> datetime:
    return datetime(2025, 3, 14, hour, 0, tzinfo=UTC)


def _issue(identifier: str = "ENG-1", hour: int = 9) -> LinearIssueRecord:
    return LinearIssueRecord(
        id=f"id-{identifier}",
        identifier=identifier,
        title=f"Issue {identifier}",
        url=f"https://linear.app/acme/issue/{identifier}",
        updated_at=_at(hour),
    )


def _comment(body: str, hour: int = 10, issue: LinearIssueRecord | None = None) -> LinearCommentRecord:
    return LinearCommentRecord(
        body=body,
        created_at=_at(hour),
        issue_id=issue.id if issue else None,
        issue=issue,
    )


class TestCommentActivities:
    def test_short_comment_excluded(self):
        comment = _comment("x" * MIN_COMMENT_LENGTH, issue=_issue())
        assert comment_activities([comment]) == []

    def test_long_comment_included(self):
        body = "x" * (MIN_COMMENT_LENGTH + 1)
        [activity] = comment_activities([_comment(body, issue=_issue("ENG-4"))])
        assert activity.type == "commented"
        assert activity.ticket_id == "ENG-4"
        assert activity.title == "Issue ENG-4"
        assert activity.url == "https://linear.app/acme/issue/ENG-4"
        assert activity.description == body
        assert activity.date == _at(10)

    def test_missing_parent_gives_empty_fields(self):
        [activity] = comment_activities([_comment("y" * 150)])
        assert activity.ticket_id == ""
        assert activity.title == ""
        assert activity.url == ""


class TestIssueActivities:
    def test_created_dated_by_last_update(self):
        [activity] = issue_activities([_issue("ENG-2", hour=15)])
        assert activity.type == "created"
        assert activity.ticket_id == "ENG-2"
        assert activity.date == _at(15)
        assert activity.description is None


class TestBuildLinearActivities:
    def test_sorted_oldest_first(self):
        activities = build_linear_activities(
            [_issue("ENG-1", hour=14), _issue("ENG-2", hour=8)],
            [_comment("z" * 200, hour=11, issue=_issue("ENG-3"))],
        )
        assert [a.ticket_id for a in activities] == ["ENG-2", "ENG-3", "ENG-1"]

    def test_ties_keep_comments_before_issues(self):
        activities = build_linear_activities(
            [_issue("ENG-1", hour=10)],
            [_comment("z" * 200, hour=10, issue=_issue("ENG-3"))],
        )
        assert [a.type for a in activities] == ["commented", "created"]

    def test_empty(self):
        assert build_linear_activities([], []) == []


class TestCollectLinearActivities:
    def test_fetches_and_builds(self):
        session = MagicMock()
        raw_comment = LinearCommentRecord(body="c" * 120, created_at=_at(12), issue_id="id-ENG-5")
        resolved = raw_comment.model_copy(update={"issue": _issue("ENG-5")})
        with (
            patch("daily_summary.issues.fetch_viewer_id", return_value="viewer-1") as mock_viewer,
            patch(
                "daily_summary.issues.fetch_created_issues",
                return_value=[_issue("ENG-6", hour=9)],
            ) as mock_issues,
            patch("daily_summary.issues.fetch_comments", return_value=[raw_comment]) as mock_comments,
            patch(
                "daily_summary.issues.resolve_comment_issues",
                return_value=[resolved],
            ) as mock_resolve,
        ):
            activities = collect_linear_activities(session, WINDOW)

        mock_viewer.assert_called_once_with(session)
        mock_issues.assert_called_once_with(session, "viewer-1", WINDOW)
        mock_comments.assert_called_once_with(session, "viewer-1", WINDOW)
        mock_resolve.assert_called_once_with(session, [raw_comment])
        assert [(a.type, a.ticket_id) for a in activities] == [
            ("created", "ENG-6"),
            ("commented", "ENG-5"),
        ]
