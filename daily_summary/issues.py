"""Linear activity collection for the summarized day."""
from __future__ import annotations

import time

import requests
from loguru import logger

from daily_summary.linear import (
    fetch_comments,
    fetch_created_issues,
    fetch_viewer_id,
    resolve_comment_issues,
)
from daily_summary.models import LinearActivity, LinearCommentRecord, LinearIssueRecord
from daily_summary.window import DayWindow

MIN_COMMENT_LENGTH = 100


def comment_activities(comments: list[LinearCommentRecord]) -> list[LinearActivity]:
    """Return a commented activity for each substantial comment."""
    activities: list[LinearActivity] = []
    for comment in comments:
        if len(comment.body) <= MIN_COMMENT_LENGTH:
            continue
        issue = comment.issue
        activities.append(
            LinearActivity(
                type="commented",
                url=issue.url if issue else "",
                ticket_id=issue.identifier if issue else "",
                title=issue.title if issue else "",
                date=comment.created_at,
                description=comment.body,
            ),
        )
    return activities


def issue_activities(issues: list[LinearIssueRecord]) -> list[LinearActivity]:
    """Return a created activity for each issue, dated by its last update."""
    return [
        LinearActivity(
            type="created",
            url=issue.url,
            ticket_id=issue.identifier,
            title=issue.title,
            date=issue.updated_at,
        )
        for issue in issues
    ]


def build_linear_activities(
    issues: list[LinearIssueRecord],
    comments: list[LinearCommentRecord],
) -> list[LinearActivity]:
    """Combine comment and issue activities, oldest first."""
    activities = comment_activities(comments) + issue_activities(issues)
    return sorted(activities, key=lambda activity: activity.date)


def collect_linear_activities(
    session: requests.Session,
    window: DayWindow,
) -> list[LinearActivity]:
    """Fetch the viewer's Linear issues and comments for the window."""
    logger.info("Getting Linear activities for {day}", day=window.label)
    start = time.perf_counter()
    viewer_id = fetch_viewer_id(session)
    issues = fetch_created_issues(session, viewer_id, window)
    comments = resolve_comment_issues(
        session,
        fetch_comments(session, viewer_id, window),
    )
    activities = build_linear_activities(issues, comments)
    logger.info(
        "Collected Linear activities",
        issues=len(issues),
        comments=len(comments),
        count=len(activities),
        elapsed=f"{time.perf_counter() - start:.2f}s",
    )
    return activities
