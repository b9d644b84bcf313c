"""Merge pull request and Linear activity into the summary buckets."""
from __future__ import annotations

from loguru import logger

from daily_summary.models import GroupedActivities, LinearActivity, PullRequestActivity


def find_correlated_pr(
    pr_activities: list[PullRequestActivity],
    ticket_id: str,
) -> PullRequestActivity | None:
    """Return the first PR whose correlated ticket has the given identifier."""
    for activity in pr_activities:
        if activity.linear_issue is not None and activity.linear_issue.identifier == ticket_id:
            return activity
    return None


def group_activities(
    pr_activities: list[PullRequestActivity],
    linear_activities: list[LinearActivity],
) -> GroupedActivities:
    """Group activities, dropping Linear entries already covered by a PR.

    Inputs are left untouched; the returned PR activities are copies with the
    correlation cleared.
    """
    merged: list[PullRequestActivity | LinearActivity] = list(pr_activities)
    for linear_activity in linear_activities:
        correlated = find_correlated_pr(pr_activities, linear_activity.ticket_id)
        if correlated is None:
            merged.append(linear_activity)
            continue
        logger.debug(
            "Linear activity covered by PR",
            ticket=linear_activity.ticket_id,
            repo=correlated.repo,
            number=correlated.number,
        )

    grouped = GroupedActivities()
    for activity in merged:
        if isinstance(activity, LinearActivity):
            grouped.linear_issues.append(activity)
            continue
        cleared = activity.model_copy(update={"linear_issue": None})
        if cleared.status == "open":
            grouped.opened_prs.append(cleared)
        elif cleared.status == "merged":
            grouped.merged_prs.append(cleared)
        else:
            logger.debug(
                "Dropping PR with status {status}",
                status=cleared.status,
                repo=cleared.repo,
                number=cleared.number,
            )
    return grouped
