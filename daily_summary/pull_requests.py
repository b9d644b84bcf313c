"""Pull request activity classification and ticket correlation."""
from __future__ import annotations

import concurrent.futures
import re
import time
from datetime import UTC, datetime
from typing import cast

import requests
from loguru import logger

from daily_summary.github import fetch_acting_user, fetch_pull_requests
from daily_summary.graphql import GraphQLErrorsError, GraphQLRequestError, make_session
from daily_summary.linear import TicketNotFoundError, fetch_linear_ticket
from daily_summary.models import (
    ActingUser,
    ActivityCommit,
    CommitRecord,
    LinearTicket,
    PullRequestActivity,
    PullRequestActivityType,
    PullRequestRecord,
    ReviewRecord,
    ReviewStatus,
)
from daily_summary.tickets import find_pull_request_ticket, normalize_ticket
from daily_summary.window import DayWindow

DESCRIPTION_HEADING_MARKER = "##"
CHECKLIST_MARKER = "<!-- BEGIN_FRONTEND_CHECKLIST_CONTENT -->"
TEST_PLAN_MARKER = "Test plan"
REVIEW_STATES: frozenset[str] = frozenset({"approved", "changes_requested", "commented"})
LOOKUP_ERRORS = (
    GraphQLRequestError,
    GraphQLErrorsError,
    TicketNotFoundError,
    requests.RequestException,
    TypeError,
)
_EPOCH = datetime.min.replace(tzinfo=UTC)


def is_in_scope(pr: PullRequestRecord, window: DayWindow) -> bool:
    """Return True if the PR was created or updated today, or has been merged."""
    return (
        window.contains(pr.created_at)
        or window.contains(pr.updated_at)
        or pr.merged_at is not None
    )


def is_authored_by(commit: CommitRecord, user: ActingUser) -> bool:
    """Return True if the commit author matches the user by email, login or name."""
    if user.email and commit.author_email == user.email:
        return True
    if commit.author_name == user.login:
        return True
    return bool(user.name) and commit.author_name == user.name


def attributed_commits(
    pr: PullRequestRecord,
    user: ActingUser,
    window: DayWindow,
) -> list[ActivityCommit]:
    """Return the user's commits authored within the window."""
    return [
        ActivityCommit(message=commit.message, timestamp=commit.authored_date)
        for commit in pr.commits
        if is_authored_by(commit, user) and window.contains(commit.authored_date)
    ]


def activity_type(pr: PullRequestRecord, window: DayWindow) -> PullRequestActivityType:
    """Classify a PR as created, merged or updated, in that precedence."""
    if window.contains(pr.created_at):
        return "created"
    if pr.merged_at is not None and window.contains(pr.merged_at):
        return "merged"
    return "updated"


def map_review_state(state: str | None) -> ReviewStatus | None:
    """Map a GitHub review state to a review status."""
    if not state:
        return None
    lowered = state.lower()
    if lowered in REVIEW_STATES:
        return cast("ReviewStatus", lowered)
    return None


def latest_review_status(
    reviews: list[ReviewRecord],
    login: str,
) -> ReviewStatus | None:
    """Return the status of the most recent review by someone other than the user."""
    others = [review for review in reviews if review.author_login != login]
    if not others:
        return None
    latest = max(others, key=lambda review: review.submitted_at or _EPOCH)
    return map_review_state(latest.state)


def derive_description(body: str) -> str | None:
    """Return the PR description without checklist and test plan boilerplate."""
    trimmed = body.strip()
    if not trimmed.startswith(DESCRIPTION_HEADING_MARKER):
        return None
    return trimmed.split(CHECKLIST_MARKER)[0].split(TEST_PLAN_MARKER)[0]


def classify_pull_request(
    pr: PullRequestRecord,
    user: ActingUser,
    window: DayWindow,
) -> PullRequestActivity | None:
    """Build the day's activity for a PR, or None if it has no same-day work."""
    if not is_in_scope(pr, window):
        logger.debug("Skipping PR outside window", repo=pr.repo, number=pr.number)
        return None
    commits = attributed_commits(pr, user, window)
    if not commits:
        logger.debug("Skipping PR without attributed commits", repo=pr.repo, number=pr.number)
        return None
    return PullRequestActivity(
        type=activity_type(pr, window),
        url=pr.url,
        title=pr.title,
        number=pr.number,
        repo=pr.repo,
        description=derive_description(pr.body),
        commits=commits,
        status=pr.state.lower(),
        review_status=latest_review_status(pr.reviews, user.login),
        last_updated=pr.updated_at,
    )


def lookup_linear_issue(session: requests.Session, identifier: str) -> LinearTicket | None:
    """Resolve a ticket reference, logging and returning None on failure."""
    try:
        return fetch_linear_ticket(session, identifier)
    except LOOKUP_ERRORS as exc:
        logger.warning(
            "Failed to fetch Linear context for {identifier}",
            identifier=identifier,
            error=str(exc),
        )
        return None


def isolated_lookup(headers: dict[str, str], identifier: str) -> LinearTicket | None:
    """Resolve a ticket on a session owned by the calling thread."""
    with make_session(headers) as session:
        return lookup_linear_issue(session, identifier)


def correlate_linear_issues(
    session: requests.Session,
    candidates: list[tuple[PullRequestActivity, str | None]],
) -> None:
    """Look up each referenced ticket once, in parallel, and attach it to every citing activity.

    Lookups never share `session`; each worker gets a fresh one with the same headers.
    """
    pending: dict[str, list[PullRequestActivity]] = {}
    for activity, ref in candidates:
        if ref:
            pending.setdefault(normalize_ticket(ref) or ref, []).append(activity)
    if not pending:
        return
    headers = {str(key): str(value) for key, value in session.headers.items()}
    with concurrent.futures.ThreadPoolExecutor() as executor:
        futures = {
            executor.submit(isolated_lookup, headers, ref): activities
            for ref, activities in pending.items()
        }
        for future in concurrent.futures.as_completed(futures):
            ticket = future.result()
            for activity in futures[future]:
                activity.linear_issue = ticket


def collect_pr_activities(
    github: requests.Session,
    linear: requests.Session,
    window: DayWindow,
    ticket_regex: re.Pattern[str],
    limit: int,
) -> list[PullRequestActivity]:
    """Fetch, classify and correlate the user's pull request activity."""
    start = time.perf_counter()
    user = fetch_acting_user(github)
    logger.info("GitHub user: {login}", login=user.login)
    records = fetch_pull_requests(github, user.login, limit)

    candidates: list[tuple[PullRequestActivity, str | None]] = []
    for record in records:
        activity = classify_pull_request(record, user, window)
        if activity is None:
            continue
        candidates.append((activity, find_pull_request_ticket(record, ticket_regex)))

    correlate_linear_issues(linear, candidates)
    activities = [activity for activity, _ in candidates]
    logger.info(
        "Collected PR activities",
        count=len(activities),
        elapsed=f"{time.perf_counter() - start:.2f}s",
    )
    return activities
