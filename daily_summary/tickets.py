"""Ticket reference extraction from pull request text."""
from __future__ import annotations

import re
from collections.abc import Iterable

from daily_summary.models import PullRequestRecord

TICKET_PARTS = 2


def build_ticket_regex(pattern: str) -> re.Pattern[str]:
    """Build the ticket regex."""
    return re.compile(pattern)


def find_ticket_reference(
    sources: Iterable[str],
    regex: re.Pattern[str],
) -> str | None:
    """Return the first ticket match, scanning sources in the given order."""
    for text in sources:
        if not text:
            continue
        match = regex.search(text)
        if match:
            return match.group(0)
    return None


def pull_request_ticket_sources(pr: PullRequestRecord) -> list[str]:
    """Return branch name, title, then every commit message, in that order."""
    return [pr.head_ref_name, pr.title, *(commit.message for commit in pr.commits)]


def find_pull_request_ticket(pr: PullRequestRecord, regex: re.Pattern[str]) -> str | None:
    """Return the ticket a pull request refers to, if any."""
    return find_ticket_reference(pull_request_ticket_sources(pr), regex)


def normalize_ticket(raw_ticket: str) -> str | None:
    """Normalize a ticket identifier or return None."""
    parts = raw_ticket.split("-", 1)
    if len(parts) != TICKET_PARTS:
        return None
    team_key, number_text = parts[0].upper(), parts[1]
    if not team_key or not number_text.isdigit():
        return None
    return f"{team_key}-{number_text}"
