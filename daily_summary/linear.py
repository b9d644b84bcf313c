"""Linear collaborator: viewer, the day's issues and comments, ticket lookup."""
from __future__ import annotations

import textwrap
from datetime import datetime

import requests
from loguru import logger

from daily_summary.graphql import (
    LINEAR_GRAPHQL_URL,
    JSONDict,
    call_graphql,
    ensure_dict,
    ensure_list,
    ensure_str,
    iter_connection_nodes,
)
from daily_summary.models import LinearCommentRecord, LinearIssueRecord, LinearTicket
from daily_summary.tickets import normalize_ticket
from daily_summary.window import DayWindow

PAGE_SIZE = 100

VIEWER_QUERY = "query { viewer { id } }"

CREATED_ISSUES_QUERY = textwrap.dedent(
    """
    query($viewer: ID!, $start: DateTimeOrDuration!, $end: DateTimeOrDuration!,
          $first: Int!, $cursor: String) {
      issues(
        filter: {
          creator: { id: { eq: $viewer } },
          createdAt: { gte: $start, lte: $end }
        },
        first: $first,
        after: $cursor
      ) {
        pageInfo { hasNextPage endCursor }
        nodes { id identifier title url updatedAt }
      }
    }
    """,
).strip()

COMMENTS_QUERY = textwrap.dedent(
    """
    query($viewer: ID!, $start: DateTimeOrDuration!, $end: DateTimeOrDuration!,
          $first: Int!, $cursor: String) {
      comments(
        filter: {
          user: { id: { eq: $viewer } },
          createdAt: { gte: $start, lte: $end }
        },
        first: $first,
        after: $cursor
      ) {
        pageInfo { hasNextPage endCursor }
        nodes { body createdAt issue { id } }
      }
    }
    """,
).strip()

ISSUES_BY_ID_QUERY = textwrap.dedent(
    """
    query($ids: [ID!]!, $first: Int!, $cursor: String) {
      issues(filter: { id: { in: $ids } }, first: $first, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes { id identifier title url updatedAt }
      }
    }
    """,
).strip()

TICKET_QUERY = textwrap.dedent(
    """
    query($team: String!, $number: Float!) {
      issues(
        filter: { team: { key: { eq: $team } }, number: { eq: $number } },
        first: 1
      ) {
        nodes {
          identifier
          title
          url
        }
      }
    }
    """,
).strip()


class TicketNotFoundError(LookupError):
    """Raised when a ticket identifier does not resolve to a Linear issue."""

    def __init__(self, identifier: str) -> None:
        """Create a ticket-not-found error."""
        super().__init__(f"Linear ticket not found: {identifier}")
        self.identifier = identifier


def fetch_viewer_id(session: requests.Session) -> str:
    """Return the id of the authenticated Linear user."""
    data = call_graphql(session, LINEAR_GRAPHQL_URL, VIEWER_QUERY, {})
    viewer = ensure_dict(data.get("viewer"), "viewer")
    return ensure_str(viewer.get("id"), "viewer.id")


def window_variables(viewer_id: str, window: DayWindow) -> JSONDict:
    return {
        "viewer": viewer_id,
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
        "first": PAGE_SIZE,
    }


def parse_issue_node(node: JSONDict) -> LinearIssueRecord:
    """Parse a LinearIssueRecord from a GraphQL node."""
    return LinearIssueRecord(
        id=ensure_str(node.get("id"), "issue.id"),
        identifier=ensure_str(node.get("identifier"), "issue.identifier"),
        title=ensure_str(node.get("title"), "issue.title"),
        url=ensure_str(node.get("url"), "issue.url"),
        updated_at=datetime.fromisoformat(
            ensure_str(node.get("updatedAt"), "issue.updatedAt"),
        ),
    )


def parse_comment_node(node: JSONDict) -> LinearCommentRecord:
    """Parse a LinearCommentRecord, keeping only the parent issue id."""
    issue = node.get("issue")
    issue_id = None
    if issue is not None:
        issue_id = ensure_str(ensure_dict(issue, "comment.issue").get("id"), "issue.id") or None
    return LinearCommentRecord(
        body=ensure_str(node.get("body"), "comment.body"),
        created_at=datetime.fromisoformat(
            ensure_str(node.get("createdAt"), "comment.createdAt"),
        ),
        issue_id=issue_id,
    )


def fetch_created_issues(
    session: requests.Session,
    viewer_id: str,
    window: DayWindow,
) -> list[LinearIssueRecord]:
    """Fetch issues the viewer created during the window."""
    nodes = iter_connection_nodes(
        session,
        LINEAR_GRAPHQL_URL,
        CREATED_ISSUES_QUERY,
        window_variables(viewer_id, window),
        "issues",
    )
    return [parse_issue_node(node) for node in nodes]


def fetch_comments(
    session: requests.Session,
    viewer_id: str,
    window: DayWindow,
) -> list[LinearCommentRecord]:
    """Fetch comments the viewer wrote during the window, parents unresolved."""
    nodes = iter_connection_nodes(
        session,
        LINEAR_GRAPHQL_URL,
        COMMENTS_QUERY,
        window_variables(viewer_id, window),
        "comments",
    )
    return [parse_comment_node(node) for node in nodes]


def resolve_comment_issues(
    session: requests.Session,
    comments: list[LinearCommentRecord],
) -> list[LinearCommentRecord]:
    """Attach parent issues to comments with a single batched lookup."""
    issue_ids = sorted({comment.issue_id for comment in comments if comment.issue_id})
    if not issue_ids:
        return comments
    nodes = iter_connection_nodes(
        session,
        LINEAR_GRAPHQL_URL,
        ISSUES_BY_ID_QUERY,
        {"ids": issue_ids, "first": PAGE_SIZE},
        "issues",
    )
    issues_by_id = {issue.id: issue for issue in map(parse_issue_node, nodes)}
    resolved: list[LinearCommentRecord] = []
    for comment in comments:
        issue = issues_by_id.get(comment.issue_id) if comment.issue_id else None
        if comment.issue_id and issue is None:
            logger.warning("Comment parent issue not found", issue_id=comment.issue_id)
        resolved.append(comment.model_copy(update={"issue": issue}))
    return resolved


def fetch_linear_ticket(session: requests.Session, identifier: str) -> LinearTicket:
    """Fetch a Linear ticket by identifier or raise TicketNotFoundError."""
    normalized = normalize_ticket(identifier)
    if normalized is None:
        raise TicketNotFoundError(identifier)
    team_key, number_text = normalized.split("-", 1)

    data = call_graphql(
        session,
        LINEAR_GRAPHQL_URL,
        TICKET_QUERY,
        {"team": team_key, "number": int(number_text)},
    )
    issues = ensure_dict(data.get("issues"), "issues")
    nodes = ensure_list(issues.get("nodes") or [], "issues.nodes")
    if not nodes:
        raise TicketNotFoundError(normalized)
    issue = ensure_dict(nodes[0], "issue")
    return LinearTicket(
        identifier=ensure_str(issue.get("identifier"), "issue.identifier", normalized),
        title=ensure_str(issue.get("title"), "issue.title"),
        url=ensure_str(issue.get("url"), "issue.url"),
    )
