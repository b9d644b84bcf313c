"""GitHub collaborator: acting user and recent pull requests."""
from __future__ import annotations

import textwrap
from datetime import datetime

import requests
from loguru import logger

from daily_summary.graphql import (
    GITHUB_GRAPHQL_URL,
    JSONDict,
    call_graphql,
    ensure_dict,
    ensure_int,
    ensure_list,
    ensure_str,
)
from daily_summary.models import (
    ActingUser,
    CommitRecord,
    PullRequestRecord,
    ReviewRecord,
)

COMMITS_PER_PR = 100
REVIEWS_PER_PR = 10

VIEWER_QUERY = "query { viewer { login name email } }"

PULL_REQUEST_QUERY = textwrap.dedent(
    """
    query($query: String!, $first: Int!, $commits: Int!, $reviews: Int!) {
      search(type: ISSUE, query: $query, first: $first) {
        nodes {
          ... on PullRequest {
            title
            number
            body
            url
            repository { name owner { login } }
            headRefName
            commits(last: $commits) {
              nodes {
                commit {
                  message
                  authoredDate
                  author { email name }
                }
              }
            }
            state
            reviews(last: $reviews) {
              nodes {
                state
                submittedAt
                author { login }
              }
            }
            createdAt
            updatedAt
            mergedAt
          }
        }
      }
    }
    """,
).strip()


def fetch_acting_user(session: requests.Session) -> ActingUser:
    """Return the authenticated GitHub user."""
    data = call_graphql(session, GITHUB_GRAPHQL_URL, VIEWER_QUERY, {})
    viewer = ensure_dict(data.get("viewer"), "viewer")
    return ActingUser(
        login=ensure_str(viewer.get("login"), "viewer.login"),
        name=ensure_str(viewer.get("name"), "viewer.name"),
        email=ensure_str(viewer.get("email"), "viewer.email"),
    )


def build_search_query(login: str) -> str:
    """Build the GitHub search query for the user's recently updated PRs."""
    return f"author:{login} is:pr sort:updated-desc"


def parse_timestamp(value: object, context: str) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None for missing values."""
    text = ensure_str(value, context)
    if not text:
        return None
    return datetime.fromisoformat(text)


def require_timestamp(value: object, context: str) -> datetime:
    """Parse an ISO-8601 timestamp or raise."""
    parsed = parse_timestamp(value, context)
    if parsed is None:
        raise TypeError(f"Missing timestamp for {context}")
    return parsed


def extract_pr_commits(node_dict: JSONDict) -> list[CommitRecord]:
    """Extract commit records from a PR node."""
    commits: list[CommitRecord] = []
    commits_container = ensure_dict(node_dict.get("commits") or {}, "commits")
    commit_nodes = ensure_list(commits_container.get("nodes") or [], "commits.nodes")
    for commit_node in commit_nodes:
        commit_node_dict = ensure_dict(commit_node, "commit_node")
        commit = ensure_dict(commit_node_dict.get("commit") or {}, "commit")
        author = ensure_dict(commit.get("author") or {}, "commit.author")
        commits.append(
            CommitRecord(
                message=ensure_str(commit.get("message"), "commit.message"),
                authored_date=require_timestamp(
                    commit.get("authoredDate"),
                    "commit.authoredDate",
                ),
                author_email=ensure_str(author.get("email"), "author.email"),
                author_name=ensure_str(author.get("name"), "author.name"),
            ),
        )
    return commits


def extract_pr_reviews(node_dict: JSONDict) -> list[ReviewRecord]:
    """Extract review records from a PR node."""
    reviews: list[ReviewRecord] = []
    reviews_container = ensure_dict(node_dict.get("reviews") or {}, "reviews")
    review_nodes = ensure_list(reviews_container.get("nodes") or [], "reviews.nodes")
    for review_node in review_nodes:
        review = ensure_dict(review_node, "review")
        author = ensure_dict(review.get("author") or {}, "review.author")
        reviews.append(
            ReviewRecord(
                state=ensure_str(review.get("state"), "review.state"),
                author_login=ensure_str(author.get("login"), "review.author.login"),
                submitted_at=parse_timestamp(
                    review.get("submittedAt"),
                    "review.submittedAt",
                ),
            ),
        )
    return reviews


def parse_pr_node(node_dict: JSONDict) -> PullRequestRecord:
    """Parse a PullRequestRecord from a GraphQL node."""
    repository = ensure_dict(node_dict.get("repository"), "repository")
    owner = ensure_dict(repository.get("owner") or {}, "repository.owner")
    repo_owner = ensure_str(owner.get("login"), "repository.owner.login")
    repo_name = ensure_str(repository.get("name"), "repository.name")
    number = ensure_int(node_dict.get("number"), "number")
    url = ensure_str(node_dict.get("url"), "url") or (
        f"https://github.com/{repo_owner}/{repo_name}/pull/{number}"
    )
    return PullRequestRecord(
        title=ensure_str(node_dict.get("title"), "title"),
        number=number,
        body=ensure_str(node_dict.get("body"), "body"),
        url=url,
        repo_owner=repo_owner,
        repo_name=repo_name,
        head_ref_name=ensure_str(node_dict.get("headRefName"), "headRefName"),
        state=ensure_str(node_dict.get("state"), "state"),
        commits=extract_pr_commits(node_dict),
        reviews=extract_pr_reviews(node_dict),
        created_at=require_timestamp(node_dict.get("createdAt"), "createdAt"),
        updated_at=require_timestamp(node_dict.get("updatedAt"), "updatedAt"),
        merged_at=parse_timestamp(node_dict.get("mergedAt"), "mergedAt"),
    )


def fetch_pull_requests(
    session: requests.Session,
    login: str,
    limit: int,
) -> list[PullRequestRecord]:
    """Fetch the user's most recently updated pull requests."""
    search_query = build_search_query(login)
    logger.info("GitHub search query: {query}", query=search_query)
    data = call_graphql(
        session,
        GITHUB_GRAPHQL_URL,
        PULL_REQUEST_QUERY,
        {
            "query": search_query,
            "first": limit,
            "commits": COMMITS_PER_PR,
            "reviews": REVIEWS_PER_PR,
        },
    )
    search = ensure_dict(data.get("search"), "search")
    nodes = ensure_list(search.get("nodes") or [], "search.nodes")
    records: list[PullRequestRecord] = []
    for node in nodes:
        node_dict = ensure_dict(node, "pull_request")
        # non-PR search hits come back as empty objects
        if not node_dict:
            continue
        records.append(parse_pr_node(node_dict))
    logger.info("Retrieved pull requests: {count}", count=len(records))
    return records
