"""GraphQL transport shared by the GitHub and Linear collaborators."""
from __future__ import annotations

from collections.abc import Iterator
from typing import cast

import requests

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
LINEAR_GRAPHQL_URL = "https://api.linear.app/graphql"
HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT_SECONDS = 30
JSONDict = dict[str, object]
JSONList = list[object]


def ensure_dict(value: object, context: str) -> JSONDict:
    """Return a dictionary value or raise."""
    if isinstance(value, dict):
        return cast("JSONDict", value)
    raise TypeError(f"Expected object for {context}, got {type(value).__name__}")


def ensure_list(value: object, context: str) -> JSONList:
    """Return a list value or raise."""
    if isinstance(value, list):
        return cast("JSONList", value)
    raise TypeError(f"Expected list for {context}, got {type(value).__name__}")


def ensure_str(value: object, context: str, default: str = "") -> str:
    """Return a string value or a default."""
    if isinstance(value, str):
        return value
    if value is None:
        return default
    raise TypeError(f"Expected string for {context}, got {type(value).__name__}")


def ensure_int(value: object, context: str) -> int:
    """Return an integer value or raise."""
    if isinstance(value, int):
        return value
    raise TypeError(f"Expected integer for {context}, got {type(value).__name__}")


class GraphQLRequestError(RuntimeError):
    """Raised when a GraphQL request fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a GraphQL request error."""
        super().__init__(f"GraphQL request failed ({status_code}): {text}")
        self.status_code = status_code


class GraphQLErrorsError(RuntimeError):
    """Raised when GraphQL response includes errors."""

    def __init__(self, errors: object) -> None:
        """Create a GraphQL errors exception."""
        super().__init__(f"GraphQL errors: {errors}")
        self.errors = errors


def make_session(headers: dict[str, str]) -> requests.Session:
    """Return a session carrying the given default headers."""
    session = requests.Session()
    session.headers.update(headers)
    return session


def github_session(token: str) -> requests.Session:
    """Return an authenticated GitHub API session."""
    return make_session({"Authorization": f"Bearer {token}", "Accept": "application/json"})


def linear_session(api_key: str) -> requests.Session:
    """Return an authenticated Linear API session."""
    return make_session({"Authorization": api_key, "Accept": "application/json"})


def call_graphql(
    session: requests.Session,
    url: str,
    query: str,
    variables: JSONDict,
) -> JSONDict:
    """Call a GraphQL endpoint and return the data payload."""
    response = session.post(
        url,
        json={"query": query, "variables": variables},
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    if response.status_code >= HTTP_ERROR_THRESHOLD:
        raise GraphQLRequestError(response.status_code, response.text)
    payload = ensure_dict(response.json(), "GraphQL response")
    errors = payload.get("errors")
    if errors:
        raise GraphQLErrorsError(errors)
    return ensure_dict(payload.get("data"), "GraphQL data")


def iter_connection_nodes(
    session: requests.Session,
    url: str,
    query: str,
    variables: JSONDict,
    connection: str,
) -> Iterator[JSONDict]:
    """Yield every node of a cursor-paginated connection.

    The query must accept a `$cursor` variable and select
    `pageInfo { hasNextPage endCursor }` on the connection.
    """
    cursor: str | None = None
    while True:
        data = call_graphql(session, url, query, {**variables, "cursor": cursor})
        container = ensure_dict(data.get(connection), connection)
        for node in ensure_list(container.get("nodes") or [], f"{connection}.nodes"):
            yield ensure_dict(node, f"{connection}.node")
        page_info = ensure_dict(container.get("pageInfo") or {}, f"{connection}.pageInfo")
        if not bool(page_info.get("hasNextPage")):
            return
        cursor = ensure_str(page_info.get("endCursor"), "pageInfo.endCursor") or None
        if cursor is None:
            return
