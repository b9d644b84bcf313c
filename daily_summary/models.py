"""Data models for raw source records and the grouped daily activity."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PullRequestActivityType = Literal["created", "updated", "merged"]
LinearActivityType = Literal["created", "statusChanged", "commented", "closed"]
ReviewStatus = Literal["approved", "changes_requested", "commented"]


class ActingUser(BaseModel):
    """The GitHub identity whose activity is being summarized."""

    login: str
    name: str = ""
    email: str = ""


class CommitRecord(BaseModel):
    """A commit as returned by the pull request search."""

    message: str
    authored_date: datetime
    author_email: str = ""
    author_name: str = ""


class ReviewRecord(BaseModel):
    """A pull request review as returned by the pull request search."""

    state: str
    author_login: str = ""
    submitted_at: datetime | None = None


class PullRequestRecord(BaseModel):
    """Raw pull request data used for classification."""

    title: str
    number: int
    body: str
    url: str
    repo_owner: str
    repo_name: str
    head_ref_name: str
    state: str
    commits: list[CommitRecord]
    reviews: list[ReviewRecord]
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None

    @property
    def repo(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"


class LinearTicket(BaseModel):
    """Linear ticket data resolved from an identifier."""

    identifier: str
    title: str
    url: str


class LinearIssueRecord(BaseModel):
    """A Linear issue created by the viewer during the day."""

    id: str = ""
    identifier: str
    title: str
    url: str
    updated_at: datetime


class LinearCommentRecord(BaseModel):
    """A Linear comment written by the viewer during the day.

    `issue_id` comes from the comment query; `issue` is filled in by a
    separate batch lookup and stays None when the parent can't be resolved.
    """

    body: str
    created_at: datetime
    issue_id: str | None = None
    issue: LinearIssueRecord | None = None


class ActivityCommit(BaseModel):
    """A commit attributed to the acting user on the summarized day."""

    message: str
    timestamp: datetime


class PullRequestActivity(BaseModel):
    """One pull request's activity on the summarized day."""

    source: Literal["pull request"] = "pull request"
    type: PullRequestActivityType
    url: str
    title: str
    number: int
    repo: str
    description: str | None = None
    commits: list[ActivityCommit] = Field(min_length=1)
    status: str
    review_status: ReviewStatus | None = Field(
        default=None,
        serialization_alias="reviewStatus",
    )
    # correlation only; never serialized
    linear_issue: LinearTicket | None = Field(default=None, exclude=True)
    last_updated: datetime = Field(serialization_alias="lastUpdated")


class LinearActivity(BaseModel):
    """One Linear event on the summarized day."""

    source: Literal["linear"] = "linear"
    type: LinearActivityType
    url: str
    ticket_id: str = Field(serialization_alias="ticketId")
    title: str
    date: datetime
    description: str | None = None


class GroupedActivities(BaseModel):
    """Activities partitioned into the buckets used by the narrative."""

    opened_prs: list[PullRequestActivity] = Field(
        default_factory=list,
        serialization_alias="openedPRs",
    )
    merged_prs: list[PullRequestActivity] = Field(
        default_factory=list,
        serialization_alias="mergedPRs",
    )
    linear_issues: list[LinearActivity] = Field(
        default_factory=list,
        serialization_alias="linearIssues",
    )

    def to_payload(self) -> dict[str, object]:
        """Return the JSON-ready structure handed to the narrative and output."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SummaryResult(BaseModel):
    """Grouped activities plus the generated (or skipped) narrative."""

    activities: GroupedActivities
    response: str

    def to_payload(self) -> dict[str, object]:
        return {"activities": self.activities.to_payload(), "response": self.response}
