"""Canonical pull request dataset.

Both backends (gh CLI and REST API) map their responses into these
dataclasses, and every renderer reads only from them. Body fields are
plain mutable strings: the image localization pass rewrites them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

GITHUB_URL = "https://github.com"


def profile_url(login: str) -> str:
    return f"{GITHUB_URL}/{login}"


def parse_timestamp(value) -> datetime | None:
    """Normalize an ISO-8601 string or datetime to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class GitRef:
    ref: str
    sha: str


@dataclass
class Label:
    name: str
    color: str = ""


@dataclass
class Milestone:
    title: str
    number: int


@dataclass
class PullRequest:
    number: int
    title: str
    state: str  # "open" | "closed"
    url: str
    author: str
    created_at: datetime | None
    updated_at: datetime | None
    base: GitRef
    head: GitRef
    draft: bool = False
    merged: bool = False
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    merged_by: str | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    labels: list[Label] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    requested_reviewers: list[str] = field(default_factory=list)
    milestone: Milestone | None = None
    body: str = ""

    @property
    def author_url(self) -> str:
        return profile_url(self.author)


@dataclass
class Commit:
    sha: str
    message: str
    url: str
    author_login: str | None = None
    author_name: str = "unknown"
    authored_at: datetime | None = None

    @property
    def headline(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def author(self) -> str:
        """GitHub login when the commit is linked to an account, else the raw git name."""
        return self.author_login or self.author_name or "unknown"


@dataclass
class ChangedFile:
    filename: str
    status: str  # "added" | "removed" | "modified" | "renamed" (API may report others)
    additions: int = 0
    deletions: int = 0
    previous_filename: str | None = None
    patch: str = ""


@dataclass
class IssueComment:
    id: int | str
    author: str
    body: str
    created_at: datetime | None


@dataclass
class Review:
    id: int | str
    author: str
    state: str
    body: str = ""
    submitted_at: datetime | None = None


@dataclass
class ReviewComment:
    id: int | str
    author: str
    body: str
    path: str
    created_at: datetime | None
    line: int | None = None
    diff_hunk: str = ""
    review_id: int | str | None = None


@dataclass
class PullRequestDataset:
    """Everything visible on one pull request page."""

    pull_request: PullRequest
    commits: list[Commit] = field(default_factory=list)
    files: list[ChangedFile] = field(default_factory=list)
    comments: list[IssueComment] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    review_comments: list[ReviewComment] = field(default_factory=list)

    def link_review_comments(self) -> PullRequestDataset:
        """Detach inline comments that point at a review we do not have.

        Keeps the invariant that every non-null review_id resolves to an
        entry in ``reviews``; unresolved comments become standalone.
        """
        known = {review.id for review in self.reviews}
        for comment in self.review_comments:
            if comment.review_id is not None and comment.review_id not in known:
                comment.review_id = None
        return self

    def comments_for_review(self, review_id) -> list[ReviewComment]:
        return [c for c in self.review_comments if c.review_id is not None and c.review_id == review_id]

    def standalone_review_comments(self) -> list[ReviewComment]:
        return [c for c in self.review_comments if c.review_id is None]


@dataclass
class DownloadedImage:
    original_url: str
    local_path: str
    relative_path: str
    format: str
