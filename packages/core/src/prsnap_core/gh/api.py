"""REST API backend. Loads a pull request through PyGithub.

The REST shapes are already close to the canonical dataset, so the mapping
here is mostly attribute renames. PyGithub's PaginatedList objects are
iterated to exhaustion, so every page of files, comments and commits is
included.
"""

from __future__ import annotations

import logging

import requests
from github import Auth, Github, GithubException

from prsnap_core.errors import AuthenticationFailed, BackendFailure, NotFound
from prsnap_core.gh.reference import PullRequestRef
from prsnap_core.models import (
    ChangedFile,
    Commit,
    GitRef,
    IssueComment,
    Label,
    Milestone,
    PullRequest,
    PullRequestDataset,
    Review,
    ReviewComment,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def get_client(token: str | None = None) -> Github:
    if token:
        return Github(auth=Auth.Token(token))
    return Github()


def _login(user, default: str = "unknown") -> str:
    return getattr(user, "login", None) or default


def _to_pull_request(pr) -> PullRequest:
    milestone = pr.milestone
    return PullRequest(
        number=pr.number,
        title=pr.title or "",
        state=pr.state,
        draft=bool(pr.draft),
        merged=bool(pr.merged),
        url=pr.html_url,
        author=_login(pr.user),
        created_at=parse_timestamp(pr.created_at),
        updated_at=parse_timestamp(pr.updated_at),
        merged_at=parse_timestamp(pr.merged_at),
        closed_at=parse_timestamp(pr.closed_at),
        merged_by=_login(pr.merged_by) if pr.merged_by else None,
        base=GitRef(ref=pr.base.ref, sha=pr.base.sha),
        head=GitRef(ref=pr.head.ref, sha=pr.head.sha),
        additions=pr.additions or 0,
        deletions=pr.deletions or 0,
        changed_files=pr.changed_files or 0,
        labels=[Label(name=lb.name, color=lb.color or "") for lb in pr.labels or []],
        assignees=[_login(a) for a in pr.assignees or []],
        requested_reviewers=[_login(r) for r in pr.requested_reviewers or []],
        milestone=Milestone(title=milestone.title, number=milestone.number) if milestone else None,
        body=pr.body or "",
    )


def _to_commit(c) -> Commit:
    git_author = c.commit.author
    return Commit(
        sha=c.sha,
        message=c.commit.message or "",
        url=c.html_url,
        author_login=getattr(c.author, "login", None) or None,
        author_name=getattr(git_author, "name", None) or "unknown",
        authored_at=parse_timestamp(getattr(git_author, "date", None)),
    )


def _to_changed_file(f) -> ChangedFile:
    return ChangedFile(
        filename=f.filename,
        status=f.status,
        additions=f.additions or 0,
        deletions=f.deletions or 0,
        previous_filename=f.previous_filename if f.status == "renamed" else None,
        patch=f.patch or "",
    )


def _to_review_comment(c) -> ReviewComment:
    return ReviewComment(
        id=c.id,
        author=_login(c.user),
        body=c.body or "",
        path=c.path or "",
        line=c.line,
        created_at=parse_timestamp(c.created_at),
        diff_hunk=c.diff_hunk or "",
        review_id=c.pull_request_review_id,
    )


def load_pull_request(
    ref: PullRequestRef,
    token: str | None = None,
    include_reviews: bool = True,
    log: logging.Logger | None = None,
    client: Github | None = None,
) -> PullRequestDataset:
    """Fetch a pull request and all of its sub-resources over the REST API.

    Raises:
        NotFound: 404 from any request.
        AuthenticationFailed: 401 from any request.
        BackendFailure: any other API or transport error.
    """
    log = log or logger
    log.info("Fetching pull request %s using API...", ref)
    gh = client if client is not None else get_client(token)

    try:
        pr = gh.get_repo(ref.full_name).get_pull(ref.pr_number)
        dataset = PullRequestDataset(pull_request=_to_pull_request(pr))
        dataset.files = [_to_changed_file(f) for f in pr.get_files()]
        dataset.comments = [
            IssueComment(
                id=c.id,
                author=_login(c.user),
                body=c.body or "",
                created_at=parse_timestamp(c.created_at),
            )
            for c in pr.get_issue_comments()
        ]
        dataset.review_comments = [_to_review_comment(c) for c in pr.get_review_comments()]
        if include_reviews:
            dataset.reviews = [
                Review(
                    id=r.id,
                    author=_login(r.user),
                    state=r.state,
                    body=r.body or "",
                    submitted_at=parse_timestamp(r.submitted_at),
                )
                for r in pr.get_reviews()
            ]
        dataset.commits = [_to_commit(c) for c in pr.get_commits()]
    except GithubException as e:
        if e.status == 404:
            raise NotFound(f"Pull request not found: {ref}") from e
        if e.status == 401:
            raise AuthenticationFailed("Authentication failed. Please provide a valid GitHub token") from e
        raise BackendFailure(f"Failed to fetch pull request via API: {e}") from e
    except requests.RequestException as e:
        raise BackendFailure(f"Failed to fetch pull request via API: {e}") from e

    dataset.link_review_comments()
    log.info("Successfully fetched PR data using API")
    return dataset
