"""gh CLI backend. Loads a pull request through the local GitHub CLI.

`gh pr view --json` returns GraphQL-shaped data that differs from the REST
API in several ways this module has to paper over:

- state is upper-case and includes MERGED (REST: open/closed + merged flag)
- commits carry messageHeadline/messageBody and a list of authors
- files carry no status and no patch
- reviews are identified by GraphQL node ids, while the inline review
  comments (only reachable via `gh api`) point at numeric REST ids
"""

from __future__ import annotations

import json
import logging
import subprocess

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

PR_VIEW_TIMEOUT = 60
API_TIMEOUT = 30
CHECK_TIMEOUT = 10

PR_VIEW_FIELDS = (
    "number",
    "title",
    "state",
    "isDraft",
    "body",
    "url",
    "author",
    "createdAt",
    "updatedAt",
    "mergedAt",
    "closedAt",
    "mergedBy",
    "baseRefName",
    "baseRefOid",
    "headRefName",
    "headRefOid",
    "additions",
    "deletions",
    "changedFiles",
    "labels",
    "assignees",
    "reviewRequests",
    "milestone",
    "files",
    "commits",
    "comments",
)


class GhCommandError(Exception):
    """A gh invocation failed; ``str()`` is the most useful error text available."""


def run_gh(args: list[str], timeout: float) -> str:
    """Run ``gh <args>`` and return stdout, raising GhCommandError on any failure."""
    cmd = ["gh", *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise GhCommandError("gh CLI is not installed") from e
    except subprocess.TimeoutExpired as e:
        raise GhCommandError(f"gh {args[0]} timed out after {timeout:g}s") from e
    if result.returncode != 0:
        err = (result.stderr or result.stdout or "").strip()
        raise GhCommandError(err or f"gh exited with status {result.returncode}")
    return result.stdout


def is_gh_installed() -> bool:
    try:
        run_gh(["--version"], timeout=CHECK_TIMEOUT)
    except GhCommandError:
        return False
    return True


def is_gh_authenticated() -> bool:
    try:
        run_gh(["auth", "status"], timeout=CHECK_TIMEOUT)
    except GhCommandError:
        return False
    return True


def get_gh_token() -> str | None:
    """Return the token stored by `gh auth login`, or None."""
    try:
        token = run_gh(["auth", "token"], timeout=CHECK_TIMEOUT).strip()
    except GhCommandError:
        return None
    return token or None


def _parse_json_stream(output: str) -> list:
    """Parse `gh api --paginate` output: one JSON array per page, back to back."""
    decoder = json.JSONDecoder()
    items: list = []
    pos = 0
    output = output.strip()
    while pos < len(output):
        page, pos = decoder.raw_decode(output, pos)
        if isinstance(page, list):
            items.extend(page)
        else:
            items.append(page)
        while pos < len(output) and output[pos].isspace():
            pos += 1
    return items


def _api_list(path: str) -> list:
    return _parse_json_stream(run_gh(["api", "--paginate", path], timeout=API_TIMEOUT))


def _login(obj: dict | None, default: str = "unknown") -> str:
    return (obj or {}).get("login") or default


def _infer_file_status(additions: int, deletions: int) -> str:
    # gh does not report status; renames cannot be detected this way.
    if additions > 0 and deletions == 0:
        return "added"
    if additions == 0 and deletions > 0:
        return "removed"
    return "modified"


def _to_pull_request(data: dict) -> PullRequest:
    state = (data.get("state") or "").lower()
    merged = state == "merged"
    milestone = data.get("milestone")
    return PullRequest(
        number=data["number"],
        title=data.get("title") or "",
        state="closed" if merged else state,
        draft=bool(data.get("isDraft")),
        merged=merged,
        url=data.get("url") or "",
        author=_login(data.get("author")),
        created_at=parse_timestamp(data.get("createdAt")),
        updated_at=parse_timestamp(data.get("updatedAt")),
        merged_at=parse_timestamp(data.get("mergedAt")),
        closed_at=parse_timestamp(data.get("closedAt")),
        merged_by=_login(data["mergedBy"]) if data.get("mergedBy") else None,
        base=GitRef(ref=data.get("baseRefName") or "", sha=data.get("baseRefOid") or ""),
        head=GitRef(ref=data.get("headRefName") or "", sha=data.get("headRefOid") or ""),
        additions=data.get("additions") or 0,
        deletions=data.get("deletions") or 0,
        changed_files=data.get("changedFiles") or 0,
        labels=[Label(name=lb.get("name", ""), color=lb.get("color") or "") for lb in data.get("labels") or []],
        assignees=[_login(a) for a in data.get("assignees") or []],
        # Team review requests have a name/slug instead of a login.
        requested_reviewers=[
            r.get("login") or r.get("slug") or r.get("name") or "unknown" for r in data.get("reviewRequests") or []
        ],
        milestone=Milestone(title=milestone.get("title", ""), number=milestone.get("number", 0)) if milestone else None,
        body=data.get("body") or "",
    )


def _to_commit(data: dict, ref: PullRequestRef) -> Commit:
    headline = data.get("messageHeadline") or ""
    body = data.get("messageBody") or ""
    authors = data.get("authors") or []
    first = authors[0] if authors else {}
    sha = data.get("oid") or ""
    return Commit(
        sha=sha,
        message=f"{headline}\n\n{body}".strip(),
        url=f"https://github.com/{ref.full_name}/commit/{sha}",
        author_login=first.get("login") or None,
        author_name=first.get("name") or "unknown",
        authored_at=parse_timestamp(data.get("authoredDate")),
    )


def _to_review_comment(data: dict, review_ids: dict | None) -> ReviewComment:
    review_id = data.get("pull_request_review_id")
    if review_id is not None and review_ids is not None:
        review_id = review_ids.get(review_id)
    return ReviewComment(
        id=data["id"],
        author=_login(data.get("user")),
        body=data.get("body") or "",
        path=data.get("path") or "",
        line=data.get("line"),
        created_at=parse_timestamp(data.get("created_at")),
        diff_hunk=data.get("diff_hunk") or "",
        review_id=review_id,
    )


def to_dataset(data: dict, ref: PullRequestRef) -> PullRequestDataset:
    """Map `gh pr view --json` output to the canonical dataset (without inline comments)."""
    return PullRequestDataset(
        pull_request=_to_pull_request(data),
        commits=[_to_commit(c, ref) for c in data.get("commits") or []],
        files=[
            ChangedFile(
                filename=f.get("path") or "",
                status=_infer_file_status(f.get("additions") or 0, f.get("deletions") or 0),
                additions=f.get("additions") or 0,
                deletions=f.get("deletions") or 0,
            )
            for f in data.get("files") or []
        ],
        comments=[
            IssueComment(
                id=c.get("id"),
                author=_login(c.get("author")),
                body=c.get("body") or "",
                created_at=parse_timestamp(c.get("createdAt")),
            )
            for c in data.get("comments") or []
        ],
        reviews=[
            Review(
                id=r.get("id"),
                author=_login(r.get("author")),
                state=r.get("state") or "",
                body=r.get("body") or "",
                submitted_at=parse_timestamp(r.get("submittedAt")),
            )
            for r in data.get("reviews") or []
        ],
    )


def _classify(ref: PullRequestRef, message: str) -> Exception:
    lowered = message.lower()
    if "not found" in lowered or "could not resolve" in lowered:
        return NotFound(f"Pull request not found: {ref}")
    if "auth" in lowered or "401" in lowered:
        return AuthenticationFailed('Authentication failed. Please run "gh auth login" to authenticate')
    return BackendFailure(f"Failed to fetch pull request via gh CLI: {message}")


def _fetch_review_comments(ref: PullRequestRef, include_reviews: bool, log: logging.Logger) -> list[ReviewComment]:
    base = f"repos/{ref.full_name}/pulls/{ref.pr_number}"
    try:
        raw_comments = _api_list(f"{base}/comments")
    except (GhCommandError, ValueError) as e:
        log.debug("  Could not fetch review comments: %s", e)
        return []

    review_ids = None
    if include_reviews:
        # Translate numeric REST review ids into the node ids gh pr view uses.
        try:
            review_ids = {r["id"]: r.get("node_id") for r in _api_list(f"{base}/reviews")}
        except (GhCommandError, ValueError, KeyError, TypeError) as e:
            log.debug("  Could not map review ids, inline comments will be standalone: %s", e)
            review_ids = {}

    return [_to_review_comment(c, review_ids) for c in raw_comments]


def load_pull_request(
    ref: PullRequestRef,
    include_reviews: bool = True,
    log: logging.Logger | None = None,
) -> PullRequestDataset:
    """Fetch a pull request with `gh pr view` plus `gh api` for inline comments.

    Raises:
        NotFound, AuthenticationFailed, BackendFailure
    """
    log = log or logger
    log.info("Fetching pull request %s using gh CLI...", ref)

    fields = list(PR_VIEW_FIELDS)
    if include_reviews:
        fields.append("reviews")
    args = ["pr", "view", str(ref.pr_number), "--repo", ref.full_name, "--json", ",".join(fields)]
    log.debug("  Running: gh %s", " ".join(args))

    try:
        output = run_gh(args, timeout=PR_VIEW_TIMEOUT)
    except GhCommandError as e:
        raise _classify(ref, str(e)) from e

    try:
        data = json.loads(output)
    except ValueError as e:
        raise BackendFailure(f"Failed to fetch pull request via gh CLI: invalid JSON output ({e})") from e

    try:
        dataset = to_dataset(data, ref)
        dataset.review_comments = _fetch_review_comments(ref, include_reviews, log)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise BackendFailure(f"Failed to fetch pull request via gh CLI: unexpected output ({e!r})") from e
    dataset.link_review_comments()

    log.info("Successfully fetched PR data using gh CLI")
    return dataset
