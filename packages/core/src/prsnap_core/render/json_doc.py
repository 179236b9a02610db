"""JSON projection of a PullRequestDataset.

Field names are camelCase to match what GitHub users expect from the
REST/GraphQL APIs. Timestamps are ISO-8601 UTC with a ``Z`` suffix.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Iterable

from prsnap_core.models import DownloadedImage, PullRequest, PullRequestDataset, profile_url


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _user(login: str) -> dict:
    return {"login": login, "url": profile_url(login)}


def _pull_request(pr: PullRequest) -> dict:
    return {
        "number": pr.number,
        "title": pr.title,
        "state": pr.state,
        "draft": pr.draft,
        "merged": pr.merged,
        "url": pr.url,
        "author": _user(pr.author),
        "createdAt": _iso(pr.created_at),
        "updatedAt": _iso(pr.updated_at),
        "mergedAt": _iso(pr.merged_at),
        "closedAt": _iso(pr.closed_at),
        "mergedBy": _user(pr.merged_by) if pr.merged_by else None,
        "base": {"ref": pr.base.ref, "sha": pr.base.sha},
        "head": {"ref": pr.head.ref, "sha": pr.head.sha},
        "additions": pr.additions,
        "deletions": pr.deletions,
        "changedFiles": pr.changed_files,
        "labels": [{"name": lb.name, "color": lb.color} for lb in pr.labels],
        "assignees": [_user(a) for a in pr.assignees],
        "requestedReviewers": [_user(r) for r in pr.requested_reviewers],
        "milestone": {"title": pr.milestone.title, "number": pr.milestone.number} if pr.milestone else None,
        "body": pr.body,
    }


def to_document(dataset: PullRequestDataset, downloaded_images: Iterable[DownloadedImage] = ()) -> dict:
    return {
        "pullRequest": _pull_request(dataset.pull_request),
        "commits": [
            {
                "sha": c.sha,
                "message": c.message,
                "author": c.author,
                "url": c.url,
                "date": _iso(c.authored_at),
            }
            for c in dataset.commits
        ],
        "files": [
            {
                "filename": f.filename,
                "status": f.status,
                "additions": f.additions,
                "deletions": f.deletions,
                "previousFilename": f.previous_filename,
                "patch": f.patch,
            }
            for f in dataset.files
        ],
        "reviews": [
            {
                "id": r.id,
                "author": r.author,
                "state": r.state,
                "body": r.body,
                "submittedAt": _iso(r.submitted_at),
            }
            for r in dataset.reviews
        ],
        "reviewComments": [
            {
                "id": c.id,
                "author": c.author,
                "body": c.body,
                "path": c.path,
                "line": c.line,
                "createdAt": _iso(c.created_at),
                "diffHunk": c.diff_hunk,
                "reviewId": c.review_id,
            }
            for c in dataset.review_comments
        ],
        "comments": [
            {
                "id": c.id,
                "author": c.author,
                "body": c.body,
                "createdAt": _iso(c.created_at),
            }
            for c in dataset.comments
        ],
        "downloadedImages": [
            {
                "originalUrl": img.original_url,
                "localPath": img.relative_path,
                "format": img.format,
            }
            for img in downloaded_images
        ],
    }


def render_json(dataset: PullRequestDataset, downloaded_images: Iterable[DownloadedImage] = ()) -> str:
    return json.dumps(to_document(dataset, downloaded_images), indent=2, ensure_ascii=False)
