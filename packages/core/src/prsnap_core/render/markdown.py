"""Render a PullRequestDataset as a markdown document mirroring the PR page.

The Conversation section interleaves issue comments and submitted reviews
strictly by timestamp. Pending reviews have no submitted_at and are left
out of the timeline entirely. Inline review comments are nested under the
review they belong to; ones without a review get their own section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from prsnap_core.models import (
    ChangedFile,
    Commit,
    DownloadedImage,
    IssueComment,
    PullRequest,
    PullRequestDataset,
    Review,
    ReviewComment,
    profile_url,
)
from prsnap_core.render.localize import ImageLocalizer

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "_No description provided._"
NO_CONVERSATION = "_No comments or reviews._"

_REVIEW_MARKERS = {
    "APPROVED": "✅",
    "CHANGES_REQUESTED": "❌",
    "COMMENTED": "💬",
}
_DEFAULT_REVIEW_MARKER = "📝"

_FILE_STATUS_LABELS = {
    "added": "🆕 Added",
    "removed": "🗑️ Removed",
    "modified": "✏️ Modified",
    "renamed": "📝 Renamed",
}

# Sort key for events that somehow lack a timestamp: keep them first, stably.
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class TimelineEvent:
    kind: str  # "comment" | "review"
    timestamp: datetime
    item: IssueComment | Review


@dataclass
class RenderResult:
    markdown: str
    downloaded_images: list[DownloadedImage] = field(default_factory=list)


def format_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _user_link(login: str) -> str:
    return f"[@{login}]({profile_url(login)})"


def build_timeline(dataset: PullRequestDataset) -> list[TimelineEvent]:
    """Merge comments and submitted reviews into one ascending, stable sequence."""
    events = [TimelineEvent("comment", c.created_at or _EPOCH, c) for c in dataset.comments]
    events.extend(TimelineEvent("review", r.submitted_at, r) for r in dataset.reviews if r.submitted_at is not None)
    # sorted() is stable, so equal timestamps keep their source order.
    return sorted(events, key=lambda e: e.timestamp)


def generate_metadata_markdown(pr: PullRequest) -> str:
    state = pr.state
    if pr.merged:
        state += " (merged)"
    elif pr.draft:
        state += " (draft)"

    lines = [
        "## Metadata",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| **Number** | #{pr.number} |",
        f"| **URL** | {pr.url} |",
        f"| **Author** | {_user_link(pr.author)} |",
        f"| **State** | {state} |",
        f"| **Created** | {format_date(pr.created_at)} |",
        f"| **Updated** | {format_date(pr.updated_at)} |",
    ]
    if pr.merged and pr.merged_at:
        lines.append(f"| **Merged** | {format_date(pr.merged_at)} |")
        if pr.merged_by:
            lines.append(f"| **Merged by** | {_user_link(pr.merged_by)} |")
    elif pr.state == "closed" and pr.closed_at:
        lines.append(f"| **Closed** | {format_date(pr.closed_at)} |")

    lines += [
        f"| **Base** | `{pr.base.ref}` |",
        f"| **Head** | `{pr.head.ref}` |",
        f"| **Additions** | +{pr.additions} |",
        f"| **Deletions** | -{pr.deletions} |",
        f"| **Changed Files** | {pr.changed_files} |",
        "",
    ]

    if pr.labels:
        lines += ["**Labels:** " + ", ".join(f"`{lb.name}`" for lb in pr.labels), ""]
    if pr.assignees:
        lines += ["**Assignees:** " + ", ".join(_user_link(a) for a in pr.assignees), ""]
    if pr.requested_reviewers:
        lines += ["**Requested Reviewers:** " + ", ".join(_user_link(r) for r in pr.requested_reviewers), ""]
    if pr.milestone:
        lines += [f"**Milestone:** {pr.milestone.title}", ""]

    return "\n".join(lines) + "\n"


def _diff_block(diff_hunk: str) -> str:
    return f"```diff\n{diff_hunk}\n```\n\n" if diff_hunk else ""


def _render_comment(comment: IssueComment) -> str:
    return (
        f"### 💬 Comment by {_user_link(comment.author)}\n"
        f"*{format_date(comment.created_at)}*\n\n"
        f"{comment.body}\n\n"
        "---\n\n"
    )


def _render_nested_comment(rc: ReviewComment) -> str:
    line_info = f":{rc.line}" if rc.line else ""
    return f"**`{rc.path}{line_info}`**\n\n{rc.body}\n\n" + _diff_block(rc.diff_hunk)


def _render_review(review: Review, inline: list[ReviewComment]) -> str:
    marker = _REVIEW_MARKERS.get(review.state, _DEFAULT_REVIEW_MARKER)
    out = f"### {marker} Review by {_user_link(review.author)}\n"
    out += f"*{format_date(review.submitted_at)}* — **{review.state}**\n\n"
    if review.body:
        out += f"{review.body}\n\n"
    if inline:
        out += "#### Inline Comments\n\n"
        out += "".join(_render_nested_comment(rc) for rc in inline)
    return out + "---\n\n"


def _render_standalone(rc: ReviewComment) -> str:
    out = f"### {_user_link(rc.author)} on `{rc.path}`"
    if rc.line:
        out += f" (line {rc.line})"
    out += f"\n*{format_date(rc.created_at)}*\n\n{rc.body}\n\n"
    return out + _diff_block(rc.diff_hunk) + "---\n\n"


def generate_conversation_markdown(dataset: PullRequestDataset) -> str:
    out = "## Conversation\n\n"
    timeline = build_timeline(dataset)
    if not timeline:
        return out + f"{NO_CONVERSATION}\n\n"
    for event in timeline:
        if event.kind == "comment":
            out += _render_comment(event.item)
        else:
            out += _render_review(event.item, dataset.comments_for_review(event.item.id))
    return out


def generate_standalone_comments_markdown(comments: list[ReviewComment]) -> str:
    if not comments:
        return ""
    return "## Inline Code Comments\n\n" + "".join(_render_standalone(rc) for rc in comments)


def generate_commits_markdown(commits: list[Commit]) -> str:
    if not commits:
        return ""
    lines = [f"## Commits ({len(commits)})", ""]
    for commit in commits:
        author = _user_link(commit.author_login) if commit.author_login else commit.author
        lines.append(f"- [`{commit.sha[:7]}`]({commit.url}) {commit.headline} — {author}")
    return "\n".join(lines) + "\n\n"


def _file_status_label(status: str) -> str:
    return _FILE_STATUS_LABELS.get(status, f"📄 {status}")


def generate_files_markdown(files: list[ChangedFile]) -> str:
    if not files:
        return ""
    lines = [
        f"## Files Changed ({len(files)})",
        "",
        "| Status | File | Changes |",
        "|--------|------|--------:|",
    ]
    for f in files:
        filename = f.filename
        if f.status == "renamed" and f.previous_filename:
            filename = f"{f.previous_filename} → {f.filename}"
        lines.append(f"| {_file_status_label(f.status)} | `{filename}` | +{f.additions} -{f.deletions} |")
    return "\n".join(lines) + "\n\n"


def render_markdown(dataset: PullRequestDataset) -> str:
    """Assemble the document from ``dataset`` as it stands (no downloads)."""
    pr = dataset.pull_request
    parts = [
        f"# {pr.title}\n\n",
        generate_metadata_markdown(pr),
        "---\n\n",
        "## Description\n\n",
        f"{pr.body}\n\n" if pr.body else f"{NO_DESCRIPTION}\n\n",
        "---\n\n",
        generate_conversation_markdown(dataset),
        generate_standalone_comments_markdown(dataset.standalone_review_comments()),
        generate_commits_markdown(dataset.commits),
        generate_files_markdown(dataset.files),
    ]
    return "".join(parts)


def render(
    dataset: PullRequestDataset,
    download_images: bool = True,
    images_dir: str | Path | None = None,
    token: str | None = None,
    log: logging.Logger | None = None,
    localizer: ImageLocalizer | None = None,
) -> RenderResult:
    """Localize embedded images (optionally), then render markdown.

    Images are only downloaded when ``download_images`` is set and there is
    somewhere to put them (``images_dir`` or an explicit ``localizer``). A
    localizer built here is closed afterwards; a passed-in one is left open.
    """
    log = log or logger
    downloaded: list[DownloadedImage] = []
    if download_images and localizer is not None:
        downloaded = localizer.localize_dataset(dataset)
    elif download_images and images_dir is not None:
        with ImageLocalizer(images_dir, token=token, log=log) as own_localizer:
            downloaded = own_localizer.localize_dataset(dataset)
    return RenderResult(markdown=render_markdown(dataset), downloaded_images=downloaded)
