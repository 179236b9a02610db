"""Parse user-supplied pull request references."""

from __future__ import annotations

import re
from dataclasses import dataclass

from prsnap_core.errors import InvalidReference

# Tried in order; the first pattern that matches wins.
_FULL_URL_RE = re.compile(r"github\.com/([^/]+)/([^/]+)/pull/(\d+)")
_HASH_SHORTHAND_RE = re.compile(r"([^/]+)/([^#/]+)#(\d+)")
_PATH_SHORTHAND_RE = re.compile(r"([^/]+)/([^/]+)/(\d+)")

SUPPORTED_FORMATS = (
    "https://github.com/owner/repo/pull/123",
    "owner/repo#123",
    "owner/repo/123",
)


@dataclass(frozen=True)
class PullRequestRef:
    owner: str
    repo: str
    pr_number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.full_name}/pull/{self.pr_number}"

    def __str__(self) -> str:
        return f"{self.full_name}#{self.pr_number}"


def parse_pr_reference(reference: str) -> PullRequestRef | None:
    """Return the owner/repo/number a reference points at, or None.

    The full-URL form is matched anywhere in the string (so trailing
    ``/files`` or query strings are fine); both shorthands must match the
    whole string.
    """
    if not reference:
        return None

    match = _FULL_URL_RE.search(reference)
    if match is None:
        match = _HASH_SHORTHAND_RE.fullmatch(reference) or _PATH_SHORTHAND_RE.fullmatch(reference)
    if match is None:
        return None

    owner, repo, number = match.groups()
    return PullRequestRef(owner=owner, repo=repo, pr_number=int(number))


def require_pr_reference(reference: str) -> PullRequestRef:
    """Like parse_pr_reference, but raise InvalidReference instead of returning None."""
    ref = parse_pr_reference(reference)
    if ref is None:
        raise InvalidReference(reference)
    return ref
