"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. --token passed on the command line
  2. GITHUB_TOKEN environment variable
  3. `gh auth token` (GitHub CLI session, works after `gh auth login`)
  4. None: anonymous access, fine for public repositories

The resolved token is used by the API backend and for downloading images
hosted on GitHub; the gh backend authenticates itself.
"""

from __future__ import annotations

import logging
import os

from prsnap_core.gh.cli import get_gh_token

logger = logging.getLogger(__name__)


def resolve_github_token(explicit: str | None = None) -> str | None:
    """Return a GitHub token or None if no source has one.

    Never raises; anonymous access is a valid outcome.
    """
    if explicit:
        return explicit

    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    gh_token = get_gh_token()
    if gh_token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return gh_token

    return None
