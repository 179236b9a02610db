"""Backend selection: gh CLI first, REST API as the fallback.

Decided fresh on every call, nothing is remembered between runs:

  force_api                       → API
  gh missing      + force_gh      → BackendUnavailable
  gh missing                      → API
  gh not logged in + force_gh     → AuthenticationFailed
  gh not logged in                → API
  gh load fails   + force_gh      → re-raise
  gh load fails                   → API
  otherwise                       → gh

Callers must not pass force_api and force_gh together; the CLI rejects
that combination before getting here.
"""

from __future__ import annotations

import logging

from prsnap_core.errors import AuthenticationFailed, BackendUnavailable, PRSnapError
from prsnap_core.gh import api, cli
from prsnap_core.gh.reference import PullRequestRef
from prsnap_core.models import PullRequestDataset

logger = logging.getLogger(__name__)

GH_INSTALL_URL = "https://cli.github.com/"


def load_pull_request(
    ref: PullRequestRef,
    token: str | None = None,
    include_reviews: bool = True,
    force_api: bool = False,
    force_gh: bool = False,
    log: logging.Logger | None = None,
) -> PullRequestDataset:
    """Load ``ref`` through whichever backend is usable right now."""
    log = log or logger

    def _via_api() -> PullRequestDataset:
        return api.load_pull_request(ref, token=token, include_reviews=include_reviews, log=log)

    if force_api:
        log.debug("Using API mode (forced)")
        return _via_api()

    gh_installed = cli.is_gh_installed()

    if force_gh and not gh_installed:
        raise BackendUnavailable(f"gh CLI is required but not installed. Please install GitHub CLI: {GH_INSTALL_URL}")

    if not gh_installed:
        log.debug("gh CLI not available, using API")
        return _via_api()

    if not cli.is_gh_authenticated():
        if force_gh:
            raise AuthenticationFailed('gh CLI is not authenticated. Please run "gh auth login"')
        log.debug("gh CLI is not authenticated, falling back to API")
        return _via_api()

    try:
        return cli.load_pull_request(ref, include_reviews=include_reviews, log=log)
    except PRSnapError as e:
        if force_gh:
            raise
        log.debug("gh CLI failed: %s, falling back to API", e)
        return _via_api()
