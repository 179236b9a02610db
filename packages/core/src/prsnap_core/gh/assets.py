"""Download embedded assets (images) referenced from PR text.

Redirects are followed by hand rather than by requests: GitHub's
user-attachment URLs redirect to signed S3 URLs, and the GitHub token must
only ever be sent to GitHub hosts. Following manually lets the auth header
be decided per hop.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

import requests
from urllib3.exceptions import ReadTimeoutError

from prsnap_core.errors import AssetFetchError, AssetTimeout, HttpStatusError, TooManyRedirects

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
MAX_REDIRECTS = 5
USER_AGENT = "prsnap"
_CHUNK_SIZE = 64 * 1024


def _auth_headers(url: str, token: str | None) -> dict[str, str]:
    headers = {"User-Agent": USER_AGENT}
    host = urlparse(url).hostname or ""
    if token and "github" in host:
        headers["Authorization"] = f"token {token}"
    return headers


def _is_read_timeout(error: requests.ConnectionError) -> bool:
    # requests re-raises a urllib3 read timeout hit while streaming the body
    # as ConnectionError, not Timeout.
    return bool(error.args) and isinstance(error.args[0], ReadTimeoutError)


def _read_body(resp: requests.Response, url: str) -> bytes:
    chunks = []
    try:
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            if chunk:
                chunks.append(chunk)
    except requests.Timeout as e:
        raise AssetTimeout(url, REQUEST_TIMEOUT) from e
    except requests.ConnectionError as e:
        if _is_read_timeout(e):
            raise AssetTimeout(url, REQUEST_TIMEOUT) from e
        raise AssetFetchError(str(e)) from e
    except requests.RequestException as e:
        raise AssetFetchError(str(e)) from e
    return b"".join(chunks)


def _fetch(url: str, token: str | None, max_redirects: int, http: requests.Session, log: logging.Logger) -> bytes:
    if max_redirects <= 0:
        raise TooManyRedirects(url)

    try:
        resp = http.get(
            url,
            headers=_auth_headers(url, token),
            timeout=REQUEST_TIMEOUT,
            allow_redirects=False,
            stream=True,
        )
    except requests.Timeout as e:
        raise AssetTimeout(url, REQUEST_TIMEOUT) from e
    except requests.RequestException as e:
        raise AssetFetchError(str(e)) from e

    try:
        location = resp.headers.get("Location")
        if 300 <= resp.status_code < 400 and location:
            target = urljoin(url, location)
            log.debug("  Redirecting to: %s...", target[:80])
            return _fetch(target, token, max_redirects - 1, http, log)

        if not 200 <= resp.status_code < 300:
            raise HttpStatusError(resp.status_code, url)

        return _read_body(resp, url)
    finally:
        resp.close()


def download_file(
    url: str,
    token: str | None = None,
    max_redirects: int = MAX_REDIRECTS,
    session: requests.Session | None = None,
    log: logging.Logger | None = None,
) -> bytes:
    """Fetch ``url`` and return the response body.

    A session passed in is reused and left open; otherwise a session is
    created for this call and closed before returning.

    Raises:
        TooManyRedirects: the redirect budget ran out.
        HttpStatusError: a non-2xx, non-redirect status.
        AssetTimeout: no response, or a stalled body, within REQUEST_TIMEOUT seconds.
        AssetFetchError: any other transport failure.
    """
    log = log or logger
    if session is not None:
        return _fetch(url, token, max_redirects, session, log)
    with requests.Session() as http:
        return _fetch(url, token, max_redirects, http, log)
