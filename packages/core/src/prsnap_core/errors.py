"""Exception hierarchy for prsnap.

Two families live here. Load errors (everything directly under
PRSnapError except AssetError) are fatal to a run and surface to the user.
AssetError and its subclasses are raised per embedded image and are always
caught by the renderer: the image is skipped and its remote URL kept.
"""

from __future__ import annotations


class PRSnapError(Exception):
    """Base class for all prsnap errors."""


class InvalidReference(PRSnapError):
    """The PR reference could not be parsed."""

    def __init__(self, reference: str):
        super().__init__(f"Invalid PR URL or format: {reference}")
        self.reference = reference


class BackendUnavailable(PRSnapError):
    """A forced backend cannot run on this machine."""


class AuthenticationFailed(PRSnapError):
    """The backend rejected (or lacks) credentials."""


class NotFound(PRSnapError):
    """The repository or pull request does not exist or is not visible."""


class BackendFailure(PRSnapError):
    """Any other backend error; carries the raw transport message."""


class AssetError(PRSnapError):
    """Base class for per-image failures."""


class AssetFetchError(AssetError):
    """The asset could not be downloaded."""


class TooManyRedirects(AssetFetchError):
    def __init__(self, url: str):
        super().__init__(f"Too many redirects: {url}")
        self.url = url


class HttpStatusError(AssetFetchError):
    def __init__(self, status_code: int, url: str = ""):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.url = url


class AssetTimeout(AssetFetchError):
    def __init__(self, url: str, timeout: float):
        super().__init__(f"Request timeout after {timeout:g}s")
        self.url = url
        self.timeout = timeout


class InvalidImage(AssetError):
    """Downloaded bytes are not an image (e.g. an HTML error page)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
