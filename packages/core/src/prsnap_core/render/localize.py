"""Download images embedded in PR text and point the text at local copies.

One ImageLocalizer is used per render call. Its counter is shared by every
text block it processes, so file names are unique across the whole
document: image-1, image-2, ... in the order blocks and URLs are visited.
Downloads are strictly sequential, which keeps that numbering
deterministic.
"""

from __future__ import annotations

import logging
import re
from functools import partial
from pathlib import Path
from typing import Callable

import requests

from prsnap_core.errors import AssetError, InvalidImage
from prsnap_core.gh.assets import download_file
from prsnap_core.models import DownloadedImage, PullRequestDataset
from prsnap_core.utils.images import extension_for, validate_image

logger = logging.getLogger(__name__)

# ![alt](url) or ![alt](url "title")
_MD_IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)(?:\s+"[^"]*")?\)')
# <img src="url"> or <img src='url'>
_HTML_IMAGE_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE)

RELATIVE_IMAGES_DIR = "./images"


def extract_image_urls(text: str | None) -> list[str]:
    """Return image URLs in ``text``: all markdown matches, then all HTML matches."""
    if not text:
        return []
    urls = [m.group(2) for m in _MD_IMAGE_RE.finditer(text)]
    urls.extend(m.group(1) for m in _HTML_IMAGE_RE.finditer(text))
    return urls


def _is_remote(url: str) -> bool:
    return url.startswith(("http://", "https://"))


class ImageLocalizer:
    """Rewrites image URLs in text blocks to files saved under ``images_dir``."""

    def __init__(
        self,
        images_dir: str | Path,
        token: str | None = None,
        fetch: Callable[[str, str | None], bytes] | None = None,
        log: logging.Logger | None = None,
    ):
        self.images_dir = Path(images_dir)
        self.token = token
        self.log = log or logger
        self._session: requests.Session | None = None
        if fetch is None:
            self._session = requests.Session()
            fetch = partial(download_file, session=self._session, log=self.log)
        self._fetch = fetch
        self._counter = 1
        self.downloaded: list[DownloadedImage] = []

    def close(self) -> None:
        """Release the HTTP session this localizer opened, if any."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> ImageLocalizer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _download(self, url: str) -> tuple[bytes, str]:
        data = self._fetch(url, self.token)
        validation = validate_image(data, url, log=self.log)
        if not validation.valid:
            raise InvalidImage(validation.reason or "invalid image")
        return data, validation.format or "unknown"

    def localize(self, text: str | None) -> str | None:
        """Return ``text`` with every downloadable image URL replaced by a relative path."""
        if not text:
            return text

        for url in extract_image_urls(text):
            # Relative paths are left alone, so a second pass is a no-op.
            if not _is_remote(url):
                continue
            # Already rewritten by an earlier occurrence in this block.
            if url not in text:
                continue

            self.log.debug("  Downloading: %s...", url[:60])
            try:
                data, fmt = self._download(url)
            except AssetError as e:
                self.log.warning("  Skipping image: %s", e)
                self.log.debug("     URL: %s", url)
                continue

            filename = f"image-{self._counter}{extension_for(fmt, url)}"
            local_path = self.images_dir / filename
            relative_path = f"{RELATIVE_IMAGES_DIR}/{filename}"

            self.images_dir.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(data)

            text = text.replace(url, relative_path)
            self.downloaded.append(
                DownloadedImage(
                    original_url=url,
                    local_path=str(local_path),
                    relative_path=relative_path,
                    format=fmt,
                )
            )
            self._counter += 1
            self.log.debug("  Saved: %s (%s)", filename, fmt)

        return text

    def localize_dataset(self, dataset: PullRequestDataset) -> list[DownloadedImage]:
        """Rewrite every body in ``dataset`` in place; return images saved so far."""
        pr = dataset.pull_request
        if pr.body:
            self.log.info("Processing images in PR description...")
            pr.body = self.localize(pr.body)

        for comment in dataset.comments:
            if comment.body:
                self.log.debug("Processing images in comment by @%s...", comment.author)
                comment.body = self.localize(comment.body)

        for review in dataset.reviews:
            if review.body:
                self.log.debug("Processing images in review by @%s...", review.author)
                review.body = self.localize(review.body)

        for review_comment in dataset.review_comments:
            if review_comment.body:
                self.log.debug("Processing images in inline comment by @%s...", review_comment.author)
                review_comment.body = self.localize(review_comment.body)

        return list(self.downloaded)
