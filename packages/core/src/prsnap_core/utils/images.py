"""Image sniffing: decide whether downloaded bytes are really an image.

GitHub asset URLs that have expired or need auth often answer with a
200 and an HTML error page, so the content type header is not trusted.
Only the leading bytes are inspected.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_HTML_MARKERS = (
    b"<!",  # <!DOCTYPE ...> and <!-- ... -->
    b"<html",
    b"<HTML",
)

# Order matters only in that the XML prolog comes last.
# WebP is matched on the RIFF container header alone.
_MAGIC_BYTES = (
    ("png", b"\x89PNG"),
    ("jpg", b"\xff\xd8\xff"),
    ("gif", b"GIF8"),
    ("webp", b"RIFF"),
    ("bmp", b"BM"),
    ("ico", b"\x00\x00\x01\x00"),
    ("svg", b"<?xml"),
)

_SVG_MARKER = b"<svg"

FORMAT_EXTENSIONS = {
    "png": ".png",
    "jpg": ".jpg",
    "gif": ".gif",
    "webp": ".webp",
    "bmp": ".bmp",
    "ico": ".ico",
    "svg": ".svg",
}

IMAGE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".bmp",
    ".ico",
    ".svg",
}

DEFAULT_EXTENSION = ".png"


@dataclass(frozen=True)
class ImageValidation:
    valid: bool
    format: str | None = None
    reason: str | None = None


def validate_image(data: bytes, url: str = "", log: logging.Logger | None = None) -> ImageValidation:
    """Classify ``data`` by its magic bytes.

    Unrecognized content that is not HTML is accepted with format
    ``"unknown"``; some CDNs serve images with unusual headers.
    """
    log = log or logger
    if data is None or len(data) < 4:
        return ImageValidation(valid=False, reason="Buffer too small")

    head = bytes(data[:8])

    for marker in _HTML_MARKERS:
        if head.startswith(marker):
            return ImageValidation(valid=False, reason="Downloaded file is HTML (likely error page)")

    for fmt, magic in _MAGIC_BYTES:
        if head.startswith(magic):
            return ImageValidation(valid=True, format=fmt)

    if head.startswith(_SVG_MARKER):
        return ImageValidation(valid=True, format="svg")

    log.debug(
        "Unknown image format for %s, bytes: [%s]",
        url,
        ", ".join(f"0x{b:02x}" for b in head),
    )
    return ImageValidation(valid=True, format="unknown")


def extension_for(fmt: str | None, url: str = "") -> str:
    """Return the file extension (with dot) to save an image under."""
    if fmt in FORMAT_EXTENSIONS:
        return FORMAT_EXTENSIONS[fmt]

    try:
        path = urlparse(url).path
    except ValueError:
        return DEFAULT_EXTENSION
    ext = posixpath.splitext(path)[1].lower()
    if ext in IMAGE_EXTENSIONS:
        return ".jpg" if ext == ".jpeg" else ext
    return DEFAULT_EXTENSION
