"""Write a rendered pull request to disk for offline viewing.

Layout::

    <output_dir>/pr-<n>/pr-<n>.md
    <output_dir>/pr-<n>/pr-<n>.json
    <output_dir>/pr-<n>/images/image-<k>.<ext>

The JSON file is written regardless of the requested format; it is the
metadata record that sits next to the markdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from prsnap_core.models import DownloadedImage, PullRequestDataset
from prsnap_core.render.json_doc import render_json
from prsnap_core.render.markdown import render

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    md_path: Path
    json_path: Path
    images_dir: Path
    downloaded_images: list[DownloadedImage] = field(default_factory=list)


def save_pull_request(
    dataset: PullRequestDataset,
    output_dir: str | Path,
    download_images: bool = True,
    token: str | None = None,
    log: logging.Logger | None = None,
) -> SaveResult:
    log = log or logger
    number = dataset.pull_request.number
    pr_dir = Path(output_dir) / f"pr-{number}"
    images_dir = pr_dir / "images"
    md_path = pr_dir / f"pr-{number}.md"
    json_path = pr_dir / f"pr-{number}.json"

    images_dir.mkdir(parents=True, exist_ok=True)

    log.info("Converting PR #%s to markdown...", number)
    result = render(dataset, download_images=download_images, images_dir=images_dir, token=token, log=log)

    md_path.write_text(result.markdown, encoding="utf-8")
    log.info("Saved markdown to %s", md_path)

    json_path.write_text(render_json(dataset, result.downloaded_images), encoding="utf-8")
    log.info("Saved JSON metadata to %s", json_path)

    if result.downloaded_images:
        log.info("Downloaded %d image(s) to %s", len(result.downloaded_images), images_dir)

    return SaveResult(
        md_path=md_path,
        json_path=json_path,
        images_dir=images_dir,
        downloaded_images=result.downloaded_images,
    )
