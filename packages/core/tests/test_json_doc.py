"""Tests for the JSON projection."""

import json
from datetime import datetime, timezone

from prsnap_core.models import (
    ChangedFile,
    Commit,
    DownloadedImage,
    GitRef,
    IssueComment,
    PullRequest,
    PullRequestDataset,
    Review,
    ReviewComment,
)
from prsnap_core.render.json_doc import render_json, to_document

T0 = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def _make_dataset():
    pr = PullRequest(
        number=3,
        title="Ünïcode title",
        state="closed",
        url="https://github.com/o/r/pull/3",
        author="alice",
        created_at=T0,
        updated_at=T0,
        base=GitRef("main", "b"),
        head=GitRef("f", "h"),
        merged=True,
        merged_at=T0,
        merged_by="bob",
        body="body",
    )
    return PullRequestDataset(
        pull_request=pr,
        commits=[Commit("c1", "msg", "https://u", author_login=None, author_name="Dev", authored_at=T0)],
        files=[ChangedFile("b.py", "renamed", previous_filename="a.py")],
        comments=[IssueComment(1, "bob", "hi", T0)],
        reviews=[Review(9, "carol", "APPROVED", "ok", T0)],
        review_comments=[ReviewComment(4, "carol", "nit", "b.py", T0, line=2, review_id=9)],
    )


class TestToDocument:
    def test_top_level_keys(self):
        doc = to_document(_make_dataset())
        assert set(doc) == {
            "pullRequest",
            "commits",
            "files",
            "reviews",
            "reviewComments",
            "comments",
            "downloadedImages",
        }

    def test_pull_request_fields(self):
        pr = to_document(_make_dataset())["pullRequest"]
        assert pr["number"] == 3
        assert pr["author"] == {"login": "alice", "url": "https://github.com/alice"}
        assert pr["mergedBy"]["login"] == "bob"
        assert pr["createdAt"] == "2024-05-06T07:08:09Z"
        assert pr["closedAt"] is None
        assert pr["milestone"] is None

    def test_nested_collections(self):
        doc = to_document(_make_dataset())
        assert doc["commits"][0]["author"] == "Dev"
        assert doc["files"][0]["previousFilename"] == "a.py"
        assert doc["reviewComments"][0]["reviewId"] == 9
        assert doc["reviews"][0]["submittedAt"] == "2024-05-06T07:08:09Z"

    def test_downloaded_images(self):
        image = DownloadedImage("https://h/a.png", "/tmp/out/pr-3/images/image-1.png", "./images/image-1.png", "png")
        doc = to_document(_make_dataset(), [image])
        assert doc["downloadedImages"] == [
            {"originalUrl": "https://h/a.png", "localPath": "./images/image-1.png", "format": "png"}
        ]


class TestRenderJson:
    def test_parses_back(self):
        text = render_json(_make_dataset())
        doc = json.loads(text)
        assert doc["pullRequest"]["number"] == 3
        assert doc["pullRequest"]["title"] == "Ünïcode title"
        assert doc["pullRequest"]["author"]["login"] == "alice"
        assert doc["downloadedImages"] == []

    def test_unicode_not_escaped_and_indented(self):
        text = render_json(_make_dataset())
        assert "Ünïcode" in text
        assert text.startswith('{\n  "pullRequest"')
