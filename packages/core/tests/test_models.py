"""Tests for the canonical dataset helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from prsnap_core.models import (
    Commit,
    GitRef,
    PullRequest,
    PullRequestDataset,
    Review,
    ReviewComment,
    parse_timestamp,
)


def _make_dataset(reviews=(), review_comments=()):
    pr = PullRequest(
        number=1,
        title="t",
        state="open",
        url="u",
        author="alice",
        created_at=None,
        updated_at=None,
        base=GitRef("main", "b"),
        head=GitRef("f", "h"),
    )
    return PullRequestDataset(pull_request=pr, reviews=list(reviews), review_comments=list(review_comments))


def _rc(id, review_id):
    return ReviewComment(id, "bob", "x", "a.py", None, review_id=review_id)


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        result = parse_timestamp("2024-01-02T05:04:05+02:00")
        assert result == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_datetime_assumed_utc(self):
        assert parse_timestamp(datetime(2024, 1, 2)).tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert parse_timestamp(value) is None


class TestLinkReviewComments:
    def test_unknown_review_detached(self):
        dataset = _make_dataset(
            reviews=[Review(1, "carol", "APPROVED")],
            review_comments=[_rc(10, 1), _rc(11, 2), _rc(12, None)],
        )
        dataset.link_review_comments()
        assert [c.review_id for c in dataset.review_comments] == [1, None, None]

    def test_grouping(self):
        dataset = _make_dataset(
            reviews=[Review(1, "carol", "APPROVED")],
            review_comments=[_rc(10, 1), _rc(11, None), _rc(12, 1)],
        ).link_review_comments()
        assert [c.id for c in dataset.comments_for_review(1)] == [10, 12]
        assert [c.id for c in dataset.standalone_review_comments()] == [11]

    def test_no_reviews_makes_everything_standalone(self):
        dataset = _make_dataset(review_comments=[_rc(10, 5)]).link_review_comments()
        assert dataset.standalone_review_comments()[0].id == 10


class TestCommit:
    def test_headline(self):
        assert Commit("s", "Subject\n\nBody", "u").headline == "Subject"

    def test_author_prefers_login(self):
        assert Commit("s", "m", "u", author_login="alice", author_name="Alice").author == "alice"
        assert Commit("s", "m", "u", author_name="Alice").author == "Alice"
        assert Commit("s", "m", "u").author == "unknown"


def test_author_url():
    assert _make_dataset().pull_request.author_url == "https://github.com/alice"
