"""Tests for PR reference parsing."""

import pytest

from prsnap_core.errors import InvalidReference
from prsnap_core.gh.reference import PullRequestRef, parse_pr_reference, require_pr_reference


class TestFullUrl:
    def test_https_url(self):
        assert parse_pr_reference("https://github.com/octo/hello/pull/42") == PullRequestRef("octo", "hello", 42)

    def test_url_without_scheme(self):
        assert parse_pr_reference("github.com/octo/hello/pull/7") == PullRequestRef("octo", "hello", 7)

    def test_url_with_trailing_path(self):
        ref = parse_pr_reference("https://github.com/octo/hello/pull/42/files#diff-abc")
        assert ref == PullRequestRef("octo", "hello", 42)

    def test_url_with_dots_and_dashes(self):
        ref = parse_pr_reference("https://github.com/my-org/my.repo_name/pull/1")
        assert ref.owner == "my-org"
        assert ref.repo == "my.repo_name"

    @pytest.mark.parametrize("owner,repo,number", [("a", "b", 0), ("octo", "cat", 12345), ("x-y", "z.z", 9)])
    def test_roundtrip_any_owner_repo(self, owner, repo, number):
        ref = parse_pr_reference(f"https://github.com/{owner}/{repo}/pull/{number}")
        assert (ref.owner, ref.repo, ref.pr_number) == (owner, repo, number)


class TestShorthand:
    def test_hash_form(self):
        assert parse_pr_reference("octo/hello#42") == PullRequestRef("octo", "hello", 42)

    def test_slash_form(self):
        assert parse_pr_reference("octo/hello/42") == PullRequestRef("octo", "hello", 42)

    def test_pr_number_is_int(self):
        assert isinstance(parse_pr_reference("octo/hello#0042").pr_number, int)
        assert parse_pr_reference("octo/hello#0042").pr_number == 42

    def test_trailing_text_rejected(self):
        assert parse_pr_reference("octo/hello#42 extra") is None

    def test_trailing_newline_rejected(self):
        assert parse_pr_reference("octo/hello#42\n") is None


class TestInvalid:
    @pytest.mark.parametrize(
        "reference",
        [
            "",
            "octo/hello",
            "octo/hello#",
            "octo/hello#abc",
            "octo/hello/pull/abc",
            "https://github.com/octo/hello/pull/",
            "https://github.com/octo/hello/issues/5",
            "just-text",
            "octo#5",
        ],
    )
    def test_returns_none(self, reference):
        assert parse_pr_reference(reference) is None

    def test_string_without_hash_or_pull_segment(self):
        assert parse_pr_reference("owner-repo-12") is None


class TestPullRequestRef:
    def test_full_name_and_url(self):
        ref = PullRequestRef("octo", "hello", 3)
        assert ref.full_name == "octo/hello"
        assert ref.url == "https://github.com/octo/hello/pull/3"
        assert str(ref) == "octo/hello#3"


class TestRequirePrReference:
    def test_returns_ref(self):
        assert require_pr_reference("octo/hello/9") == PullRequestRef("octo", "hello", 9)

    def test_raises_with_reference(self):
        with pytest.raises(InvalidReference, match="Invalid PR URL or format: nope") as exc:
            require_pr_reference("nope")
        assert exc.value.reference == "nope"
