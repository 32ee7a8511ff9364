"""Tests for GitHub pull request helper functions."""

from unittest.mock import MagicMock

from github import GithubException

from patchpilot_core.gh.pull_request import get_diff, get_pull, get_text_file

SHA = "a" * 40


def _file(content: bytes):
    f = MagicMock()
    f.decoded_content = content
    return f


class TestGetDiff:
    def test_returns_all_files_in_order(self):
        files = [MagicMock(filename="b.py"), MagicMock(filename="a.py")]
        pr = MagicMock()
        pr.get_files.return_value = iter(files)
        assert get_diff(pr) == files

    def test_empty_pr(self):
        pr = MagicMock()
        pr.get_files.return_value = []
        assert get_diff(pr) == []


class TestGetPull:
    def test_delegates_to_repo(self):
        repo = MagicMock()
        assert get_pull(repo, 7) is repo.get_pull.return_value
        repo.get_pull.assert_called_once_with(7)


class TestGetTextFile:
    def test_decodes_utf8(self):
        repo = MagicMock()
        repo.get_contents.return_value = _file("héllo".encode("utf-8"))
        assert get_text_file(repo, "README.md") == "héllo"
        repo.get_contents.assert_called_once_with("README.md")

    def test_passes_ref_when_given(self):
        repo = MagicMock()
        repo.get_contents.return_value = _file(b"x")
        get_text_file(repo, "README.md", SHA)
        repo.get_contents.assert_called_once_with("README.md", ref=SHA)

    def test_missing_file_returns_empty(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(404, "Not Found")
        assert get_text_file(repo, ".patchpilot/config.json") == ""

    def test_other_errors_return_empty_and_warn(self, caplog):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(500, "boom")
        assert get_text_file(repo, "README.md") == ""
        assert "Could not fetch README.md" in caplog.text

    def test_directory_returns_empty(self):
        repo = MagicMock()
        repo.get_contents.return_value = [_file(b"a"), _file(b"b")]
        assert get_text_file(repo, "docs") == ""

    def test_invalid_utf8_is_replaced(self):
        repo = MagicMock()
        repo.get_contents.return_value = _file(b"ok\xff")
        assert get_text_file(repo, "bin") == "ok�"
