"""Tests for specflow.lib.github module."""

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

from specflow.lib.github import (
    GH_TIMEOUT_SECONDS,
    run_gh,
    parse_number_from_url,
    list_labels,
    create_issue,
    create_pr,
    get_pr_head_branch,
    merge_pr,
)
from specflow.lib.errors import GitHubCommandError, TrackerContractError


class TestConstants:
    """Test that constants are defined correctly."""

    def test_gh_timeout_is_reasonable(self):
        assert GH_TIMEOUT_SECONDS >= 10
        assert GH_TIMEOUT_SECONDS <= 120


class TestRunGh:
    """Test run_gh error mapping."""

    @patch("specflow.lib.github.subprocess.run")
    def test_returns_stripped_stdout(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="octo/repo\n", stderr="")
        assert run_gh(["repo", "view"], Path("/repo")) == "octo/repo"
        assert mock_run.call_args[0][0] == ["gh", "repo", "view"]
        assert mock_run.call_args[1]["cwd"] == "/repo"

    @patch("specflow.lib.github.subprocess.run")
    def test_nonzero_exit_raises_with_stderr(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="HTTP 404: Not Found")
        with pytest.raises(GitHubCommandError) as exc_info:
            run_gh(["issue", "view", "9"], Path("/repo"))
        assert "HTTP 404" in str(exc_info.value)
        assert exc_info.value.returncode == 1

    @patch("specflow.lib.github.subprocess.run")
    def test_timeout_raises(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="gh", timeout=30)
        with pytest.raises(GitHubCommandError) as exc_info:
            run_gh(["pr", "checks", "5"], Path("/repo"))
        assert "timed out" in str(exc_info.value)

    @patch("specflow.lib.github.subprocess.run")
    def test_missing_gh_raises(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        with pytest.raises(GitHubCommandError) as exc_info:
            run_gh(["repo", "view"], Path("/repo"))
        assert exc_info.value.returncode == 127


class TestParseNumberFromUrl:
    """Test issue/PR number extraction."""

    def test_issue_url(self):
        assert parse_number_from_url("https://github.com/octo/repo/issues/42") == 42

    def test_trailing_slash_and_whitespace(self):
        assert parse_number_from_url(" https://github.com/octo/repo/pull/7/\n") == 7

    def test_non_numeric_tail_raises(self):
        with pytest.raises(TrackerContractError, match="Unable to parse issue number"):
            parse_number_from_url("https://github.com/octo/repo/issues/new")


class TestCommands:
    """Test gh argument lists."""

    @patch("specflow.lib.github.run_gh")
    def test_list_labels_returns_set(self, mock_gh):
        mock_gh.return_value = "bug\nfeature\npriority:p1\n"
        assert list_labels(Path("/repo")) == {"bug", "feature", "priority:p1"}

    @patch("specflow.lib.github.run_gh")
    def test_create_issue_with_labels(self, mock_gh):
        mock_gh.return_value = "https://github.com/octo/repo/issues/3"
        url = create_issue(Path("/repo"), "[P1] Fix login", Path("/s/a.issue.md"), ["bug", "priority:p1"])
        assert url.endswith("/3")
        args = mock_gh.call_args[0][0]
        assert args == [
            "issue", "create",
            "--title", "[P1] Fix login",
            "--body-file", "/s/a.issue.md",
            "--label", "bug,priority:p1",
        ]

    @patch("specflow.lib.github.run_gh")
    def test_create_issue_without_labels(self, mock_gh):
        mock_gh.return_value = "https://github.com/octo/repo/issues/3"
        create_issue(Path("/repo"), "t", Path("/s/a.issue.md"), [])
        assert "--label" not in mock_gh.call_args[0][0]

    @patch("specflow.lib.github.run_gh")
    def test_create_pr_draft_flag(self, mock_gh):
        mock_gh.return_value = "https://github.com/octo/repo/pull/8"
        create_pr(Path("/wt"), "issue/3-x", "master", "Fix x", Path("/s/b.md"), draft=True)
        assert mock_gh.call_args[0][0][-1] == "--draft"
        create_pr(Path("/wt"), "issue/3-x", "master", "Fix x", Path("/s/b.md"), draft=False)
        assert "--draft" not in mock_gh.call_args[0][0]

    @patch("specflow.lib.github.run_gh")
    def test_empty_head_branch_raises(self, mock_gh):
        mock_gh.return_value = ""
        with pytest.raises(TrackerContractError):
            get_pr_head_branch(Path("/repo"), "8")

    @patch("specflow.lib.github.run_gh")
    def test_merge_method_flag(self, mock_gh):
        mock_gh.return_value = ""
        merge_pr(Path("/repo"), "8", "rebase", delete_branch=True)
        assert mock_gh.call_args[0][0] == ["pr", "merge", "8", "--rebase", "--delete-branch"]
