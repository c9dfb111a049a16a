"""
GitHub integration helpers for the backlog pipeline.

Provides utilities for interacting with GitHub via the gh CLI. Every helper
raises GitHubCommandError when gh exits non-zero, times out, or is missing,
so callers decide whether a failure is fatal or per-item recoverable.
"""

import logging
import subprocess
from pathlib import Path

from specflow.lib.errors import GitHubCommandError, TrackerContractError

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30

# Labels fetched per batch; gh defaults to 30
LABEL_LIST_LIMIT = 200


def run_gh(args: list[str], repo_path: Path, timeout: int = GH_TIMEOUT_SECONDS) -> str:
    """Run a gh command and return its stripped stdout.

    Raises:
        GitHubCommandError: on non-zero exit, timeout, or missing gh binary
    """
    cmd = ["gh"] + args
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise GitHubCommandError(cmd, f"timed out after {timeout}s", -1) from None
    except FileNotFoundError:
        raise GitHubCommandError(
            cmd, "GitHub CLI (gh) not found. Install: https://cli.github.com/", 127
        ) from None

    if result.returncode != 0:
        raise GitHubCommandError(cmd, result.stderr or result.stdout, result.returncode)
    return result.stdout.strip()


def parse_number_from_url(url: str) -> int:
    """Extract the trailing number from an issue/PR URL.

    Raises:
        TrackerContractError: if the last path segment is not a number
    """
    tail = url.strip().rstrip("/").split("/")[-1]
    try:
        return int(tail)
    except ValueError:
        raise TrackerContractError(f"Unable to parse issue number from URL: {url!r}") from None


def get_repo_name_with_owner(repo_path: Path) -> str:
    """Return `owner/name` of the repository gh resolves for repo_path."""
    return run_gh(["repo", "view", "--json", "nameWithOwner", "--jq", ".nameWithOwner"], repo_path)


def get_default_branch(repo_path: Path) -> str:
    """Return the repository's default branch name."""
    return run_gh(
        ["repo", "view", "--json", "defaultBranchRef", "--jq", ".defaultBranchRef.name"],
        repo_path,
    )


def list_labels(repo_path: Path) -> set[str]:
    """Return the names of all labels that exist in the tracker."""
    output = run_gh(
        ["label", "list", "--limit", str(LABEL_LIST_LIMIT), "--json", "name", "--jq", ".[].name"],
        repo_path,
    )
    return {line.strip() for line in output.splitlines() if line.strip()}


def create_issue(repo_path: Path, title: str, body_file: Path, labels: list[str]) -> str:
    """Create an issue and return its URL."""
    args = ["issue", "create", "--title", title, "--body-file", str(body_file)]
    if labels:
        args += ["--label", ",".join(labels)]
    return run_gh(args, repo_path)


def view_issue_body(repo_path: Path, issue_number: int) -> str:
    """Return the live body text of an issue."""
    return run_gh(["issue", "view", str(issue_number), "--json", "body", "--jq", ".body"], repo_path)


def comment_on_issue(repo_path: Path, issue_number: int, body: str) -> None:
    """Post a comment on an issue."""
    run_gh(["issue", "comment", str(issue_number), "--body", body], repo_path)


def develop_branch(repo_path: Path, issue_number: int, branch: str, base_branch: str) -> None:
    """Create a remote branch linked to the issue as its development branch."""
    run_gh(
        ["issue", "develop", str(issue_number), "--name", branch, "--base", base_branch],
        repo_path,
    )


def create_pr(
    repo_path: Path,
    branch: str,
    base_branch: str,
    title: str,
    body_file: Path,
    draft: bool = True,
) -> str:
    """Create a pull request and return its URL."""
    args = [
        "pr", "create",
        "--base", base_branch,
        "--head", branch,
        "--title", title,
        "--body-file", str(body_file),
    ]
    if draft:
        args.append("--draft")
    return run_gh(args, repo_path)


def get_pr_head_branch(repo_path: Path, pr_ref: str) -> str:
    """Resolve a PR number or URL to its head branch name."""
    branch = run_gh(["pr", "view", pr_ref, "--json", "headRefName", "--jq", ".headRefName"], repo_path)
    if not branch:
        raise TrackerContractError(f"PR {pr_ref} has no head branch")
    return branch


def check_pr_checks(repo_path: Path, pr_ref: str) -> str:
    """Verify the PR's required checks pass.

    `gh pr checks` exits non-zero when any check failed or is still pending,
    which surfaces here as GitHubCommandError.
    """
    return run_gh(["pr", "checks", pr_ref], repo_path, timeout=60)


def merge_pr(repo_path: Path, pr_ref: str, method: str, delete_branch: bool) -> str:
    """Merge a PR with the given strategy (merge, squash or rebase)."""
    args = ["pr", "merge", pr_ref, f"--{method}"]
    if delete_branch:
        args.append("--delete-branch")
    return run_gh(args, repo_path, timeout=60)
