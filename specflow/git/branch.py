"""Git branch operations."""

from pathlib import Path

from specflow.git.runner import run_git, GitResult


def branch_exists(repo: Path, branch: str) -> bool:
    """Check if a local branch exists."""
    result = run_git(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"], repo)
    return result.success


def remote_branch_exists(repo: Path, branch: str, remote: str = "origin") -> bool:
    """Check if a branch exists on the remote (queries the remote, not local refs).

    Raises GitCommandError if the remote cannot be queried.
    """
    result = run_git(["ls-remote", "--heads", remote, branch], repo, timeout=60).check()
    return bool(result.stdout.strip())


def delete_branch(repo: Path, branch: str) -> GitResult:
    """Delete a local branch (safe delete, refuses unmerged work)."""
    return run_git(["branch", "-d", branch], repo)
