"""
PR merge and local cleanup.

Cleanup removes the worktree bound to a branch and deletes the local branch.
The two results are reported separately because either may legitimately not
apply (no worktree was ever created, branch already gone). The worktree the
process is running from is never removed.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from specflow import git
from specflow.backlog.models import BacklogState
from specflow.lib import github
from specflow.lib.constants import MERGE_METHODS
from specflow.lib.errors import PreconditionError, UsageError

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    branch: str
    worktree_closed: bool
    branch_deleted: bool


def _contains(worktree_path: Path, path: Path) -> bool:
    """True if path is worktree_path itself or lies beneath it."""
    return git.normalize_path(worktree_path) == git.normalize_path(path) or git.is_under(path, worktree_path)


def close_worktree_and_delete_branch(repo_path: Path, branch: str, cwd: Path | None = None) -> CleanupResult:
    """Remove the branch's worktree and delete the local branch.

    When the process runs inside that worktree (at its root or below), both
    steps are skipped: the worktree stays, and git would refuse to delete a
    branch that is still checked out there.

    Raises:
        GitCommandError: if git refuses to remove the worktree or delete the branch
    """
    current = cwd if cwd is not None else Path(os.getcwd())
    worktree_closed = False
    branch_deleted = False

    worktree_path = git.worktree_for_branch(repo_path, branch)
    if worktree_path is not None and _contains(worktree_path, current):
        logger.warning(f"Not removing worktree {worktree_path}: it contains the current working directory")
        logger.warning(f"Not deleting branch {branch}: it is checked out in {worktree_path}")
        return CleanupResult(branch=branch, worktree_closed=False, branch_deleted=False)

    if worktree_path is not None:
        git.remove_worktree(repo_path, worktree_path, force=True).check()
        git.prune_worktrees(repo_path).check()
        worktree_closed = True
        logger.info(f"Removed worktree {worktree_path}")

    if git.branch_exists(repo_path, branch):
        git.delete_branch(repo_path, branch).check()
        branch_deleted = True
        logger.info(f"Deleted local branch {branch}")

    return CleanupResult(branch=branch, worktree_closed=worktree_closed, branch_deleted=branch_deleted)


def merge_pull_request(
    repo_path: Path,
    pr_ref: str,
    method: str,
    delete_branch: bool,
    cwd: Path | None = None,
) -> CleanupResult:
    """Verify checks, merge the PR, then clean up locally if the branch is deleted.

    Raises:
        UsageError: for an unknown merge method
        GitHubCommandError: if checks fail or the merge is rejected
    """
    if method not in MERGE_METHODS:
        raise UsageError(f"Unknown merge method '{method}' (expected one of: {', '.join(MERGE_METHODS)})")

    head_branch = github.get_pr_head_branch(repo_path, pr_ref)
    github.check_pr_checks(repo_path, pr_ref)
    github.merge_pr(repo_path, pr_ref, method, delete_branch)
    logger.info(f"Merged PR {pr_ref} ({head_branch}) with {method}")

    if not delete_branch:
        return CleanupResult(branch=head_branch, worktree_closed=False, branch_deleted=False)
    return close_worktree_and_delete_branch(repo_path, head_branch, cwd)


def resolve_cleanup_branch(
    repo_path: Path,
    branch: str | None = None,
    pr_ref: str | None = None,
    issue_number: int | None = None,
    state: BacklogState | None = None,
) -> str:
    """Resolve the branch to clean up from exactly one selector.

    Raises:
        UsageError: if zero or several selectors are given
        PreconditionError: if the issue has no item or no recorded branch
    """
    provided = [value for value in (branch, pr_ref, issue_number) if value is not None]
    if len(provided) != 1:
        raise UsageError("cleanup requires exactly one of --branch, --pr, or --issue.")

    if branch is not None:
        return branch
    if pr_ref is not None:
        return github.get_pr_head_branch(repo_path, pr_ref)

    if state is None:
        raise PreconditionError(f"No backlog state available to look up issue #{issue_number}")
    item = state.find_by_issue(issue_number)
    if item is None:
        raise PreconditionError(f"No backlog item found for issue #{issue_number}")
    if not item.branch:
        raise PreconditionError(f"Issue #{issue_number} has no linked branch in state.")
    return item.branch
