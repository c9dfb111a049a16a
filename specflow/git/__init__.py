"""Git operations for specflow.

This module provides clean interfaces for git operations.
Callers should use these functions instead of direct subprocess calls.

Return type conventions:
- Functions returning GitResult: Caller must check .success (or call
  .check() to raise GitCommandError) before relying on the command.
  Examples: fetch(), push_set_upstream(), add_worktree_new_branch()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: branch_exists()
- Functions returning parsed values raise GitCommandError when git itself
  fails, since an empty answer would be indistinguishable from "none".
  Examples: list_worktrees(), worktree_for_branch(), remote_branch_exists()
"""

from specflow.git.runner import GitResult, run_git
from specflow.git.branch import (
    branch_exists,
    remote_branch_exists,
    delete_branch,
)
from specflow.git.remote import (
    fetch,
    push_set_upstream,
)
from specflow.git.worktree import (
    WorktreeInfo,
    parse_worktree_list,
    normalize_path,
    is_under,
    list_worktrees,
    managed_worktree_paths,
    worktree_for_branch,
    add_worktree_existing_branch,
    add_worktree_tracking,
    add_worktree_new_branch,
    remove_worktree,
    prune_worktrees,
)

__all__ = [
    # runner
    "GitResult",
    "run_git",
    # branch
    "branch_exists",
    "remote_branch_exists",
    "delete_branch",
    # remote
    "fetch",
    "push_set_upstream",
    # worktree
    "WorktreeInfo",
    "parse_worktree_list",
    "normalize_path",
    "is_under",
    "list_worktrees",
    "managed_worktree_paths",
    "worktree_for_branch",
    "add_worktree_existing_branch",
    "add_worktree_tracking",
    "add_worktree_new_branch",
    "remove_worktree",
    "prune_worktrees",
]
