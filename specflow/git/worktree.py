"""Git worktree operations.

The listing from `git worktree list --porcelain` is the source of truth for
which working copies exist; nothing here consults the backlog state.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from specflow.git.runner import run_git, GitResult


@dataclass
class WorktreeInfo:
    """One entry of `git worktree list --porcelain`."""
    path: Path
    head: str = ""
    branch: str | None = None  # None when detached


def parse_worktree_list(output: str) -> list[WorktreeInfo]:
    """Parse porcelain worktree listing into entries.

    Entries are separated by blank lines; each starts with a `worktree <path>`
    line, optionally followed by `HEAD <sha>` and `branch refs/heads/<name>`.
    """
    entries: list[WorktreeInfo] = []
    current: WorktreeInfo | None = None
    for line in output.splitlines():
        if line.startswith("worktree "):
            if current is not None:
                entries.append(current)
            current = WorktreeInfo(path=Path(line[len("worktree "):].strip()))
        elif current is None:
            continue
        elif line.startswith("HEAD "):
            current.head = line[len("HEAD "):].strip()
        elif line.startswith("branch refs/heads/"):
            current.branch = line[len("branch refs/heads/"):].strip()
        elif not line.strip():
            entries.append(current)
            current = None
    if current is not None:
        entries.append(current)
    return entries


def list_worktrees(repo: Path) -> list[WorktreeInfo]:
    """List all worktrees registered with the repository.

    Raises GitCommandError if git cannot list them.
    """
    result = run_git(["worktree", "list", "--porcelain"], repo).check()
    return parse_worktree_list(result.stdout)


def normalize_path(path: Path | str) -> str:
    """Canonical string form used to compare worktree paths."""
    return os.path.realpath(path)


def is_under(path: Path | str, root: Path | str) -> bool:
    """True if path lies strictly beneath root (after resolving symlinks)."""
    return Path(normalize_path(root)) in Path(normalize_path(path)).parents


def managed_worktree_paths(repo: Path, worktree_root: Path) -> set[str]:
    """Normalized paths of the worktrees that live under worktree_root."""
    return {
        normalize_path(wt.path)
        for wt in list_worktrees(repo)
        if is_under(wt.path, worktree_root)
    }


def worktree_for_branch(repo: Path, branch: str) -> Path | None:
    """Return the path of the worktree that has branch checked out, if any."""
    for wt in list_worktrees(repo):
        if wt.branch == branch:
            return wt.path
    return None


def add_worktree_existing_branch(repo: Path, path: Path, branch: str) -> GitResult:
    """Check out an existing local branch into a new worktree."""
    return run_git(["worktree", "add", str(path), branch], repo, timeout=120)


def add_worktree_tracking(repo: Path, path: Path, branch: str, remote: str = "origin") -> GitResult:
    """Create a local branch tracking remote/branch in a new worktree."""
    return run_git(
        ["worktree", "add", str(path), "--track", "-b", branch, f"{remote}/{branch}"],
        repo,
        timeout=120,
    )


def add_worktree_new_branch(repo: Path, path: Path, branch: str, start_point: str) -> GitResult:
    """Create a new branch from start_point in a new worktree."""
    return run_git(["worktree", "add", str(path), "-b", branch, start_point], repo, timeout=120)


def remove_worktree(repo: Path, path: Path, force: bool = True) -> GitResult:
    """Remove a worktree directory and its administrative files."""
    args = ["worktree", "remove"]
    if force:
        args.append("--force")
    args.append(str(path))
    return run_git(args, repo, timeout=60)


def prune_worktrees(repo: Path) -> GitResult:
    """Prune stale worktree administrative files."""
    return run_git(["worktree", "prune"], repo)
