"""
Pull request creation for provisioned items.
"""

import logging
from pathlib import Path

from specflow import git
from specflow.backlog.lifecycle import ItemLifecycle
from specflow.backlog.models import BacklogItem, BacklogState
from specflow.lib import github
from specflow.lib.errors import PreconditionError

logger = logging.getLogger(__name__)


def pr_body(item: BacklogItem, issue_number: int) -> str:
    return "\n".join([
        "## Summary",
        f"- Implements #{issue_number} from specflow pipeline",
        f"- Source raw request: {item.raw}",
        "",
        f"Closes #{issue_number}",
    ])


def find_item_for_issue(state: BacklogState, issue_number: int) -> BacklogItem:
    item = state.find_by_issue(issue_number)
    if item is None:
        raise PreconditionError(f"No backlog item found for issue #{issue_number}")
    return item


def create_pull_request(
    state: BacklogState,
    issue_number: int,
    base_branch: str,
    work_dir: Path,
    draft: bool = True,
) -> BacklogItem:
    """Push the item's branch and open a PR for it.

    Raises:
        PreconditionError: if no item has this issue, or it has no branch/worktree
        GitCommandError: if the push fails
        GitHubCommandError: if gh cannot create the PR
    """
    item = find_item_for_issue(state, issue_number)
    if not item.branch or not item.worktree_path:
        raise PreconditionError(f"Issue #{issue_number} has no managed branch/worktree yet.")

    worktree = Path(item.worktree_path)
    git.push_set_upstream(worktree, "origin", item.branch).check()

    work_dir.mkdir(parents=True, exist_ok=True)
    body_file = work_dir / f"issue-{issue_number}.pr.md"
    body_file.write_text(pr_body(item, issue_number) + "\n", encoding="utf-8")

    pr_url = github.create_pr(worktree, item.branch, base_branch, item.formatted_title, body_file, draft=draft)
    ItemLifecycle(item).fire("open_pr", url=pr_url)
    logger.info(f"Opened {'draft ' if draft else ''}PR {pr_url} for issue #{issue_number}")
    return item
