"""
Issue provisioning and development-branch linking.

Both passes are idempotent: an item that already carries an issue number is
never sent to the tracker again, and an item that already has a branch is
never relinked.

Chained (create-issues) and backfill modes differ only in failure policy:
chained stops at the first failure, backfill logs, counts, and moves on.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from specflow.backlog.lifecycle import ItemLifecycle
from specflow.backlog.models import BacklogItem, BacklogState
from specflow.lib import github
from specflow.lib.errors import ExternalCommandError
from specflow.lib.naming import branch_name_for, slugify

logger = logging.getLogger(__name__)


@dataclass
class IssueRunResult:
    """Outcome of an issue creation pass."""
    created: list[BacklogItem]
    linked: list[BacklogItem]


@dataclass
class BackfillResult:
    """Outcome of a backfill pass."""
    state: BacklogState
    linked_count: int
    failed_count: int


def issue_title(item: BacklogItem) -> str:
    return f"[{item.priority}] {item.formatted_title}"


def issue_body(item: BacklogItem) -> str:
    return "\n".join([
        "## Formatted Specification",
        f"- Type: {item.type}",
        f"- Priority: {item.priority}",
        f"- Topic: {item.topic}",
        f"- Description: {item.formatted_title}",
        "",
        "## Raw Input",
        item.raw,
    ])


def label_candidates(item: BacklogItem) -> list[str]:
    return [item.type, f"priority:{item.priority.lower()}", f"topic:{slugify(item.topic)}"]


def create_issues(state: BacklogState, repo_path: Path, work_dir: Path) -> list[BacklogItem]:
    """Create a tracker issue for every item that lacks one.

    Labels are filtered to those already defined in the tracker, fetched once
    for the batch. Any failure aborts the remaining batch; items created before
    the failure keep their recorded issue.

    Returns:
        Items that received an issue in this pass

    Raises:
        GitHubCommandError: if gh fails
        TrackerContractError: if the returned URL has no numeric issue id
    """
    pending = [item for item in state.items if not item.is_issued]
    if not pending:
        return []

    existing_labels = github.list_labels(repo_path)
    work_dir.mkdir(parents=True, exist_ok=True)
    created = []

    for item in pending:
        labels = [label for label in label_candidates(item) if label in existing_labels]
        body_file = work_dir / f"{item.id}.issue.md"
        body_file.write_text(issue_body(item) + "\n", encoding="utf-8")

        issue_url = github.create_issue(repo_path, issue_title(item), body_file, labels)
        issue_number = github.parse_number_from_url(issue_url)

        ItemLifecycle(item).fire("record_issue", number=issue_number, url=issue_url)
        logger.info(f"Created issue #{issue_number} for {item.id}")
        created.append(item)

    return created


def _branch_pending(state: BacklogState) -> list[BacklogItem]:
    return [item for item in state.items if item.is_issued and not item.is_branched]


def link_branch(repo_path: Path, item: BacklogItem, base_branch: str) -> str:
    """Create and link the development branch for one issued item."""
    branch = branch_name_for(item.created_issue_number, item.formatted_title)
    github.develop_branch(repo_path, item.created_issue_number, branch, base_branch)
    ItemLifecycle(item).fire("link_branch", branch=branch)
    return branch


def link_development_branches(state: BacklogState, repo_path: Path, base_branch: str) -> list[BacklogItem]:
    """Chained mode: link branches for issued items, stopping at the first failure."""
    linked = []
    for item in _branch_pending(state):
        link_branch(repo_path, item, base_branch)
        linked.append(item)
    return linked


def create_issues_with_development_branches(
    state: BacklogState, repo_path: Path, work_dir: Path, base_branch: str
) -> IssueRunResult:
    """Create missing issues, then link a development branch to each."""
    created = create_issues(state, repo_path, work_dir)
    linked = link_development_branches(state, repo_path, base_branch)
    return IssueRunResult(created=created, linked=linked)


def backfill_development_branches(state: BacklogState, repo_path: Path, base_branch: str) -> BackfillResult:
    """Backfill mode: link branches item by item, isolating failures."""
    linked_count = 0
    failed_count = 0

    for item in _branch_pending(state):
        try:
            link_branch(repo_path, item, base_branch)
            linked_count += 1
        except ExternalCommandError as e:
            failed_count += 1
            logger.error(f"Failed to link development branch for issue #{item.created_issue_number}: {e}")

    return BackfillResult(state=state, linked_count=linked_count, failed_count=failed_count)
