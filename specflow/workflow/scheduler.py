"""
Worktree scheduler: hand out a bounded number of worktree slots to issued
items in priority order.

Each pass:
  1. Count the worktrees git actually has under the worktree root. This, not
     the recorded worktreePath markers, is the number of occupied slots.
  2. Walk issued items by descending priority score (stable for ties).
  3. An item whose recorded worktree is in that set already owns a slot; it
     only gets an agent re-run when the agent is enabled.
  4. Any other item claims a free slot: pick the branch origin, create the
     worktree, run the agent, comment on the issue, record the markers.
  5. Stop once every slot is occupied. Remaining items wait for a later pass.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from specflow import git
from specflow.backlog.lifecycle import ItemLifecycle
from specflow.backlog.models import BacklogItem, BacklogState
from specflow.lib import github
from specflow.lib.config import AgentLaunchConfig
from specflow.lib.constants import AGENT_SKIPPED, MAX_ACTIVE_WORKTREES
from specflow.lib.errors import AgentLaunchError
from specflow.lib.naming import branch_name_for, worktree_dir_name
from specflow.workflow.agent import AgentOutcome, launch_agent

logger = logging.getLogger(__name__)

REMOTE = "origin"


class BranchOrigin(Enum):
    """Where a new worktree's branch comes from."""
    ATTACH_LOCAL = "attach_local"              # Local branch exists: check it out
    TRACK_REMOTE = "track_remote"              # Only on the remote: fetch and track
    CREATE_FROM_DEFAULT = "create_from_default"  # Nowhere yet: branch off the default branch


@dataclass
class ProvisionResult:
    """What a scheduling pass did."""
    active_before: int
    active_after: int
    claimed: list[BacklogItem] = field(default_factory=list)
    rerun: list[BacklogItem] = field(default_factory=list)
    waiting: list[BacklogItem] = field(default_factory=list)
    active: list[BacklogItem] = field(default_factory=list)


def resolve_branch_origin(repo_path: Path, branch: str) -> BranchOrigin:
    """Check local refs, then the remote, to choose how to create the worktree.

    Raises GitCommandError when the remote cannot be queried.
    """
    if git.branch_exists(repo_path, branch):
        return BranchOrigin.ATTACH_LOCAL
    if git.remote_branch_exists(repo_path, branch, REMOTE):
        return BranchOrigin.TRACK_REMOTE
    return BranchOrigin.CREATE_FROM_DEFAULT


def create_worktree(
    repo_path: Path,
    origin: BranchOrigin,
    worktree_path: Path,
    branch: str,
    default_branch: str,
) -> None:
    """Create the worktree using exactly one of the three strategies.

    Raises:
        GitCommandError: if a fetch or worktree add fails
    """
    logger.info(f"Creating worktree {worktree_path} for {branch} ({origin.value})")
    if origin is BranchOrigin.ATTACH_LOCAL:
        git.add_worktree_existing_branch(repo_path, worktree_path, branch).check()
    elif origin is BranchOrigin.TRACK_REMOTE:
        git.fetch(repo_path, REMOTE, branch).check()
        git.add_worktree_tracking(repo_path, worktree_path, branch, REMOTE).check()
    else:
        git.fetch(repo_path, REMOTE, default_branch).check()
        git.add_worktree_new_branch(repo_path, worktree_path, branch, f"{REMOTE}/{default_branch}").check()


def sort_candidates(items: list[BacklogItem]) -> list[BacklogItem]:
    """Issued items, highest priority score first; ties keep store order."""
    return sorted((item for item in items if item.is_issued), key=lambda i: i.priority_score, reverse=True)


def issue_comment_body(branch: str, worktree_path: Path, agent_enabled: bool, outcome: AgentOutcome | None) -> str:
    lines = [
        f"Development branch: `{branch}`",
        f"Worktree: `{worktree_path}`",
    ]
    if agent_enabled and outcome is not None:
        lines.append(f"Agent workspace: `{outcome.workspace.agent_workspace_path}`")
        lines.append(f"Agent run: {outcome.result.status}")
    else:
        lines.append("Agent run: skipped (disabled)")
    return "\n".join(lines)


def _record_agent_outcome(item: BacklogItem, outcome: AgentOutcome) -> None:
    item.agent_workspace_path = str(outcome.workspace.agent_workspace_path)
    item.agent_last_run_at = outcome.ran_at
    item.agent_last_run_status = outcome.result.status
    item.agent_last_run_output = outcome.result.output


def _run_agent(
    repo_path: Path,
    item: BacklogItem,
    branch: str,
    worktree_path: Path,
    agent: AgentLaunchConfig,
) -> AgentOutcome:
    """Launch the agent; abort the pass when a required agent does not succeed."""
    issue_number = item.created_issue_number
    outcome = launch_agent(repo_path, item, issue_number, branch, worktree_path, agent)
    if agent.required and not outcome.result.succeeded:
        # Keep what happened on the item before aborting
        _record_agent_outcome(item, outcome)
        raise AgentLaunchError(f"Sub-agent launch failed for issue #{issue_number}: {outcome.result.output}")
    return outcome


def provision_worktrees(
    state: BacklogState,
    repo_path: Path,
    worktree_root: Path,
    agent: AgentLaunchConfig,
    default_branch: str,
    max_active: int = MAX_ACTIVE_WORKTREES,
) -> ProvisionResult:
    """Run one scheduling pass over the backlog.

    Args:
        state: Backlog state, mutated in place
        repo_path: Main checkout the worktrees belong to
        worktree_root: Directory under which managed worktrees live
        agent: Agent launch settings
        default_branch: Base for branches that exist nowhere yet
        max_active: Slot cap

    Raises:
        GitCommandError: if listing worktrees, probing the remote, or creating a worktree fails
        GitHubCommandError: if posting the issue comment fails
        AgentLaunchError: if a required agent run does not succeed
    """
    worktree_root.mkdir(parents=True, exist_ok=True)
    managed = git.managed_worktree_paths(repo_path, worktree_root)
    active_count = len(managed)
    result = ProvisionResult(active_before=active_count, active_after=active_count)
    logger.info(f"{active_count} of {max_active} worktree slots in use under {worktree_root}")

    candidates = sort_candidates(state.items)
    for index, item in enumerate(candidates):
        if active_count >= max_active:
            result.waiting.extend(
                c for c in candidates[index:]
                if not (c.worktree_path and git.normalize_path(c.worktree_path) in managed)
            )
            break

        issue_number = item.created_issue_number
        branch = item.branch or branch_name_for(issue_number, item.formatted_title)

        if item.worktree_path and git.normalize_path(item.worktree_path) in managed:
            if agent.enabled:
                outcome = _run_agent(repo_path, item, branch, Path(item.worktree_path), agent)
                ItemLifecycle(item).fire("provision", branch=branch, worktree_path=item.worktree_path)
                _record_agent_outcome(item, outcome)
                result.rerun.append(item)
            continue

        worktree_path = worktree_root / worktree_dir_name(issue_number, item.formatted_title)
        origin = resolve_branch_origin(repo_path, branch)
        create_worktree(repo_path, origin, worktree_path, branch, default_branch)
        ItemLifecycle(item).fire("provision", branch=branch, worktree_path=str(worktree_path))

        outcome = None
        if agent.enabled:
            outcome = _run_agent(repo_path, item, branch, worktree_path, agent)

        github.comment_on_issue(
            repo_path, issue_number, issue_comment_body(branch, worktree_path, agent.enabled, outcome)
        )

        if outcome is not None:
            _record_agent_outcome(item, outcome)
        else:
            item.agent_last_run_status = AGENT_SKIPPED

        managed.add(git.normalize_path(worktree_path))
        active_count += 1
        result.claimed.append(item)

    result.active_after = active_count
    result.active = [
        item for item in state.items
        if item.worktree_path and git.normalize_path(item.worktree_path) in managed
    ]
    return result
