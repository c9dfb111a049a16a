"""
Agent launcher: prepare a workspace inside a worktree and optionally run a
templated command there.

The workspace holds a brief (the issue description) and, when configured, a
copy of the skill/reference document. Without a command template the stage
ends as "skipped", which is a normal outcome.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from specflow.backlog.models import BacklogItem
from specflow.lib import github
from specflow.lib.config import AgentLaunchConfig
from specflow.lib.constants import AGENT_FAILED, AGENT_SKIPPED, AGENT_SUCCEEDED
from specflow.lib.errors import ExternalCommandError
from specflow.lib.timestamps import utc_timestamp

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r'\{([a-zA-Z0-9_]+)\}')

SKIPPED_OUTPUT = "No --agent-command provided. Workspace prepared only."
SUCCESS_OUTPUT = "Sub-agent command completed successfully."


@dataclass(frozen=True)
class Fetched:
    """Issue description read live from the tracker."""
    body: str


@dataclass(frozen=True)
class Degraded:
    """Locally reconstructed description, used when the live fetch failed."""
    body: str
    reason: str


IssueDescription = Fetched | Degraded


@dataclass
class PreparedWorkspace:
    """Paths created for one agent run."""
    agent_workspace_path: Path
    brief_file_path: Path
    skill_file_path: Path | None
    description: IssueDescription


@dataclass
class AgentRunResult:
    status: str  # succeeded, failed, skipped
    output: str

    @property
    def succeeded(self) -> bool:
        return self.status == AGENT_SUCCEEDED


@dataclass
class AgentOutcome:
    """Everything the scheduler records on the item after a launch."""
    workspace: PreparedWorkspace
    result: AgentRunResult
    ran_at: str


def fallback_description(item: BacklogItem) -> str:
    return "\n".join([
        "## Formatted Specification",
        f"- Type: {item.type}",
        f"- Priority: {item.priority}",
        f"- Topic: {item.topic}",
        f"- Description: {item.formatted_description}",
        "",
        "## Raw Input",
        item.raw,
        "",
    ])


def resolve_issue_description(repo_path: Path, issue_number: int, item: BacklogItem) -> IssueDescription:
    """Prefer the live issue body; fall back to a local summary.

    Never raises for tracker failures: the fallback is returned as Degraded
    and the reason is logged as a warning.
    """
    try:
        body = github.view_issue_body(repo_path, issue_number)
    except ExternalCommandError as e:
        reason = str(e)
        logger.warning(f"Failed to fetch body for issue #{issue_number}: {reason}")
        return Degraded(body=fallback_description(item), reason=reason)

    if not body.strip():
        reason = "issue body is empty"
        logger.warning(f"Issue #{issue_number} has an empty body; using local summary")
        return Degraded(body=fallback_description(item), reason=reason)

    return Fetched(body=body)


def prepare_agent_workspace(
    repo_path: Path,
    item: BacklogItem,
    issue_number: int,
    worktree_path: Path,
    config: AgentLaunchConfig,
) -> PreparedWorkspace:
    """Create (or reuse) the workspace directory and write the brief into it."""
    workspace = (worktree_path / config.subdir).resolve()
    workspace.mkdir(parents=True, exist_ok=True)

    description = resolve_issue_description(repo_path, issue_number, item)
    brief_file = workspace / config.brief_file_name
    brief_file.write_text(f"{description.body}\n", encoding="utf-8")

    skill_file = config.skill_file
    if skill_file is not None and skill_file.is_file():
        copied = workspace / skill_file.name
        shutil.copyfile(skill_file, copied)
        skill_file = copied

    return PreparedWorkspace(
        agent_workspace_path=workspace,
        brief_file_path=brief_file,
        skill_file_path=skill_file,
        description=description,
    )


def render_template(template: str, values: dict[str, str]) -> str:
    """Substitute {name} placeholders; unknown names render as empty strings."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), ""), template)


def template_values(
    item: BacklogItem,
    issue_number: int,
    branch: str,
    worktree_path: Path,
    workspace: PreparedWorkspace,
) -> dict[str, str]:
    return {
        "issueNumber": str(issue_number),
        "branch": branch,
        "title": item.formatted_title,
        "worktreePath": str(worktree_path),
        "agentWorkspace": str(workspace.agent_workspace_path),
        "issueDescriptionFile": str(workspace.brief_file_path),
        "briefFile": str(workspace.brief_file_path),
        "skillFile": str(workspace.skill_file_path or ""),
    }


def run_agent_command(command: str, worktree_path: Path, timeout: int | None = None) -> AgentRunResult:
    """Run a rendered agent command through the shell inside the worktree."""
    logger.info(f"Running agent command in {worktree_path}: {command}")
    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=str(worktree_path),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return AgentRunResult(status=AGENT_FAILED, output=f"Agent command timed out after {timeout}s")
    except OSError as e:
        return AgentRunResult(status=AGENT_FAILED, output=str(e))

    output = (result.stdout or "").strip()
    if result.returncode != 0:
        return AgentRunResult(
            status=AGENT_FAILED,
            output=output or f"Agent command exited with status {result.returncode}",
        )
    return AgentRunResult(status=AGENT_SUCCEEDED, output=output or SUCCESS_OUTPUT)


def launch_agent(
    repo_path: Path,
    item: BacklogItem,
    issue_number: int,
    branch: str,
    worktree_path: Path,
    config: AgentLaunchConfig,
) -> AgentOutcome:
    """Prepare the workspace and run the configured command, if any."""
    workspace = prepare_agent_workspace(repo_path, item, issue_number, worktree_path, config)

    template = (config.command_template or "").strip()
    if not template:
        result = AgentRunResult(status=AGENT_SKIPPED, output=SKIPPED_OUTPUT)
    else:
        values = template_values(item, issue_number, branch, worktree_path, workspace)
        result = run_agent_command(render_template(template, values), worktree_path, config.timeout)

    if result.status == AGENT_FAILED:
        logger.warning(f"Agent run failed for issue #{issue_number}: {result.output}")

    return AgentOutcome(
        workspace=workspace,
        result=result,
        ran_at=utc_timestamp(),
    )
