"""
Configuration loaders for specflow.

Settings are resolved in order: built-in defaults, `.specflow/config.yaml`
in the project root, environment variables, then command-line flags (applied
by the commands that accept them).

Example config.yaml:

    worktree_root: ../worktrees
    default_branch: main
    agent:
      subdir: .agent-workspace
      skill_file: docs/agent-skill.md
      brief_file: issue-description.md
      command: "codex exec -C {worktreePath} \"$(cat {briefFile})\""
      required: false
      timeout: 1800
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

from specflow.lib.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_AGENT_BRIEF_FILE,
    DEFAULT_AGENT_SKILL_FILE,
    DEFAULT_AGENT_SUBDIR,
    DEFAULT_WORKTREE_ROOT,
    MAX_ACTIVE_WORKTREES,
    PLAN_FILE_NAME,
    STATE_DIR_NAME,
    STATE_FILE_NAME,
)

logger = logging.getLogger(__name__)

# Environment overrides
ENV_AGENT_COMMAND = "ANTI_GRAVITY_AGENT_COMMAND"
ENV_AGENT_SUBDIR = "ANTI_GRAVITY_AGENT_SUBDIR"
ENV_AGENT_SKILL_FILE = "ANTI_GRAVITY_SKILL_FILE"
ENV_AGENT_BRIEF_FILE = "SPECFLOW_AGENT_BRIEF_FILE"
ENV_WORKTREE_ROOT = "SPECFLOW_WORKTREE_ROOT"
ENV_DEFAULT_BRANCH = "SPECFLOW_DEFAULT_BRANCH"


@dataclass
class AgentLaunchConfig:
    """How the agent step runs inside a freshly claimed worktree."""
    enabled: bool = False
    subdir: str = DEFAULT_AGENT_SUBDIR          # Created inside the worktree
    skill_file: Optional[Path] = None           # Copied next to the brief when it exists
    brief_file_name: str = DEFAULT_AGENT_BRIEF_FILE
    command_template: Optional[str] = None      # None -> workspace prepared, run "skipped"
    required: bool = False                      # Non-success aborts the whole run
    timeout: Optional[int] = None               # Seconds; None waits for completion


@dataclass
class SpecflowConfig:
    """Project-level configuration."""
    project_root: Path
    state_file: Path
    plan_file: Path
    worktree_root: Path
    default_branch: Optional[str] = None        # Queried from GitHub when unset
    max_active_worktrees: int = MAX_ACTIVE_WORKTREES
    agent: AgentLaunchConfig = field(default_factory=AgentLaunchConfig)

    @property
    def state_dir(self) -> Path:
        return self.state_file.parent


def _read_config_file(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_path}: expected a mapping at top level")
        return {}
    return data


def _parse_timeout(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid agent timeout {value!r}")
        return None
    return timeout if timeout > 0 else None


def load_config(
    project_root: Path,
    state_file: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> SpecflowConfig:
    """Load configuration for the project rooted at project_root.

    Args:
        project_root: Directory the CLI runs against (the main checkout)
        state_file: Explicit state file path; defaults to .specflow/backlog.json
        env: Environment mapping, defaults to os.environ
    """
    env = os.environ if env is None else env
    project_root = project_root.resolve()
    state_dir = project_root / STATE_DIR_NAME
    data = _read_config_file(state_dir / CONFIG_FILE_NAME)
    agent_data = data.get("agent") or {}

    worktree_root = env.get(ENV_WORKTREE_ROOT) or data.get("worktree_root") or DEFAULT_WORKTREE_ROOT
    skill_file = env.get(ENV_AGENT_SKILL_FILE) or agent_data.get("skill_file") or DEFAULT_AGENT_SKILL_FILE
    command = env.get(ENV_AGENT_COMMAND) or agent_data.get("command")

    agent = AgentLaunchConfig(
        enabled=bool(command) or bool(agent_data.get("enabled", False)),
        subdir=env.get(ENV_AGENT_SUBDIR) or agent_data.get("subdir") or DEFAULT_AGENT_SUBDIR,
        skill_file=(project_root / skill_file).resolve(),
        brief_file_name=env.get(ENV_AGENT_BRIEF_FILE) or agent_data.get("brief_file") or DEFAULT_AGENT_BRIEF_FILE,
        command_template=command or None,
        required=bool(agent_data.get("required", False)),
        timeout=_parse_timeout(agent_data.get("timeout")),
    )

    if state_file is None:
        state_file = state_dir / STATE_FILE_NAME
    elif not state_file.is_absolute():
        state_file = project_root / state_file

    return SpecflowConfig(
        project_root=project_root,
        state_file=state_file,
        plan_file=state_dir / PLAN_FILE_NAME,
        worktree_root=(project_root / worktree_root).resolve(),
        default_branch=env.get(ENV_DEFAULT_BRANCH) or data.get("default_branch") or None,
        agent=agent,
    )
