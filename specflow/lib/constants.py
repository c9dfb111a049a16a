"""Shared constants for specflow."""

# State directory and files, relative to the project root
STATE_DIR_NAME = ".specflow"
STATE_FILE_NAME = "backlog.json"
PLAN_FILE_NAME = "grouped-plan.md"
CONFIG_FILE_NAME = "config.yaml"

# Worktree scheduling
MAX_ACTIVE_WORKTREES = 3
DEFAULT_WORKTREE_ROOT = "../worktrees"

# Agent workspace
DEFAULT_AGENT_SUBDIR = ".agent-workspace"
DEFAULT_AGENT_BRIEF_FILE = "issue-description.md"
DEFAULT_AGENT_SKILL_FILE = ".opencode/skills/specflow-worktree-automation/SKILL.md"

# Branch naming
BRANCH_PREFIX = "issue/"
SLUG_MAX_LEN = 48
TITLE_MAX_LEN = 120

# Base branch for PRs when neither --base nor config provides one
FALLBACK_PR_BASE = "master"

# Agent run outcomes
AGENT_SUCCEEDED = "succeeded"
AGENT_FAILED = "failed"
AGENT_SKIPPED = "skipped"

# Merge strategies accepted by `gh pr merge`
MERGE_METHODS = ("merge", "squash", "rebase")
DEFAULT_MERGE_METHOD = "squash"

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_LOCKED = 3
