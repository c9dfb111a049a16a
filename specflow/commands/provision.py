"""
specflow provision-worktrees - Claim worktree slots for issued items.

Runs one scheduling pass: at most MAX_ACTIVE_WORKTREES worktrees exist under
the worktree root afterwards, assigned in priority order.
"""

from dataclasses import replace
from pathlib import Path

from specflow.backlog.store import open_state
from specflow.lib.config import AgentLaunchConfig, SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS
from specflow.workflow.scheduler import provision_worktrees
from specflow.commands.common import resolve_default_branch


def agent_config_from_args(args, config: SpecflowConfig) -> AgentLaunchConfig:
    """Layer --agent* flags over the configured agent settings."""
    agent = config.agent
    command = args.agent_command or agent.command_template
    skill_file = agent.skill_file
    if args.agent_skill:
        skill_file = (config.project_root / args.agent_skill).resolve()
    return replace(
        agent,
        enabled=agent.enabled or args.agent or bool(args.agent_command),
        command_template=command,
        subdir=args.agent_subdir or agent.subdir,
        skill_file=skill_file,
        required=agent.required or args.agent_required,
    )


def cmd_provision(args, config: SpecflowConfig) -> int:
    agent = agent_config_from_args(args, config)
    worktree_root = config.worktree_root
    if args.worktree_root:
        worktree_root = (config.project_root / Path(args.worktree_root)).resolve()

    with open_state(config.state_file) as state:
        default_branch = resolve_default_branch(config)
        result = provision_worktrees(
            state,
            config.project_root,
            worktree_root,
            agent,
            default_branch,
            max_active=config.max_active_worktrees,
        )

    for item in result.claimed:
        print(f"Provisioned #{item.created_issue_number}: {item.worktree_path} ({item.branch})")
        if agent.enabled:
            print(f"  Agent run: {item.agent_last_run_status}")
    for item in result.rerun:
        print(f"Re-ran agent for #{item.created_issue_number}: {item.agent_last_run_status}")

    print(f"Active managed worktrees: {result.active_after}/{config.max_active_worktrees}")
    for item in result.active:
        print(f"- #{item.created_issue_number}: {item.worktree_path} ({item.branch})")
    if result.waiting:
        print(f"Waiting for a free slot: {len(result.waiting)} item(s)")
    return EXIT_SUCCESS
