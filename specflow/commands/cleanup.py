"""
specflow cleanup - Close a branch's worktree and delete the local branch.

The branch is selected by exactly one of --branch, --pr or --issue. Only
--issue reads the backlog state.
"""

from specflow.backlog.store import load_state
from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS
from specflow.workflow.merge import close_worktree_and_delete_branch, resolve_cleanup_branch
from specflow.commands.common import yes_no


def cmd_cleanup(args, config: SpecflowConfig) -> int:
    state = load_state(config.state_file) if args.issue is not None else None
    branch = resolve_cleanup_branch(
        config.project_root,
        branch=args.branch,
        pr_ref=args.pr,
        issue_number=args.issue,
        state=state,
    )
    result = close_worktree_and_delete_branch(config.project_root, branch)

    print(f"Cleanup branch: {result.branch}")
    print(f"- Worktree closed: {yes_no(result.worktree_closed)}")
    print(f"- Local branch deleted: {yes_no(result.branch_deleted)}")
    return EXIT_SUCCESS
