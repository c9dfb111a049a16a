"""
specflow merge-pr - Merge a pull request once its checks pass.

Unless --keep-branch is given, the remote branch is deleted by the merge and
the local worktree and branch are cleaned up afterwards.
"""

from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS
from specflow.workflow.merge import merge_pull_request
from specflow.commands.common import yes_no


def cmd_merge_pr(args, config: SpecflowConfig) -> int:
    delete_branch = not args.keep_branch
    result = merge_pull_request(config.project_root, args.pr, args.method, delete_branch)

    print(f"Merged PR {args.pr} with {args.method}.")
    if delete_branch:
        print(f"Cleanup branch: {result.branch}")
        print(f"- Worktree closed: {yes_no(result.worktree_closed)}")
        print(f"- Local branch deleted: {yes_no(result.branch_deleted)}")
    return EXIT_SUCCESS
