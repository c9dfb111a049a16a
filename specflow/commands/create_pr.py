"""
specflow create-pr - Push an item's branch and open a pull request.
"""

from specflow.backlog.store import open_state
from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS, FALLBACK_PR_BASE
from specflow.workflow.pull_requests import create_pull_request


def cmd_create_pr(args, config: SpecflowConfig) -> int:
    base_branch = args.base or config.default_branch or FALLBACK_PR_BASE

    with open_state(config.state_file) as state:
        item = create_pull_request(
            state,
            args.issue,
            base_branch,
            config.state_dir,
            draft=not args.ready,
        )

    print(f"Created PR for issue #{args.issue}: {item.pr_url}")
    return EXIT_SUCCESS
