"""
specflow create-issues - Create tracker issues and link development branches.

Chained mode: the first failure (issue or branch) aborts the run. Progress
made before the failure is saved, so rerunning resumes where it stopped.
"""

from specflow.backlog.store import open_state
from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS
from specflow.workflow.issues import create_issues_with_development_branches
from specflow.commands.common import resolve_default_branch


def cmd_create_issues(args, config: SpecflowConfig) -> int:
    with open_state(config.state_file) as state:
        base_branch = resolve_default_branch(config)
        result = create_issues_with_development_branches(
            state, config.project_root, config.state_dir, base_branch
        )
        issued_count = sum(1 for item in state.items if item.is_issued)

    for item in result.created:
        print(f"  #{item.created_issue_number}: {item.formatted_title}")
    print(f"Created {len(result.created)} issue(s), linked {len(result.linked)} branch(es).")
    print(f"Issues linked in state: {issued_count}")
    return EXIT_SUCCESS
