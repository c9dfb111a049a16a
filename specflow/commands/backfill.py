"""
specflow backfill-development-branches - Link branches for issued items.

Recovery tool: per-item failures are logged and counted, the loop continues.
"""

from specflow.backlog.store import open_state
from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS
from specflow.workflow.issues import backfill_development_branches
from specflow.commands.common import resolve_default_branch


def cmd_backfill(args, config: SpecflowConfig) -> int:
    with open_state(config.state_file) as state:
        base_branch = resolve_default_branch(config)
        result = backfill_development_branches(state, config.project_root, base_branch)

    print(f"Backfilled development branches: {result.linked_count}")
    if result.failed_count > 0:
        print(f"Failed to backfill: {result.failed_count}")
    return EXIT_SUCCESS
