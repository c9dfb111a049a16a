"""
specflow intake - Parse a raw backlog file into a new state file.

Creates:
- .specflow/backlog.json with one item per parsed line
- .specflow/grouped-plan.md overview grouped by topic
"""

from pathlib import Path

from specflow.backlog.store import save_state
from specflow.lib import github
from specflow.lib.config import SpecflowConfig
from specflow.lib.locking import state_lock
from specflow.lib.constants import EXIT_SUCCESS, EXIT_USAGE
from specflow.workflow.intake import build_intake_state, write_grouped_plan


def cmd_intake(args, config: SpecflowConfig) -> int:
    """Build a fresh backlog from --input."""
    input_path = (config.project_root / args.input).resolve()
    if not input_path.is_file():
        print(f"ERROR: Input file not found: {input_path}")
        return EXIT_USAGE

    if config.state_file.exists() and not args.force:
        print(f"ERROR: State file already exists: {config.state_file}")
        print("  Rerun with --force to replace it (recorded issue numbers will be lost).")
        return EXIT_USAGE

    plan_file = (config.project_root / args.plan).resolve() if args.plan else config.plan_file

    repo = github.get_repo_name_with_owner(config.project_root)
    state = build_intake_state(input_path, repo)

    with state_lock(config.state_file):
        write_grouped_plan(state, plan_file)
        save_state(config.state_file, state)

    print(f"Grouped plan saved to {plan_file}")
    print(f"Backlog state saved to {config.state_file}")
    print(f"Parsed {len(state.items)} items.")
    return EXIT_SUCCESS
