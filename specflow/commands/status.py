"""
specflow status - List backlog items with their lifecycle stage.

Items are shown in scheduling order (priority score, highest first), with
the markers each stage has recorded.
"""

from specflow.backlog.lifecycle import derive_stage
from specflow.backlog.store import load_state
from specflow.lib.config import SpecflowConfig
from specflow.lib.constants import EXIT_SUCCESS


def format_item_line(item) -> str:
    issue = f"#{item.created_issue_number}" if item.created_issue_number else "-"
    return f"{item.priority}  {derive_stage(item):<12} {issue:<6} {item.formatted_title}"


def cmd_status(args, config: SpecflowConfig) -> int:
    state = load_state(config.state_file)
    items = sorted(state.items, key=lambda i: i.priority_score, reverse=True)

    print(f"Repo: {state.repo}")
    print(f"Source: {state.source_file}")
    print(f"Items: {len(items)}")
    if not items:
        return EXIT_SUCCESS

    print()
    for item in items:
        print(format_item_line(item))
        if item.branch:
            print(f"      branch: {item.branch}")
        if item.worktree_path:
            print(f"      worktree: {item.worktree_path}")
        if item.pr_url:
            print(f"      pr: {item.pr_url}")
        if item.agent_last_run_status:
            print(f"      agent: {item.agent_last_run_status} ({item.agent_last_run_at or 'never'})")
    return EXIT_SUCCESS
