"""
Intake: turn a raw input file into a fresh backlog state.
"""

from collections import defaultdict
from pathlib import Path

from specflow.backlog.models import BacklogItem, BacklogState
from specflow.lib import classify
from specflow.lib.timestamps import utc_timestamp


def build_item(index: int, raw: str) -> BacklogItem:
    """Classify one raw line into an item with id item-{index}."""
    issue_type = classify.detect_type(raw)
    priority = classify.detect_priority(raw)
    topic = classify.detect_topic(raw)
    return BacklogItem(
        id=f"item-{index}",
        raw=raw,
        formatted_title=classify.format_title(raw),
        formatted_description=f"Type: {issue_type}. Priority: {priority}. Topic: {topic}.",
        topic=topic,
        type=issue_type,
        priority=priority,
        priority_score=classify.priority_score(priority, issue_type),
    )


def build_intake_state(input_file: Path, repo: str) -> BacklogState:
    """Parse input_file into a new BacklogState for repo."""
    raw_lines = classify.parse_input_items(input_file.read_text(encoding="utf-8"))
    return BacklogState(
        created_at=utc_timestamp(),
        source_file=str(input_file),
        repo=repo,
        items=[build_item(i, raw) for i, raw in enumerate(raw_lines, start=1)],
    )


def render_grouped_plan(state: BacklogState) -> str:
    """Markdown overview of the backlog grouped by topic, highest priority first."""
    groups: dict[str, list[BacklogItem]] = defaultdict(list)
    for item in state.items:
        groups[item.topic].append(item)

    lines = [
        "# Specflow Grouped Plan",
        "",
        f"Generated: {state.created_at}",
        f"Source: {state.source_file}",
        "",
    ]
    for topic in sorted(groups):
        lines.append(f"## {topic}")
        lines.append("")
        for item in sorted(groups[topic], key=lambda i: i.priority_score, reverse=True):
            lines.append(f"- [{item.priority}] ({item.type}) {item.formatted_title}")
            lines.append(f"  - Raw input: \"{item.raw}\"")
            lines.append(f"  - Normalized: {item.formatted_description}")
            lines.append("")
    return "\n".join(lines) + "\n"


def write_grouped_plan(state: BacklogState, output_file: Path) -> None:
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(render_grouped_plan(state), encoding="utf-8")
