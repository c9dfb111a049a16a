"""Backlog item lifecycle using the transitions library.

An item's stage is never stored; it is derived from which stage markers are
set. The machine guards the order in which markers may be filled and applies
them in its `before` callbacks, so every mutation of a stage marker goes
through a named trigger.

Usage:
    from specflow.backlog.lifecycle import ItemLifecycle

    lifecycle = ItemLifecycle(item)
    lifecycle.record_issue(number=42, url="https://github.com/o/r/issues/42")
    lifecycle.link_branch(branch="issue/42-fix-login-bug")
    lifecycle.provision(branch="issue/42-fix-login-bug", worktree_path="/wt/42-fix-login-bug")
    lifecycle.open_pr(url="https://github.com/o/r/pull/7")
"""

import logging

from transitions import Machine, MachineError

from specflow.backlog.models import BacklogItem

logger = logging.getLogger(__name__)


STATES = [
    "intake",
    "issued",
    "branched",
    "provisioned",
    "pr_open",
]

# dest=None marks an internal transition: callbacks run, stage is unchanged.
# Re-provisioning is internal because the scheduler reclaims a slot for an
# item whose recorded worktree vanished from disk.
TRANSITIONS = [
    {"trigger": "record_issue", "source": "intake", "dest": "issued", "before": "_apply_issue"},

    {"trigger": "link_branch", "source": "issued", "dest": "branched", "before": "_apply_branch"},

    {"trigger": "provision", "source": ["issued", "branched"], "dest": "provisioned", "before": "_apply_worktree"},
    {"trigger": "provision", "source": ["provisioned", "pr_open"], "dest": None, "before": "_apply_worktree"},

    {"trigger": "open_pr", "source": "provisioned", "dest": "pr_open", "before": "_apply_pr"},
    {"trigger": "open_pr", "source": "pr_open", "dest": None, "before": "_apply_pr"},
]


class InvalidTransition(Exception):
    """Raised when a trigger is not allowed from the item's current stage."""

    def __init__(self, item_id: str, stage: str, trigger: str):
        self.item_id = item_id
        self.stage = stage
        self.trigger = trigger
        super().__init__(f"Invalid transition for {item_id}: '{trigger}' not allowed from '{stage}'")


def derive_stage(item: BacklogItem) -> str:
    """Stage implied by the furthest stage marker that is set."""
    if item.pr_url:
        return "pr_open"
    if item.worktree_path:
        return "provisioned"
    if item.branch:
        return "branched"
    if item.created_issue_number is not None:
        return "issued"
    return "intake"


class ItemLifecycle:
    """State machine wrapping one BacklogItem."""

    def __init__(self, item: BacklogItem):
        self.item = item
        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=derive_stage(item),
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def _apply_issue(self, event) -> None:
        self.item.created_issue_number = event.kwargs["number"]
        self.item.created_issue_url = event.kwargs["url"]

    def _apply_branch(self, event) -> None:
        self.item.branch = event.kwargs["branch"]

    def _apply_worktree(self, event) -> None:
        # Branch names are never regenerated; only fill a missing one
        if self.item.branch is None:
            self.item.branch = event.kwargs["branch"]
        self.item.worktree_path = event.kwargs["worktree_path"]

    def _apply_pr(self, event) -> None:
        self.item.pr_url = event.kwargs["url"]

    def on_state_change(self, event) -> None:
        source = event.transition.source
        dest = event.transition.dest or source
        logger.info(f"[lifecycle] {self.item.id}: {source} -> {dest} ({event.event.name})")

    def fire(self, trigger: str, **kwargs) -> None:
        """Run a trigger by name, raising InvalidTransition when disallowed."""
        try:
            self.trigger(trigger, **kwargs)
        except MachineError:
            raise InvalidTransition(self.item.id, self.state, trigger) from None

    def can(self, trigger: str) -> bool:
        return trigger in self.machine.get_triggers(self.state)
