"""
Backlog state: data model, item lifecycle, and the persisted store.
"""

from specflow.backlog.models import BacklogItem, BacklogState
from specflow.backlog.lifecycle import ItemLifecycle, InvalidTransition, derive_stage
from specflow.backlog.store import load_state, save_state, open_state

__all__ = [
    "BacklogItem",
    "BacklogState",
    "ItemLifecycle",
    "InvalidTransition",
    "derive_stage",
    "load_state",
    "save_state",
    "open_state",
]
