"""
Backlog state file operations.

The state file is read in full and written in full on every invocation.
Writes go to a temp file in the same directory followed by os.replace, so a
reader always sees either the previous or the new complete document.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from specflow.backlog.models import BacklogState
from specflow.lib.errors import StateFileNotFound
from specflow.lib.locking import state_lock, DEFAULT_LOCK_TIMEOUT
from specflow.lib.validate import ValidationError, validate, validate_before_write

logger = logging.getLogger(__name__)

SCHEMA_NAME = "backlog"


def load_state(state_file: Path) -> BacklogState:
    """Load and validate the backlog state.

    Raises:
        StateFileNotFound: if the file does not exist
        ValidationError: if the file is not valid JSON or violates the schema
    """
    if not state_file.exists():
        raise StateFileNotFound(f"State file not found: {state_file}")

    try:
        data = json.loads(state_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(SCHEMA_NAME, f"Invalid JSON in {state_file}: {e}") from None

    validate(data, SCHEMA_NAME)
    return BacklogState.from_dict(data)


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path via temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_state(state_file: Path, state: BacklogState) -> None:
    """Validate and atomically write the backlog state."""
    data = state.to_dict()
    validate_before_write(data, SCHEMA_NAME, state_file)
    atomic_write_text(state_file, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    logger.debug(f"Saved {len(state.items)} items to {state_file}")


@contextmanager
def open_state(state_file: Path, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Iterator[BacklogState]:
    """Lock, load, yield for mutation, then save.

    The state is saved even when the body raises, so that stage markers
    recorded before a fatal error are kept and a rerun resumes from there.
    """
    with state_lock(state_file, timeout):
        state = load_state(state_file)
        try:
            yield state
        finally:
            save_state(state_file, state)
