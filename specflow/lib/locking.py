"""
Lock management for the backlog state file.

Uses flock on a sibling `<state>.lock` file so that two invocations of the
CLI cannot interleave their load-mutate-save cycles.
"""

import fcntl
import os
import sys
import time
import signal
import atexit
from pathlib import Path
from contextlib import contextmanager

DEFAULT_LOCK_TIMEOUT = 5


class LockTimeout(Exception):
    """Lock acquisition timed out."""
    pass


def lock_path_for(state_file: Path) -> Path:
    return state_file.with_name(state_file.name + ".lock")


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str):
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
        lock_name: Human-readable name for error messages

    Lock files are never deleted: unlinking one while another process waits
    on it would let two processes hold "exclusive" locks on different inodes.
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    fd = open(lock_file, 'w')
    start = time.monotonic()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.monotonic() - start >= timeout:
                fd.close()
                raise LockTimeout(
                    f"Could not acquire {lock_name} within {timeout}s "
                    f"(another specflow command is running?)"
                )
            time.sleep(0.2)

    def cleanup():
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
            fd.close()
        except (OSError, ValueError):
            pass

    atexit.register(cleanup)
    original_sigterm = signal.signal(signal.SIGTERM, lambda *_: sys.exit(1))

    try:
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        atexit.unregister(cleanup)
        signal.signal(signal.SIGTERM, original_sigterm)
        cleanup()


@contextmanager
def state_lock(state_file: Path, timeout: float = DEFAULT_LOCK_TIMEOUT):
    """
    Acquire the lock guarding state_file, yield, release on exit.

    Raises:
        LockTimeout: if another process holds the lock past timeout
    """
    with _acquire_lock(lock_path_for(state_file), timeout, f"lock on {state_file.name}"):
        yield
