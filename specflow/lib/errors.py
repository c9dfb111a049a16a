"""
Error taxonomy for specflow.

Every failure the CLI reports to the operator derives from SpecflowError.
The top-level entrypoint maps each family to an exit code.
"""


class SpecflowError(Exception):
    """Base class for errors surfaced to the operator."""
    exit_code = 1


class PreconditionError(SpecflowError):
    """A stage was invoked on an item that has not reached the required stage."""
    exit_code = 2


class UsageError(SpecflowError):
    """Invalid combination of command-line selectors."""
    exit_code = 2


class StateFileNotFound(SpecflowError):
    """Backlog state file does not exist."""
    exit_code = 2


class ExternalCommandError(SpecflowError):
    """A git or gh primitive exited non-zero (or timed out)."""

    def __init__(self, command: list[str], stderr: str, returncode: int = 1):
        self.command = command
        self.stderr = stderr.strip()
        self.returncode = returncode
        detail = self.stderr or f"exit code {returncode}"
        super().__init__(f"`{' '.join(command)}` failed: {detail}")


class GitCommandError(ExternalCommandError):
    """A git command failed."""


class GitHubCommandError(ExternalCommandError):
    """A gh command failed."""


class TrackerContractError(SpecflowError):
    """The tracker returned a response that does not have the expected shape."""


class AgentLaunchError(SpecflowError):
    """A required agent run did not succeed."""
