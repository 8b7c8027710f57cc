"""
Exceptions raised while carrying out actions and commands.

None of these escape a session: the executor and dispatcher convert them to
``failed`` outcomes at the action boundary.
"""

from pathlib import Path


class ActionFailed(Exception):
    """A single action or command could not be carried out.

    The message is shown to the operator as the action's outcome.
    """


class PathOutsideRootError(ActionFailed):
    """Raised when a path resolves outside the workspace root."""

    def __init__(self, path: Path, root: Path):
        super().__init__(f"'{path}' is outside the workspace root '{root}'")
        self.path = path
        self.root = root


class SoftDeleteError(ActionFailed):
    """Raised when a path cannot be moved to a recoverable location."""


class UsageError(ActionFailed):
    """Raised when a command is missing arguments; reported as a usage hint."""

    def __init__(self, usage: str):
        super().__init__(f"Usage: {usage}")
        self.usage = usage
