"""
Path resolution against a session's working directory.

All relative paths typed by the operator or proposed by the model resolve
against the session's current working directory. When the root jail is
enforced, a resolved path must stay inside the workspace root.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dual_terminal.core.errors import PathOutsideRootError


@dataclass(frozen=True)
class PathResolver:
    """Resolve user-supplied paths for one workspace root.

    Attributes:
        root: Workspace root; floor for ``cd ..`` when the jail is enforced.
        enforce_root_jail: If true, reject paths that leave ``root``.
    """

    root: Path
    enforce_root_jail: bool = True

    def _within_root(self, path: Path) -> bool:
        """Check if ``path`` is within the configured root (symlinks followed)."""
        if not self.enforce_root_jail:
            return True
        real_root = os.path.realpath(self.root)
        real_path = os.path.realpath(path)
        return os.path.commonpath([real_root, real_path]) == real_root

    def resolve(self, cwd: Path, raw: str) -> Path:
        """Resolve ``raw`` against ``cwd``.

        Args:
            cwd: The session's current working directory.
            raw: A relative or absolute path.

        Returns:
            Path: lexically normalised absolute path.

        Raises:
            PathOutsideRootError: If the jail is enforced and the path leaves the root.
        """
        target = Path(os.path.normpath(os.path.join(cwd, raw.strip())))
        if not self._within_root(target):
            raise PathOutsideRootError(target, self.root)
        return target

    def parent(self, cwd: Path) -> Path:
        """Return the parent of ``cwd`` (the ``cd ..`` target).

        At the workspace root with the jail enforced the root itself is
        returned; at the filesystem root the filesystem root is returned.
        """
        if self.enforce_root_jail and self.is_root(cwd):
            return Path(cwd)
        parent = Path(os.path.dirname(os.path.normpath(cwd)))
        if not self._within_root(parent):
            return Path(self.root)
        return parent

    def is_root(self, cwd: Path) -> bool:
        return os.path.realpath(cwd) == os.path.realpath(self.root)

    def display(self, path: Path) -> str:
        """Render ``path`` relative to the root when possible."""
        try:
            relative = Path(path).relative_to(self.root)
        except ValueError:
            return str(path)
        return str(relative) if str(relative) != "." else "."
