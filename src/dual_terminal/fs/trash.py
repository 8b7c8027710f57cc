"""
Soft-delete capability.

``/rm`` and ``/rmdir`` never erase content: they move it to a location the
operator can recover it from. Each implementation is a callable taking the
path to delete and returning where it went, raising :class:`SoftDeleteError`
when the move is not possible.
"""

import logging
import os
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from dual_terminal.core.config import WorkspaceSettings
from dual_terminal.core.errors import SoftDeleteError

log = logging.getLogger(__name__)


class SoftDelete(ABC):
    """Move a file or directory to a recoverable location."""

    @abstractmethod
    def __call__(self, path: Path) -> Path:
        """Soft-delete ``path`` and return its recoverable location."""


def _unique_destination(directory: Path, name: str) -> Path:
    candidate = directory / name
    counter = 1
    while candidate.exists() or candidate.is_symlink():
        candidate = directory / f"{name}.{counter}"
        counter += 1
    return candidate


class DirectoryTrash(SoftDelete):
    """Move deleted entries into a plain directory.

    Clashing names get a numeric suffix (``a.txt``, ``a.txt.1``, ...).
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _destination(self, path: Path) -> Path:
        return _unique_destination(self.directory, path.name)

    def __call__(self, path: Path) -> Path:
        path = Path(path)
        if not path.exists() and not path.is_symlink():
            raise SoftDeleteError(f"Not found: {path}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            destination = self._destination(path)
            shutil.move(str(path), str(destination))
        except OSError as exc:
            raise SoftDeleteError(f"Could not move {path} to trash: {exc}") from exc
        log.info("Soft-deleted %s -> %s", path, destination)
        return destination


class FreedesktopTrash(DirectoryTrash):
    """The XDG trash used by Linux desktops (``~/.local/share/Trash``).

    Alongside each entry in ``files/`` a ``.trashinfo`` record in ``info/``
    stores the original path so file managers can restore it.
    """

    def __init__(self, home: Optional[Path] = None):
        if home is None:
            data_home = os.getenv("XDG_DATA_HOME") or str(
                Path.home() / ".local" / "share"
            )
            home = Path(data_home) / "Trash"
        self.home = Path(home)
        super().__init__(self.home / "files")

    def __call__(self, path: Path) -> Path:
        path = Path(path)
        original = Path(os.path.abspath(path))
        destination = super().__call__(path)
        info_dir = self.home / "info"
        try:
            info_dir.mkdir(parents=True, exist_ok=True)
            (info_dir / f"{destination.name}.trashinfo").write_text(
                "[Trash Info]\n"
                f"Path={quote(str(original))}\n"
                f"DeletionDate={datetime.now().strftime('%Y-%m-%dT%H:%M:%S')}\n",
                encoding="utf-8",
            )
        except OSError as exc:
            log.warning("Could not write trash info for %s: %s", destination, exc)
        return destination


class MacTrash(DirectoryTrash):
    """The per-user macOS trash (``~/.Trash``)."""

    def __init__(self, directory: Optional[Path] = None):
        super().__init__(directory or Path.home() / ".Trash")


class WindowsRecycleBin(SoftDelete):
    """Send entries to the Windows Recycle Bin through PowerShell."""

    def __init__(self, executable: str = "powershell"):
        self.executable = executable

    def __call__(self, path: Path) -> Path:
        path = Path(path)
        if path.is_dir():
            method = "DeleteDirectory"
        elif path.exists():
            method = "DeleteFile"
        else:
            raise SoftDeleteError(f"Not found: {path}")

        escaped = str(path).replace("'", "''")
        script = (
            "Add-Type -AssemblyName Microsoft.VisualBasic; "
            f"[Microsoft.VisualBasic.FileIO.FileSystem]::{method}("
            f"'{escaped}', 'OnlyErrorDialogs', 'SendToRecycleBin')"
        )
        try:
            proc = subprocess.run(
                [self.executable, "-NoProfile", "-Command", script],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise SoftDeleteError(f"Recycle Bin unavailable: {exc}") from exc
        if proc.returncode != 0:
            raise SoftDeleteError(
                f"Recycle Bin move failed: {(proc.stderr or proc.stdout).strip()}"
            )
        log.info("Sent %s to the Recycle Bin", path)
        return Path("$Recycle.Bin") / path.name


class UnsupportedTrash(SoftDelete):
    """Fails loudly on platforms without a known trash location."""

    def __init__(self, system: str):
        self.system = system

    def __call__(self, path: Path) -> Path:
        raise SoftDeleteError(
            f"Soft-delete is not supported on {self.system or 'this platform'}; "
            "set TRASH_DIR to enable it"
        )


def create_soft_delete(
    settings: WorkspaceSettings, system: Optional[str] = None
) -> SoftDelete:
    """Pick the soft-delete implementation for this machine.

    Args:
        settings: Workspace settings; a configured ``trash_dir`` wins.
        system: Platform name override (defaults to ``platform.system()``).
    """
    if settings.trash_dir is not None:
        return DirectoryTrash(settings.trash_dir)

    system = platform.system() if system is None else system
    if system == "Windows":
        return WindowsRecycleBin()
    if system == "Darwin":
        return MacTrash()
    if system == "Linux" or system.endswith("BSD"):
        return FreedesktopTrash()
    return UnsupportedTrash(system)
