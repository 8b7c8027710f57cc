"""
Dispatcher for slash commands typed by the operator.

Unlike model-proposed operations, these run immediately: the operator is the
one issuing them. Mutating verbs share the executor's code path; the
read-only verbs (``/pwd``, ``/ls``, ``/cat``, ``/find``, ``/tree``,
``/echo``, ``/clear``, ``/help``) are implemented here. Every command yields
exactly one :class:`Outcome`; nothing raises to the caller.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Set

from dual_terminal.actions.executor import (
    OPERATION_VERBS,
    VERB_ALIASES,
    ActionExecutor,
    VerbSpec,
)
from dual_terminal.actions.models import Operation, Outcome
from dual_terminal.core.errors import ActionFailed, UsageError
from dual_terminal.core.state import SessionState

log = logging.getLogger(__name__)

INSPECT_VERBS: Dict[str, VerbSpec] = {
    "/pwd": VerbSpec("/pwd", "Show current directory"),
    "/ls": VerbSpec("/ls", "List files and folders"),
    "/tree": VerbSpec("/tree", "Show directory tree"),
    "/cat": VerbSpec("/cat <file>", "View file contents"),
    "/find": VerbSpec("/find <pattern>", "Search for files by name"),
    "/echo": VerbSpec("/echo <text>", "Print text"),
    "/clear": VerbSpec("/clear", "Clear screen"),
    "/help": VerbSpec("/help", "Show this help"),
}

SESSION_VERBS: Dict[str, VerbSpec] = {
    "/mode": VerbSpec("/mode <chat|agent>", "Switch conversation mode"),
    "/cancel": VerbSpec("/cancel", "Ask the model server to stop"),
}

INSPECT_ALIASES: Dict[str, str] = {
    "/files": "/ls",
    "/view": "/cat",
    "/search": "/find",
    "/cls": "/clear",
    "/?": "/help",
}

Handler = Callable[[List[str], str, SessionState], Outcome]


class CommandDispatcher:
    """Interpret operator slash commands against a session's state.

    Args:
        executor: Executor whose operation handlers run the mutating verbs.
        excluded_dirs: Directory names ``/tree`` lists but does not enter.
    """

    def __init__(self, executor: ActionExecutor, excluded_dirs: Iterable[str] = ()):
        self.executor = executor
        self.excluded_dirs: Set[str] = set(excluded_dirs)
        self._handlers: Dict[str, Handler] = {
            "/pwd": self._pwd,
            "/ls": self._ls,
            "/tree": self._tree,
            "/cat": self._cat,
            "/find": self._find,
            "/echo": self._echo,
            "/clear": self._clear,
            "/help": self._help,
        }

    def dispatch(self, line: str, state: SessionState) -> Outcome:
        """Run one command line and return its outcome.

        Args:
            line: Raw command line, e.g. ``"/cat index.html"``.
            state: The issuing session's state.
        """
        line = line.strip()
        parts = line.split()
        if not parts or not line.startswith("/"):
            return Outcome(
                status="warning",
                message="Commands start with '/'. Type /help for available commands.",
                action=line,
            )

        verb = parts[0].lower()
        if self.executor.handles(verb):
            return self.executor.run_operation(Operation(command=line), state)

        verb = INSPECT_ALIASES.get(verb, verb)
        handler = self._handlers.get(verb)
        if handler is None:
            return Outcome(
                status="warning",
                message=f"Unknown command: {parts[0]}\nType /help for available commands",
                action=line,
            )

        rest = line[len(parts[0]) :].strip()
        try:
            return handler(parts[1:], rest, state)
        except UsageError as exc:
            return Outcome(status="warning", message=str(exc), action=line)
        except ActionFailed as exc:
            return Outcome(status="failed", message=str(exc), action=line)
        except OSError as exc:
            log.warning("Command %s failed: %s", line, exc)
            return Outcome(status="failed", message=f"Error: {exc}", action=line)

    # -- read-only verbs --------------------------------------------------

    def _pwd(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        return Outcome(status="info", message=str(state.working_directory), action="/pwd")

    def _ls(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        cwd = state.working_directory
        lines = [f"Files in {cwd.name or cwd}"]
        entries = self._sorted_entries(cwd)
        lines.extend(self._label(entry) for entry in entries)
        if not entries:
            lines.append("(empty)")
        return Outcome(status="info", message="\n".join(lines), action="/ls")

    def _cat(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        if not rest:
            raise UsageError(INSPECT_VERBS["/cat"].usage)
        path = self.executor.resolver.resolve(state.working_directory, rest)
        if not path.is_file():
            raise ActionFailed(f"File not found: {rest}")
        content = path.read_text(encoding="utf-8", errors="replace")
        return Outcome(status="info", message=content, action=f"/cat {rest}")

    def _find(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        if not rest:
            raise UsageError(INSPECT_VERBS["/find"].usage)
        pattern = rest.lower()
        matches = [
            entry
            for entry in self._sorted_entries(state.working_directory)
            if pattern in entry.name.lower()
        ]
        lines = [f'Search results for "{pattern}"']
        lines.extend(self._label(entry) for entry in matches)
        if not matches:
            lines.append("No matches found")
        return Outcome(status="info", message="\n".join(lines), action=f"/find {rest}")

    def _tree(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        root = state.working_directory
        lines = [f"{root.name or root}/"]
        self._walk(root, "", {os.path.realpath(root)}, lines)
        return Outcome(status="info", message="\n".join(lines), action="/tree")

    def _walk(
        self, directory: Path, prefix: str, ancestors: Set[str], lines: List[str]
    ) -> None:
        try:
            entries = self._sorted_entries(directory)
        except OSError as exc:
            lines.append(f"{prefix}└── [unreadable: {exc.strerror or exc}]")
            return

        for index, entry in enumerate(entries):
            last = index == len(entries) - 1
            branch = "└── " if last else "├── "
            if not entry.is_dir():
                lines.append(f"{prefix}{branch}{entry.name}")
                continue

            real = os.path.realpath(entry)
            if real in ancestors:
                # Symlink loop back onto the current path.
                lines.append(f"{prefix}{branch}{entry.name}/ [cycle]")
                continue
            lines.append(f"{prefix}{branch}{entry.name}/")
            if entry.name in self.excluded_dirs:
                continue
            child_prefix = prefix + ("    " if last else "│   ")
            self._walk(entry, child_prefix, ancestors | {real}, lines)

    def _echo(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        return Outcome(status="info", message=rest, action="/echo")

    def _clear(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        return Outcome(status="clear", action="/clear")

    def _help(self, args: List[str], rest: str, state: SessionState) -> Outcome:
        return Outcome(status="info", message=self.help_text(), action="/help")

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def help_text() -> str:
        sections = [
            ("Navigation", ["/pwd", "/ls", "/cd", "/tree"]),
            ("Files", ["/cat", "/touch", "/cp", "/mv", "/rm"]),
            ("Directories", ["/mkdir", "/rmdir"]),
            ("Utility", ["/find", "/echo", "/clear", "/help"]),
            ("Session", ["/mode", "/cancel"]),
        ]
        specs = {**OPERATION_VERBS, **INSPECT_VERBS, **SESSION_VERBS}
        width = max(len(spec.usage) for spec in specs.values()) + 2
        lines = ["Available commands"]
        for title, verbs in sections:
            lines.append("")
            lines.append(f"{title}:")
            for verb in verbs:
                spec = specs[verb]
                lines.append(f"  {spec.usage.ljust(width)}{spec.description}")
        aliases = {**VERB_ALIASES, **INSPECT_ALIASES}
        lines.append("")
        lines.append(
            "Aliases: " + ", ".join(f"{a} = {v}" for a, v in sorted(aliases.items()))
        )
        return "\n".join(lines)

    @staticmethod
    def _sorted_entries(directory: Path) -> List[Path]:
        entries = list(directory.iterdir())
        return sorted(entries, key=lambda p: (not p.is_dir(), p.name.lower()))

    @staticmethod
    def _label(entry: Path) -> str:
        return f"{entry.name}/" if entry.is_dir() else entry.name
