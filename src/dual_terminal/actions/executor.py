"""
Sequential executor for approved action batches.

Each action runs to completion before the next one starts. Failures are
isolated per action: every error is caught at the action boundary and turned
into a ``failed`` outcome, and the batch carries on. There is no rollback;
actions already applied stay applied.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from dual_terminal.actions.models import (
    Action,
    ExecutionReport,
    FileWrite,
    Operation,
    Outcome,
)
from dual_terminal.core.errors import ActionFailed, UsageError
from dual_terminal.core.state import SessionState
from dual_terminal.fs.paths import PathResolver
from dual_terminal.fs.trash import SoftDelete

log = logging.getLogger(__name__)

OutcomeSink = Callable[[Outcome], None]


@dataclass(frozen=True)
class VerbSpec:
    """Usage line and help text for one slash verb."""

    usage: str
    description: str


OPERATION_VERBS: Dict[str, VerbSpec] = {
    "/cd": VerbSpec("/cd <dir>", "Change directory"),
    "/mkdir": VerbSpec("/mkdir <name>", "Create directory"),
    "/touch": VerbSpec("/touch <file>", "Create empty file"),
    "/rm": VerbSpec("/rm <file>", "Move file to the trash"),
    "/rmdir": VerbSpec("/rmdir <dir>", "Move directory to the trash"),
    "/cp": VerbSpec("/cp <src> <dst>", "Copy file"),
    "/mv": VerbSpec("/mv <src> <dst>", "Move/rename file"),
}

VERB_ALIASES: Dict[str, str] = {
    "/del": "/rm",
    "/copy": "/cp",
    "/move": "/mv",
    "/rename": "/mv",
}


def canonical_verb(verb: str) -> str:
    verb = verb.lower()
    return VERB_ALIASES.get(verb, verb)


class ActionExecutor:
    """Apply file writes and operations against a session's working directory.

    Args:
        resolver: Resolves paths and enforces the workspace root.
        soft_delete: Capability used by ``/rm`` and ``/rmdir``.
    """

    def __init__(self, resolver: PathResolver, soft_delete: SoftDelete):
        self.resolver = resolver
        self.soft_delete = soft_delete
        self._handlers: Dict[str, Callable[[List[str], SessionState], str]] = {
            "/cd": self._cd,
            "/mkdir": self._mkdir,
            "/touch": self._touch,
            "/rm": self._rm,
            "/rmdir": self._rmdir,
            "/cp": self._cp,
            "/mv": self._mv,
        }

    def handles(self, verb: str) -> bool:
        return canonical_verb(verb) in self._handlers

    def run(
        self,
        batch: Sequence[Action],
        state: SessionState,
        on_outcome: Optional[OutcomeSink] = None,
    ) -> ExecutionReport:
        """Execute ``batch`` strictly in order.

        Args:
            batch: Actions in execution order.
            state: Session state; ``/cd`` updates its working directory.
            on_outcome: Optional callback receiving each outcome as it happens.

        Returns:
            ExecutionReport: per-action outcomes and success counts.
        """
        report = ExecutionReport()
        for action in batch:
            if isinstance(action, FileWrite):
                outcome = self.write_file(action, state)
                if outcome.succeeded:
                    report.files_written += 1
            else:
                outcome = self.run_operation(action, state)
                if outcome.succeeded:
                    report.operations_run += 1
            report.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        log.info(
            "Batch finished: %d file(s), %d operation(s), %d action(s)",
            report.files_written,
            report.operations_run,
            len(batch),
        )
        return report

    def write_file(self, action: FileWrite, state: SessionState) -> Outcome:
        """Create or truncate ``action.name`` with ``action.content``."""
        try:
            target = self.resolver.resolve(state.working_directory, action.name)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(action.content, encoding="utf-8")
        except ActionFailed as exc:
            return self._failed(f"FILE: {action.name}", str(exc))
        except OSError as exc:
            return self._failed(
                f"FILE: {action.name}", f"Could not save {action.name}: {exc}"
            )
        except Exception as exc:
            log.exception("Unexpected error saving %s", action.name)
            return self._failed(
                f"FILE: {action.name}", f"Could not save {action.name}: {exc}"
            )
        log.info("Saved %s (%d chars)", target, len(action.content))
        return Outcome(
            status="ok", message=f"SAVED: {action.name}", action=f"FILE: {action.name}"
        )

    def run_operation(self, operation: Operation, state: SessionState) -> Outcome:
        """Run one slash operation, converting every error into an outcome."""
        verb = canonical_verb(operation.verb)
        handler = self._handlers.get(verb)
        if handler is None:
            log.warning("Unknown operation: %s", operation.command)
            return Outcome(
                status="warning",
                message=f"Unknown operation: {operation.command}",
                action=operation.command,
            )

        try:
            message = handler(operation.args, state)
        except UsageError as exc:
            return Outcome(status="warning", message=str(exc), action=operation.command)
        except ActionFailed as exc:
            return self._failed(operation.command, str(exc))
        except OSError as exc:
            return self._failed(
                operation.command, f"Error executing {operation.command}: {exc}"
            )
        except Exception as exc:
            log.exception("Unexpected error executing %s", operation.command)
            return self._failed(
                operation.command, f"Error executing {operation.command}: {exc}"
            )

        log.info("Executed %s", operation.command)
        return Outcome(status="ok", message=message, action=operation.command)

    def _failed(self, action: str, message: str) -> Outcome:
        log.warning("Action failed: %s (%s)", action, message)
        return Outcome(status="failed", message=message, action=action)

    # -- argument helpers -------------------------------------------------

    @staticmethod
    def _single(args: List[str], verb: str) -> str:
        if not args:
            raise UsageError(OPERATION_VERBS[verb].usage)
        return " ".join(args)

    @staticmethod
    def _pair(args: List[str], verb: str) -> tuple[str, str]:
        if len(args) < 2:
            raise UsageError(OPERATION_VERBS[verb].usage)
        return args[0], args[1]

    def _resolve(self, state: SessionState, raw: str) -> Path:
        return self.resolver.resolve(state.working_directory, raw)

    # -- verbs ------------------------------------------------------------

    def _cd(self, args: List[str], state: SessionState) -> str:
        name = self._single(args, "/cd")
        if name == "..":
            target = self.resolver.parent(state.working_directory)
            if target == state.working_directory:
                return "already at workspace root"
        else:
            target = self._resolve(state, name)
        if not target.is_dir():
            raise ActionFailed(f"Directory not found: {name}")
        state.working_directory = target
        return f"Changed to: {target}"

    def _mkdir(self, args: List[str], state: SessionState) -> str:
        name = self._single(args, "/mkdir")
        self._resolve(state, name).mkdir(parents=True, exist_ok=True)
        return f"Created directory: {name}"

    def _touch(self, args: List[str], state: SessionState) -> str:
        name = self._single(args, "/touch")
        self._resolve(state, name).write_text("", encoding="utf-8")
        return f"Created: {name}"

    def _rm(self, args: List[str], state: SessionState) -> str:
        name = self._single(args, "/rm")
        target = self._resolve(state, name)
        if not target.is_file():
            raise ActionFailed(f"File not found: {name}")
        self.soft_delete(target)
        return f"Moved to trash: {name}"

    def _rmdir(self, args: List[str], state: SessionState) -> str:
        name = self._single(args, "/rmdir")
        target = self._resolve(state, name)
        if not target.is_dir():
            raise ActionFailed(f"Directory not found: {name}")
        if self.resolver.is_root(target):
            raise ActionFailed("Cannot remove the workspace root")
        try:
            state.working_directory.relative_to(target)
        except ValueError:
            pass
        else:
            raise ActionFailed(f"Cannot remove the current working directory: {name}")
        self.soft_delete(target)
        return f"Moved to trash: {name}"

    def _cp(self, args: List[str], state: SessionState) -> str:
        src_name, dst_name = self._pair(args, "/cp")
        source = self._resolve(state, src_name)
        dest = self._resolve(state, dst_name)
        if not source.is_file():
            raise ActionFailed(f"Source file not found: {src_name}")
        shutil.copy2(source, dest)
        return f"Copied: {src_name} -> {dst_name}"

    def _mv(self, args: List[str], state: SessionState) -> str:
        src_name, dst_name = self._pair(args, "/mv")
        source = self._resolve(state, src_name)
        dest = self._resolve(state, dst_name)
        if not source.exists():
            raise ActionFailed(f"Source not found: {src_name}")
        shutil.move(str(source), str(dest))
        return f"Moved: {src_name} -> {dst_name}"
