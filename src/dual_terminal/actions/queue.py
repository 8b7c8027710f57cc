"""
Pending-action queue and approval gate.

A session holds at most one staged batch. ``stage`` moves the queue from
empty to staged; ``resolve`` always moves it back to empty, handing the batch
to the executor on approval and discarding it on rejection.
"""

import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

from dual_terminal.actions.models import (
    Action,
    ExecutionReport,
    FileWrite,
    Operation,
    Outcome,
)

log = logging.getLogger(__name__)

Decision = Literal["approve", "reject"]


class AlreadyPendingError(Exception):
    """Raised when a batch is staged while another one awaits a decision."""

    def __init__(self, pending: int):
        super().__init__(
            f"A batch of {pending} action(s) is already awaiting approval."
        )
        self.pending = pending


def order_batch(actions: Sequence[Action]) -> List[Action]:
    """Return operations first, then file writes, each kind in found order.

    Navigation such as ``/cd`` must take effect before files are written.
    """
    operations = [a for a in actions if isinstance(a, Operation)]
    files = [a for a in actions if isinstance(a, FileWrite)]
    return [*operations, *files]


class PendingActionQueue:
    """Holds the single unapproved batch of one session."""

    def __init__(self) -> None:
        self._batch: Optional[List[Action]] = None

    @property
    def is_pending(self) -> bool:
        return self._batch is not None

    @property
    def batch(self) -> List[Action]:
        """A copy of the staged batch (empty when nothing is pending)."""
        return list(self._batch or [])

    def stage(self, actions: Sequence[Action]) -> List[Dict[str, Any]]:
        """Stage a batch for approval.

        Args:
            actions: Actions in parse order.

        Returns:
            The ordered approval records for the UI, one per action.

        Raises:
            AlreadyPendingError: If a batch is already staged.
            ValueError: If ``actions`` is empty.
        """
        if self._batch is not None:
            raise AlreadyPendingError(len(self._batch))
        if not actions:
            raise ValueError("cannot stage an empty batch")
        self._batch = order_batch(actions)
        log.info("Staged batch of %d action(s) for approval", len(self._batch))
        return [action.model_dump() for action in self._batch]

    def resolve(
        self,
        decision: Decision,
        execute: Callable[[List[Action]], ExecutionReport],
    ) -> ExecutionReport:
        """Apply the human decision to the staged batch.

        Args:
            decision: ``"approve"`` or ``"reject"``.
            execute: Called with the batch when approved.

        Returns:
            ExecutionReport: the executor's report on approval; a zero-count
            report on rejection; a report carrying a single warning when
            nothing was pending.
        """
        if self._batch is None:
            log.warning("Decision '%s' received with no pending batch", decision)
            return ExecutionReport(
                approved=decision == "approve",
                outcomes=[
                    Outcome(
                        status="warning",
                        message="No actions are awaiting approval.",
                    )
                ],
            )

        batch, self._batch = self._batch, None
        if decision != "approve":
            log.info("Rejected batch of %d action(s)", len(batch))
            return ExecutionReport(approved=False)

        log.info("Approved batch of %d action(s)", len(batch))
        return execute(batch)
