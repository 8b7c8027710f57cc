from __future__ import annotations

import pytest

from dual_terminal.actions.models import ExecutionReport, FileWrite, Operation
from dual_terminal.actions.queue import AlreadyPendingError, PendingActionQueue


def _batch():
    return [
        FileWrite(name="a.txt", content="a"),
        Operation(command="/cd site"),
        FileWrite(name="b.txt", content="b"),
        Operation(command="/mkdir assets"),
    ]


def test_stage_orders_operations_before_file_writes() -> None:
    queue = PendingActionQueue()

    records = queue.stage(_batch())

    assert records == [
        {"type": "operation", "command": "/cd site"},
        {"type": "operation", "command": "/mkdir assets"},
        {"type": "file", "name": "a.txt", "content": "a"},
        {"type": "file", "name": "b.txt", "content": "b"},
    ]
    assert queue.is_pending


def test_second_stage_fails_until_resolved() -> None:
    queue = PendingActionQueue()
    queue.stage(_batch())

    with pytest.raises(AlreadyPendingError):
        queue.stage([Operation(command="/ls")])

    queue.resolve("reject", lambda batch: pytest.fail("must not execute"))
    queue.stage([Operation(command="/ls")])
    assert queue.is_pending


def test_reject_discards_batch_without_executing() -> None:
    queue = PendingActionQueue()
    queue.stage(_batch())

    report = queue.resolve("reject", lambda batch: pytest.fail("must not execute"))

    assert report.approved is False
    assert report.files_written == 0
    assert report.operations_run == 0
    assert not queue.is_pending


def test_approve_hands_ordered_batch_to_executor() -> None:
    queue = PendingActionQueue()
    queue.stage(_batch())
    seen = []

    def execute(batch):
        seen.extend(batch)
        return ExecutionReport(files_written=2, operations_run=2)

    report = queue.resolve("approve", execute)

    assert [a.type for a in seen] == ["operation", "operation", "file", "file"]
    assert report.files_written == 2
    assert not queue.is_pending


def test_decision_without_pending_batch_is_a_warning() -> None:
    queue = PendingActionQueue()

    report = queue.resolve("approve", lambda batch: pytest.fail("must not execute"))

    assert [o.status for o in report.outcomes] == ["warning"]
    assert report.files_written == 0
    assert report.operations_run == 0


def test_pending_is_cleared_even_when_execution_raises() -> None:
    queue = PendingActionQueue()
    queue.stage(_batch())

    def explode(batch):
        raise RuntimeError("crash mid-batch")

    with pytest.raises(RuntimeError):
        queue.resolve("approve", explode)

    assert not queue.is_pending


def test_empty_batch_cannot_be_staged() -> None:
    with pytest.raises(ValueError):
        PendingActionQueue().stage([])
