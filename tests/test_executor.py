from __future__ import annotations

from pathlib import Path

from dual_terminal.actions.executor import ActionExecutor
from dual_terminal.actions.models import FileWrite, Operation
from dual_terminal.actions.queue import order_batch
from dual_terminal.core.errors import SoftDeleteError
from dual_terminal.core.state import SessionState
from dual_terminal.fs.trash import SoftDelete


def op(command: str) -> Operation:
    return Operation(command=command)


def test_file_write_creates_file(executor: ActionExecutor, state, workspace: Path) -> None:
    report = executor.run([FileWrite(name="calc.html", content="<html></html>")], state)

    assert report.files_written == 1
    assert report.operations_run == 0
    assert (workspace / "calc.html").read_text(encoding="utf-8") == "<html></html>"
    assert [o.status for o in report.outcomes] == ["ok"]


def test_cd_then_write_lands_in_new_directory(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    (workspace / "site").mkdir()
    batch = order_batch(
        [FileWrite(name="index.html", content="<h1>hi</h1>"), op("/cd site")]
    )

    report = executor.run(batch, state)

    assert (workspace / "site" / "index.html").read_text(encoding="utf-8") == "<h1>hi</h1>"
    assert not (workspace / "index.html").exists()
    assert state.working_directory == workspace / "site"
    assert report.files_written == 1
    assert report.operations_run == 1


def test_cd_to_missing_directory_fails_and_keeps_cwd(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    report = executor.run([op("/cd nope")], state)

    assert [o.status for o in report.outcomes] == ["failed"]
    assert "Directory not found" in report.outcomes[0].message
    assert report.operations_run == 0
    assert state.working_directory == workspace


def test_cd_parent_is_floored_at_root(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    (workspace / "a").mkdir()

    report = executor.run([op("/cd a"), op("/cd .."), op("/cd ..")], state)

    assert [o.status for o in report.outcomes] == ["ok", "ok", "ok"]
    assert state.working_directory == workspace
    assert report.outcomes[2].message == "already at workspace root"


def test_cd_outside_root_is_rejected(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    report = executor.run([op("/cd ../..")], state)

    assert report.outcomes[0].status == "failed"
    assert "outside the workspace root" in report.outcomes[0].message
    assert state.working_directory == workspace


def test_failure_does_not_abort_remaining_actions(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    batch = [
        op("/cp missing.txt copy.txt"),
        op("/frobnicate now"),
        op("/mkdir build/out"),
        FileWrite(name="../outside.txt", content="x"),
        FileWrite(name="ok.txt", content="fine"),
    ]

    report = executor.run(batch, state)

    assert [o.status for o in report.outcomes] == [
        "failed",
        "warning",
        "ok",
        "failed",
        "ok",
    ]
    assert (workspace / "build" / "out").is_dir()
    assert (workspace / "ok.txt").exists()
    assert report.operations_run == 1
    assert report.files_written == 1


def test_outcomes_are_streamed_in_execution_order(
    executor: ActionExecutor, state: SessionState
) -> None:
    streamed = []

    executor.run([op("/mkdir a"), op("/touch a/b.txt")], state, on_outcome=streamed.append)

    assert [o.action for o in streamed] == ["/mkdir a", "/touch a/b.txt"]


def test_later_write_wins(executor: ActionExecutor, state, workspace: Path) -> None:
    executor.run(
        [FileWrite(name="a.txt", content="first"), FileWrite(name="a.txt", content="second")],
        state,
    )

    assert (workspace / "a.txt").read_text(encoding="utf-8") == "second"


def test_touch_truncates(executor: ActionExecutor, state, workspace: Path) -> None:
    (workspace / "log.txt").write_text("old", encoding="utf-8")

    executor.run([op("/touch log.txt")], state)

    assert (workspace / "log.txt").read_text(encoding="utf-8") == ""


def test_rm_moves_file_to_trash(executor: ActionExecutor, state, workspace: Path, trash) -> None:
    (workspace / "old.txt").write_text("bye", encoding="utf-8")

    report = executor.run([op("/rm old.txt")], state)

    assert report.outcomes[0].status == "ok"
    assert not (workspace / "old.txt").exists()
    assert (trash.directory / "old.txt").read_text(encoding="utf-8") == "bye"


def test_rm_missing_file_fails(executor: ActionExecutor, state) -> None:
    report = executor.run([op("/rm ghost.txt"), op("/rm")], state)

    assert [o.status for o in report.outcomes] == ["failed", "warning"]
    assert report.outcomes[1].message.startswith("Usage: /rm")


def test_rmdir_moves_directory_to_trash(
    executor: ActionExecutor, state, workspace: Path, trash
) -> None:
    (workspace / "dist" / "js").mkdir(parents=True)

    report = executor.run([op("/rmdir dist"), op("/rmdir dist")], state)

    assert [o.status for o in report.outcomes] == ["ok", "failed"]
    assert (trash.directory / "dist" / "js").is_dir()


def test_rmdir_refuses_current_directory(
    executor: ActionExecutor, state: SessionState, workspace: Path
) -> None:
    (workspace / "site").mkdir()
    state.working_directory = workspace / "site"

    report = executor.run([op("/rmdir ../site"), op("/rmdir ..")], state)

    assert [o.status for o in report.outcomes] == ["failed", "failed"]
    assert (workspace / "site").is_dir()


def test_soft_delete_failure_is_reported(state: SessionState, resolver, workspace: Path) -> None:
    class BrokenTrash(SoftDelete):
        def __call__(self, path: Path) -> Path:
            raise SoftDeleteError("trash unavailable")

    (workspace / "a.txt").write_text("x", encoding="utf-8")
    executor = ActionExecutor(resolver=resolver, soft_delete=BrokenTrash())

    report = executor.run([op("/rm a.txt"), op("/touch b.txt")], state)

    assert [o.status for o in report.outcomes] == ["failed", "ok"]
    assert report.outcomes[0].message == "trash unavailable"
    assert (workspace / "a.txt").exists()


def test_cp_and_mv(executor: ActionExecutor, state, workspace: Path) -> None:
    (workspace / "src.txt").write_text("data", encoding="utf-8")

    report = executor.run(
        [op("/cp src.txt copy.txt"), op("/mv copy.txt moved.txt"), op("/copy src.txt")],
        state,
    )

    assert [o.status for o in report.outcomes] == ["ok", "ok", "warning"]
    assert (workspace / "src.txt").read_text(encoding="utf-8") == "data"
    assert (workspace / "moved.txt").read_text(encoding="utf-8") == "data"
    assert not (workspace / "copy.txt").exists()


def test_names_with_spaces_are_joined(executor: ActionExecutor, state, workspace: Path) -> None:
    executor.run([op("/mkdir my folder")], state)

    assert (workspace / "my folder").is_dir()
