from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from dual_terminal.builder import build_registry, build_session
from dual_terminal.core.config import AppConfig, LLMConfig, WorkspaceSettings
from dual_terminal.fs.trash import DirectoryTrash
from dual_terminal.llm.relay import ModelRelay
from dual_terminal.session import AgentSession


class CountingModel(FakeListChatModel):
    """Fake chat model that records how often it was called."""

    calls: int = 0

    async def ainvoke(self, *args, **kwargs):
        self.calls += 1
        return await super().ainvoke(*args, **kwargs)


class BrokenModel:
    async def ainvoke(self, messages):
        raise ConnectionError("connection refused")


@pytest.fixture
def cfg(workspace: Path, tmp_path: Path) -> AppConfig:
    return AppConfig(
        llm=LLMConfig(cancel_command=None),
        workspace=WorkspaceSettings(root_dir=workspace, trash_dir=tmp_path / "trash"),
    )


def make_session(cfg: AppConfig, model) -> AgentSession:
    relay = ModelRelay(cfg, client_factory=lambda mode: model)
    return build_session(cfg, "s1", relay=relay)


AGENT_REPLY = (
    "<think>The user wants a calculator.</think>"
    "Creating it now.\n"
    "<<<FILE: index.html>>>\n<h1>calc</h1>\n<<<END>>>\n"
    "<<<OPERATION: /cd site>>>\n"
)


def test_chat_mode_returns_plain_reply(cfg: AppConfig) -> None:
    session = make_session(cfg, FakeListChatModel(responses=["<think>hm</think>Hello there"]))

    result = asyncio.run(session.submit("hi"))

    assert result.kind == "reply"
    assert result.text == "Hello there"
    assert result.reasoning == ["hm"]
    assert not session.has_pending


def test_chat_mode_never_stages_directives(cfg: AppConfig) -> None:
    session = make_session(cfg, FakeListChatModel(responses=[AGENT_REPLY]))

    result = asyncio.run(session.submit("build a calculator"))

    assert result.kind == "reply"
    assert not session.has_pending


def test_agent_turn_stages_then_approval_executes(cfg: AppConfig, workspace: Path) -> None:
    (workspace / "site").mkdir()
    session = make_session(cfg, FakeListChatModel(responses=[AGENT_REPLY]))

    async def scenario():
        await session.submit("/mode agent")
        result = await session.submit("build a calculator")
        report = await session.decide(True)
        return result, report

    result, report = asyncio.run(scenario())

    assert result.kind == "approval"
    assert result.text == "Creating it now."
    assert result.reasoning == ["The user wants a calculator."]
    assert result.approval_request == [
        {"type": "operation", "command": "/cd site"},
        {"type": "file", "name": "index.html", "content": "<h1>calc</h1>"},
    ]
    assert report.files_written == 1
    assert report.operations_run == 1
    assert (workspace / "site" / "index.html").read_text(encoding="utf-8") == "<h1>calc</h1>"
    assert session.state.working_directory == workspace / "site"
    assert not session.has_pending


def test_rejected_batch_changes_nothing(cfg: AppConfig, workspace: Path) -> None:
    reply = (
        "<<<OPERATION: /mkdir out>>>"
        "<<<FILE: a.txt>>>a<<<END>>>"
        "<<<FILE: b.txt>>>b<<<END>>>"
    )
    session = make_session(cfg, FakeListChatModel(responses=[reply]))

    async def scenario():
        await session.submit("/mode agent")
        staged = await session.submit("go")
        report = await session.decide(False)
        return staged, report

    staged, report = asyncio.run(scenario())

    assert len(staged.approval_request) == 3
    assert report.approved is False
    assert report.files_written == 0
    assert report.operations_run == 0
    assert list(workspace.iterdir()) == []


def test_new_agent_turn_is_refused_while_batch_pending(cfg: AppConfig) -> None:
    model = CountingModel(responses=[AGENT_REPLY, AGENT_REPLY])
    session = make_session(cfg, model)

    async def scenario():
        await session.submit("/mode agent")
        await session.submit("first")
        second = await session.submit("second")
        await session.decide(False)
        third = await session.submit("third")
        return second, third

    second, third = asyncio.run(scenario())

    assert second.kind == "error"
    assert second.outcomes[0].status == "warning"
    assert third.kind == "approval"
    assert model.calls == 2


def test_commands_run_while_batch_pending(cfg: AppConfig, workspace: Path) -> None:
    session = make_session(cfg, FakeListChatModel(responses=[AGENT_REPLY]))

    async def scenario():
        await session.submit("/mode agent")
        await session.submit("build")
        return await session.submit("/mkdir notes")

    result = asyncio.run(scenario())

    assert result.kind == "command"
    assert result.outcomes[0].status == "ok"
    assert (workspace / "notes").is_dir()
    assert session.has_pending


def test_decision_with_nothing_pending_is_a_warning(cfg: AppConfig) -> None:
    session = make_session(cfg, FakeListChatModel(responses=["unused"]))

    report = asyncio.run(session.decide(True))

    assert [o.status for o in report.outcomes] == ["warning"]


def test_transport_error_is_surfaced_verbatim(cfg: AppConfig) -> None:
    session = make_session(cfg, BrokenModel())

    result = asyncio.run(session.submit("hello"))

    assert result.kind == "error"
    assert result.text == "Error connecting to model: connection refused"


def test_mode_switch_validates_argument(cfg: AppConfig) -> None:
    session = make_session(cfg, FakeListChatModel(responses=["unused"]))

    bad = asyncio.run(session.submit("/mode turbo"))
    good = asyncio.run(session.submit("/mode AGENT"))

    assert bad.outcomes[0].status == "warning"
    assert good.outcomes[0].status == "ok"
    assert session.state.mode == "agent"


def test_cancel_without_command_is_advisory(cfg: AppConfig) -> None:
    session = make_session(cfg, FakeListChatModel(responses=["unused"]))

    result = asyncio.run(session.submit("/cancel"))

    assert result.outcomes[0].status == "warning"


def test_sessions_in_registry_are_independent(cfg: AppConfig, workspace: Path) -> None:
    (workspace / "site").mkdir()
    relay = ModelRelay(cfg, client_factory=lambda mode: FakeListChatModel(responses=["x"]))
    registry = build_registry(cfg, relay=relay)

    first = registry.open("one")
    second = registry.open("two")
    asyncio.run(first.submit("/cd site"))

    assert first.state.working_directory == workspace / "site"
    assert second.state.working_directory == workspace
    assert len(registry) == 2

    registry.close("one")
    assert "one" not in registry
    with pytest.raises(KeyError):
        registry.get("one")
    with pytest.raises(ValueError):
        registry.open("two")


class GatedModel:
    """Fake chat model whose reply waits until the test releases it."""

    def __init__(self, reply: str):
        self.reply = reply
        self.calls = 0
        self.release = asyncio.Event()

    async def ainvoke(self, messages):
        self.calls += 1
        await self.release.wait()
        return self.reply


class SlowModel:
    def __init__(self, reply: str, delay: float = 0.05):
        self.reply = reply
        self.delay = delay
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return self.reply


class BlockingTrash(DirectoryTrash):
    """Directory trash that holds each move until ``release`` is set."""

    def __init__(self, directory: Path):
        super().__init__(directory)
        self.started = threading.Event()
        self.release = threading.Event()
        self.timed_out = False

    def __call__(self, path: Path) -> Path:
        self.started.set()
        self.timed_out = not self.release.wait(timeout=2)
        return super().__call__(path)


def test_cancel_is_not_blocked_by_running_model_turn(cfg: AppConfig) -> None:
    model = GatedModel("done")
    session = make_session(cfg, model)

    async def scenario():
        turn = asyncio.create_task(session.submit("hello"))
        await asyncio.sleep(0.01)
        cancelled = await asyncio.wait_for(session.submit("/cancel"), timeout=1)
        still_running = not turn.done()
        model.release.set()
        return cancelled, still_running, await turn

    cancelled, still_running, turn = asyncio.run(scenario())

    assert cancelled.kind == "command"
    assert cancelled.outcomes[0].action == "/cancel"
    assert still_running
    assert turn.text == "done"


def test_executing_batch_does_not_block_other_sessions(
    cfg: AppConfig, workspace: Path, tmp_path: Path
) -> None:
    (workspace / "old.txt").write_text("x", encoding="utf-8")
    trash = BlockingTrash(tmp_path / "blocking-trash")
    relay = ModelRelay(
        cfg,
        client_factory=lambda mode: FakeListChatModel(responses=["<<<OPERATION: /rm old.txt>>>"]),
    )
    registry = build_registry(cfg, relay=relay, soft_delete=trash)
    first = registry.open("a")
    second = registry.open("b")

    async def scenario():
        await first.submit("/mode agent")
        await first.submit("clean up")
        decision = asyncio.create_task(first.decide(True))
        await asyncio.to_thread(trash.started.wait, 2)
        pwd = await second.submit("/pwd")
        trash.release.set()
        return pwd, await decision

    pwd, report = asyncio.run(scenario())

    assert pwd.outcomes[0].message == str(workspace)
    assert not trash.timed_out
    assert report.operations_run == 1
    assert not (workspace / "old.txt").exists()


def test_concurrent_turns_on_one_session_do_not_interleave(
    cfg: AppConfig, workspace: Path
) -> None:
    (workspace / "site").mkdir()
    model = SlowModel(AGENT_REPLY)
    session = make_session(cfg, model)

    async def scenario():
        await session.submit("/mode agent")
        first, second = await asyncio.gather(
            session.submit("first"), session.submit("second")
        )
        report, third = await asyncio.gather(
            session.decide(True), session.submit("third")
        )
        return first, second, report, third

    first, second, report, third = asyncio.run(scenario())

    assert first.kind == "approval"
    assert second.kind == "error"
    assert second.outcomes[0].message == "Approve or reject the pending actions first."
    assert report.files_written == 1
    assert third.kind == "approval"
    assert model.calls == 2
    assert session.has_pending
