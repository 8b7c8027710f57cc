"""
Per-connection agent sessions.

An :class:`AgentSession` ties together one connection's state, its pending
batch, the executor, the command dispatcher and the model relay. Every
public coroutine runs under the session's own lock, so a turn or a decision
is processed to completion before the next one starts. Different sessions
share nothing but the filesystem and run independently.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional

from pydantic import BaseModel, Field

from dual_terminal.actions.executor import ActionExecutor, OutcomeSink
from dual_terminal.actions.models import ExecutionReport, Outcome
from dual_terminal.actions.parser import ActionParser, extract_reasoning
from dual_terminal.actions.queue import AlreadyPendingError, PendingActionQueue
from dual_terminal.commands.dispatcher import CommandDispatcher
from dual_terminal.core.state import SessionState
from dual_terminal.llm.relay import ModelRelay, TransportError

log = logging.getLogger(__name__)

TurnKind = Literal["empty", "command", "mode", "reply", "approval", "error"]


class TurnResult(BaseModel):
    """What one submitted line produced.

    Attributes:
        kind: ``command`` (slash command ran), ``mode`` (mode switched),
            ``reply`` (model answered, nothing staged), ``approval`` (a batch
            was staged and awaits a decision), ``error`` (the turn could not
            be served) or ``empty``.
        text: Reply prose, with directives and reasoning removed.
        reasoning: Reasoning blocks the model emitted, in order.
        outcomes: Command outcomes or warnings.
        approval_request: Ordered approval records when ``kind == "approval"``.
    """

    kind: TurnKind
    text: str = ""
    reasoning: List[str] = Field(default_factory=list)
    outcomes: List[Outcome] = Field(default_factory=list)
    approval_request: List[Dict[str, Any]] = Field(default_factory=list)


class AgentSession:
    """One connection's chat/agent session.

    Args:
        state: The session's mode and working directory.
        executor: Runs approved batches and mutating commands.
        dispatcher: Runs operator slash commands.
        relay: Sends turns to the model.
        parser: Directive scanner (a default one is created when omitted).
    """

    def __init__(
        self,
        state: SessionState,
        executor: ActionExecutor,
        dispatcher: CommandDispatcher,
        relay: ModelRelay,
        parser: Optional[ActionParser] = None,
    ):
        self.state = state
        self.executor = executor
        self.dispatcher = dispatcher
        self.relay = relay
        self.parser = parser or ActionParser()
        self.queue = PendingActionQueue()
        self._lock = asyncio.Lock()

    @property
    def session_id(self) -> Optional[str]:
        return self.state.session_id

    @property
    def has_pending(self) -> bool:
        return self.queue.is_pending

    async def submit(self, line: str) -> TurnResult:
        """Handle one line of operator input (command or chat text).

        ``/cancel`` bypasses the session lock so it can reach the model server
        while a turn is still waiting on it.
        """
        text = line.strip()
        parts = text.split(maxsplit=1)
        if parts and parts[0].lower() == "/cancel":
            return TurnResult(kind="command", outcomes=[await self.relay.cancel()])
        async with self._lock:
            return await self._submit(text)

    async def decide(
        self, approved: bool, on_outcome: Optional[OutcomeSink] = None
    ) -> ExecutionReport:
        """Apply the operator's decision to the pending batch.

        Args:
            approved: True to run the batch, False to discard it.
            on_outcome: Optional callback receiving each outcome as it happens.
        """
        async with self._lock:
            return await asyncio.to_thread(
                self.queue.resolve,
                "approve" if approved else "reject",
                lambda batch: self.executor.run(batch, self.state, on_outcome),
            )

    async def _submit(self, text: str) -> TurnResult:
        if not text:
            return TurnResult(kind="empty")

        if text.startswith("/"):
            parts = text.split()
            verb = parts[0].lower()
            if verb == "/mode":
                return self._switch_mode(parts[1:])
            outcome = await asyncio.to_thread(self.dispatcher.dispatch, text, self.state)
            return TurnResult(kind="command", outcomes=[outcome])

        return await self._model_turn(text)

    def _switch_mode(self, args: List[str]) -> TurnResult:
        if len(args) != 1 or args[0].lower() not in {"chat", "agent"}:
            return TurnResult(
                kind="mode",
                outcomes=[
                    Outcome(
                        status="warning",
                        message=f"Usage: /mode <chat|agent> (current: {self.state.mode})",
                        action="/mode",
                    )
                ],
            )
        self.state.mode = args[0].lower()  # type: ignore[assignment]
        log.info("Session %s switched to %s mode", self.session_id, self.state.mode)
        return TurnResult(
            kind="mode",
            outcomes=[
                Outcome(
                    status="ok",
                    message=f"Switched to {self.state.mode} mode.",
                    action="/mode",
                )
            ],
        )

    async def _model_turn(self, text: str) -> TurnResult:
        mode = self.state.mode
        if mode == "agent" and self.queue.is_pending:
            return TurnResult(
                kind="error",
                outcomes=[
                    Outcome(
                        status="warning",
                        message="Approve or reject the pending actions first.",
                    )
                ],
            )

        try:
            reply = await self.relay.reply(text, mode)
        except TransportError as exc:
            return TurnResult(kind="error", text=str(exc))

        reply, reasoning = extract_reasoning(reply)
        if mode != "agent":
            return TurnResult(kind="reply", text=reply.strip(), reasoning=reasoning)

        parsed = self.parser.parse(reply)
        if not parsed.batch:
            return TurnResult(kind="reply", text=reply.strip(), reasoning=reasoning)

        cleaned = parsed.cleaned_text.strip()
        try:
            records = self.queue.stage(parsed.batch)
        except AlreadyPendingError as exc:
            log.warning("Session %s: %s", self.session_id, exc)
            return TurnResult(
                kind="reply",
                text=cleaned,
                reasoning=reasoning,
                outcomes=[Outcome(status="warning", message=str(exc))],
            )
        return TurnResult(
            kind="approval",
            text=cleaned,
            reasoning=reasoning,
            approval_request=records,
        )


SessionFactory = Callable[[str], AgentSession]


class SessionRegistry:
    """Live sessions keyed by connection id.

    A session is created when its connection opens (starting at the
    configured root) and dropped, pending batch included, when it closes.
    """

    def __init__(self, factory: SessionFactory):
        self._factory = factory
        self._sessions: Dict[str, AgentSession] = {}

    def open(self, session_id: Optional[str] = None) -> AgentSession:
        session_id = session_id or uuid.uuid4().hex
        if session_id in self._sessions:
            raise ValueError(f"Session already open: {session_id}")
        session = self._factory(session_id)
        self._sessions[session_id] = session
        log.info("Opened session %s at %s", session_id, session.state.working_directory)
        return session

    def get(self, session_id: str) -> AgentSession:
        return self._sessions[session_id]

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        if session.has_pending:
            log.info("Session %s closed with a pending batch; discarding it", session_id)
        log.info("Closed session %s", session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[AgentSession]:
        return iter(list(self._sessions.values()))
