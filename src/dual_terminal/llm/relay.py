"""
Model relay.

Sends one operator turn to the chat model configured for the session's mode
and returns the reply text. The relay knows nothing about directives; agent
mode only differs in its model and system prompt.
"""

import asyncio
import logging
import shlex
import subprocess
from typing import Any, Callable, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from dual_terminal.actions.models import Outcome
from dual_terminal.core.config import AppConfig
from dual_terminal.core.state import Mode

from .base import get_llm

log = logging.getLogger(__name__)

ClientFactory = Callable[[Mode], Any]


class TransportError(Exception):
    """The model could not be reached or returned an error.

    The message is shown verbatim as the turn's response; no retry is made.
    """


def message_text(content: Any) -> str:
    """Flatten LangChain message content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class ModelRelay:
    """Forward turns to the chat or agent model.

    Args:
        config: Application configuration (provider, models, prompts).
        client_factory: Optional factory returning a chat model for a mode;
            defaults to the provider registered for ``config.llm.provider``.
    """

    def __init__(
        self, config: AppConfig, client_factory: Optional[ClientFactory] = None
    ):
        self.config = config
        self._factory = client_factory or self._create_client
        self._clients: Dict[str, Any] = {}

    def _create_client(self, mode: Mode) -> Any:
        return get_llm(
            self.config.llm.provider.value,
            config=self.config.llm,
            model=self.config.llm.model_for(mode),
        )

    def _client(self, mode: Mode) -> Any:
        if mode not in self._clients:
            self._clients[mode] = self._factory(mode)
        return self._clients[mode]

    async def reply(self, text: str, mode: Mode) -> str:
        """Send ``text`` to the model for ``mode`` and return its reply.

        Raises:
            TransportError: If the client cannot be created or the call fails.
        """
        messages = [
            SystemMessage(content=self.config.system_prompt(mode)),
            HumanMessage(content=text),
        ]
        try:
            client = self._client(mode)
            response = await client.ainvoke(messages)
        except Exception as exc:
            log.error("Model call failed (%s mode): %s", mode, exc)
            raise TransportError(f"Error connecting to model: {exc}") from exc
        return message_text(getattr(response, "content", response))

    async def cancel(self) -> Outcome:
        """Ask the model server to stop. Advisory: staged batches are unaffected."""
        command = self.config.llm.cancel_command
        if not command:
            return Outcome(
                status="warning",
                message="Cancel is not configured (set MODEL_CANCEL_COMMAND).",
                action="/cancel",
            )

        log.info("Running cancel command: %s", command)
        try:
            proc = await asyncio.to_thread(
                subprocess.run,
                shlex.split(command),
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            return Outcome(
                status="failed", message=f"Could not cancel: {exc}", action="/cancel"
            )
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            return Outcome(
                status="warning",
                message=f"Cancel command exited with {proc.returncode}. {detail}".strip(),
                action="/cancel",
            )
        return Outcome(
            status="ok",
            message="Process cancelled. You can start a new request anytime.",
            action="/cancel",
        )
