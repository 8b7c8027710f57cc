"""
Session builder.

This module exposes the factory functions :func:`build_session` and
:func:`build_registry`, which assemble the parts of an agent session:
the path resolver and soft-delete capability for the configured workspace,
the action executor, the command dispatcher and the model relay.

Model/provider and workspace settings are injected from environment variables
via :class:`dual_terminal.core.config.AppConfig`.
"""

from pathlib import Path
from typing import Optional

from dual_terminal.actions.executor import ActionExecutor
from dual_terminal.commands.dispatcher import CommandDispatcher
from dual_terminal.core.config import AppConfig
from dual_terminal.core.state import SessionState
from dual_terminal.fs.paths import PathResolver
from dual_terminal.fs.trash import SoftDelete, create_soft_delete
from dual_terminal.llm.relay import ModelRelay
from dual_terminal.session import AgentSession, SessionRegistry


def build_session(
    cfg: Optional[AppConfig] = None,
    session_id: Optional[str] = None,
    *,
    relay: Optional[ModelRelay] = None,
    soft_delete: Optional[SoftDelete] = None,
) -> AgentSession:
    """Construct an agent session rooted at the configured workspace.

    Args:
        cfg: Application configuration; read from the environment when omitted.
        session_id: Identifier recorded in the session state.
        relay: Model relay to use; built from ``cfg`` when omitted.
        soft_delete: Trash implementation; chosen for this platform when omitted.

    Returns:
        AgentSession: A session in chat mode whose working directory is the root.

    Example:
        ```python
        session = build_session()
        result = await session.submit("/mode agent")
        ```
    """
    cfg = cfg or AppConfig.from_env()
    root = Path(cfg.workspace.root_dir).resolve()

    resolver = PathResolver(root=root, enforce_root_jail=cfg.workspace.enforce_root_jail)
    executor = ActionExecutor(
        resolver=resolver,
        soft_delete=soft_delete or create_soft_delete(cfg.workspace),
    )
    dispatcher = CommandDispatcher(executor, excluded_dirs=cfg.workspace.excluded_dirs)

    return AgentSession(
        state=SessionState(session_id=session_id, working_directory=root),
        executor=executor,
        dispatcher=dispatcher,
        relay=relay or ModelRelay(cfg),
    )


def build_registry(
    cfg: Optional[AppConfig] = None,
    *,
    relay: Optional[ModelRelay] = None,
    soft_delete: Optional[SoftDelete] = None,
) -> SessionRegistry:
    """Construct a registry creating one session per connection.

    All sessions share the relay and soft-delete capability; each gets its
    own state, pending batch and lock.
    """
    cfg = cfg or AppConfig.from_env()
    relay = relay or ModelRelay(cfg)
    soft_delete = soft_delete or create_soft_delete(cfg.workspace)

    return SessionRegistry(
        lambda session_id: build_session(
            cfg, session_id, relay=relay, soft_delete=soft_delete
        )
    )
