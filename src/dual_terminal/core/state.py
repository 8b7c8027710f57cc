"""
State models for agent sessions.

This module defines Pydantic models that encapsulate the per-connection
context: the conversation mode and the working directory every relative path
resolves against. A session's state is owned by that session alone; nothing
here is process-wide.
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

Mode = Literal["chat", "agent"]


class BaseAgentState(BaseModel):
    """Base class for all agent state models.

    Attributes:
        session_id: Unique identifier for the current agent session.
        metadata: Arbitrary session metadata for contextual storage.
    """

    session_id: Optional[str] = Field(
        default=None, description="Unique identifier for the session."
    )
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Arbitrary metadata for storing additional session context.",
    )


class SessionState(BaseAgentState):
    """Represents the mutable context of one connection.

    By persisting the working directory here, a ``/cd`` executed in one
    batch (or typed by the operator) affects every later action.

    Attributes:
        mode: ``chat`` (plain replies) or ``agent`` (replies may propose actions).
        working_directory: Absolute path all relative paths resolve against.
    """

    mode: Mode = Field(default="chat", description="Conversation mode.")
    working_directory: Path = Field(
        ..., description="Current working directory for file operations."
    )
