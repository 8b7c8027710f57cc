"""
Action and outcome models.

Actions are what the model proposes inside its reply; outcomes are what the
executor and dispatcher report back, one per executed action or command.
Both are Pydantic models so they can be handed to the approval UI and the
terminal log as plain records via ``model_dump()``.
"""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, field_validator


class FileWrite(BaseModel):
    """Write ``content`` to ``name`` (relative to the working directory).

    Attributes:
        type: Record discriminator, always ``"file"``.
        name: Relative path of the file to create or truncate.
        content: Full text content to write.
    """

    type: Literal["file"] = "file"
    name: str = Field(..., description="Relative path of the file to write.")
    content: str = Field(default="", description="Full text content of the file.")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("file name must not be empty")
        return value


class Operation(BaseModel):
    """A single slash-style directive such as ``/mkdir public``.

    Attributes:
        type: Record discriminator, always ``"operation"``.
        command: The raw command text, kept for display and logging.
    """

    type: Literal["operation"] = "operation"
    command: str = Field(..., description="Raw slash command, e.g. '/cd site'.")

    @field_validator("command")
    @classmethod
    def _command_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("operation command must not be empty")
        return value

    @property
    def verb(self) -> str:
        """Lower-cased leading token of the command."""
        return self.command.split()[0].lower()

    @property
    def args(self) -> List[str]:
        """Remaining whitespace-split tokens of the command."""
        return self.command.split()[1:]


Action = Annotated[Union[FileWrite, Operation], Field(discriminator="type")]

OutcomeStatus = Literal["ok", "failed", "warning", "info", "clear"]


class Outcome(BaseModel):
    """One line-oriented result record for the terminal log.

    Attributes:
        status: ``ok``, ``failed``, ``warning``, ``info`` or ``clear``.
        message: Human-readable message (may span several lines).
        action: Raw text of the action or command this outcome belongs to.
    """

    status: OutcomeStatus
    message: str = ""
    action: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"


class ExecutionReport(BaseModel):
    """Result of running (or rejecting) one batch.

    Attributes:
        files_written: Number of file writes that succeeded.
        operations_run: Number of operations whose outcome was ``ok``.
        outcomes: One outcome per action, in execution order.
        approved: False when the batch was rejected.
    """

    files_written: int = 0
    operations_run: int = 0
    outcomes: List[Outcome] = Field(default_factory=list)
    approved: bool = True

    @property
    def summary(self) -> str:
        if not self.approved:
            return "Cancelled. No actions performed."
        return (
            f"Completed: {self.files_written} file(s), "
            f"{self.operations_run} operation(s)"
        )
