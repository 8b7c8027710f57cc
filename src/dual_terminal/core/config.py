"""
Configuration module for the Dual Terminal.

This module defines the core configuration dataclasses used across the system:
- LLM configuration (provider, chat/agent models, temperature, etc.)
- Workspace settings (sandbox root, tree exclusions, trash location) and the
  system prompts for chat and agent mode
- AppConfig, which aggregates both.

Values are read from the process environment (optionally seeded from a
``.env`` file) when the dataclasses are instantiated.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


class LLMProvider(str, Enum):
    """Enumerates supported Large Language Model providers."""

    OPENAI = "openai"
    AZURE_OPENAI = "azure_openai"
    OLLAMA = "ollama"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class LLMConfig:
    """Configuration for the LLM provider and model behavior.

    Attributes:
        provider: Selected LLM provider (``openai``, ``azure_openai`` or ``ollama``).
        chat_model: Model used in chat mode.
        agent_model: Model used in agent mode (a reasoning model works best).
        temperature: Sampling temperature for generations.
        num_thread: CPU thread cap passed to Ollama.
        ollama_base_url: Base URL of the Ollama server.
        openai_api_key: API key for OpenAI (when provider is ``openai``).
        azure_endpoint: Azure OpenAI endpoint URL.
        azure_api_key: Azure OpenAI API key.
        azure_api_version: Azure OpenAI API version string.
        cancel_command: Shell command asking the model server to stop.
    """

    provider: LLMProvider = field(
        default_factory=lambda: LLMProvider(os.getenv("LLM_PROVIDER", "ollama"))
    )

    chat_model: str = field(
        default_factory=lambda: os.getenv("CHAT_MODEL", "gemma3:4b")
    )
    agent_model: str = field(
        default_factory=lambda: os.getenv("AGENT_MODEL", "deepseek-r1:7b")
    )
    temperature: float = field(
        default_factory=lambda: float(os.getenv("MODEL_TEMPERATURE", "0.0"))
    )
    num_thread: int = field(
        default_factory=lambda: int(os.getenv("MODEL_NUM_THREAD", "3"))
    )

    # Ollama
    ollama_base_url: str = field(
        default_factory=lambda: os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    )

    # OpenAI
    openai_api_key: Optional[str] = field(
        default_factory=lambda: _env_optional("OPENAI_API_KEY")
    )

    # Azure OpenAI
    azure_endpoint: Optional[str] = field(
        default_factory=lambda: _env_optional("AZURE_OPENAI_ENDPOINT")
    )
    azure_api_key: Optional[str] = field(
        default_factory=lambda: _env_optional("AZURE_OPENAI_API_KEY")
    )
    azure_api_version: Optional[str] = field(
        default_factory=lambda: _env_optional("AZURE_OPENAI_API_VERSION")
    )

    cancel_command: Optional[str] = field(
        default_factory=lambda: _env_optional("MODEL_CANCEL_COMMAND")
    )

    def model_for(self, mode: str) -> str:
        """Return the model name configured for ``mode`` (``chat`` or ``agent``)."""
        return self.agent_model if mode == "agent" else self.chat_model


CHAT_PROMPT = """
You are a helpful command-line assistant. Keep answers concise, accurate, and text-only.
Do NOT write code to save files. Just chat.
""".strip()


@dataclass
class WorkspaceSettings:
    """Workspace sandbox configuration and assistant guidance.

    Attributes:
        root_dir: Root directory every session starts in.
        enforce_root_jail: Whether resolved paths must stay under ``root_dir``.
        excluded_dirs: Directory names ``/tree`` does not descend into.
        trash_dir: Optional directory used for soft-deletes instead of the
            operating system's trash.
    """

    root_dir: Path = field(
        default_factory=lambda: Path(os.getenv("WORKSPACE_ROOT_DIR", Path.cwd()))
    )
    enforce_root_jail: bool = field(
        default_factory=lambda: _env_bool("ENFORCE_ROOT_JAIL", True)
    )
    excluded_dirs: List[str] = field(
        default_factory=lambda: _env_list(
            "TREE_EXCLUDED_DIRS", ["node_modules", ".git", "__pycache__"]
        )
    )
    trash_dir: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["TRASH_DIR"]) if _env_optional("TRASH_DIR") else None
        )
    )

    @property
    def chat_prompt(self) -> str:
        """System prompt for passive chat mode."""
        return CHAT_PROMPT

    @property
    def agent_prompt(self) -> str:
        """Render the system prompt teaching the agent the directive grammar."""
        return """
You are an AUTONOMOUS BUILDER AGENT with file system access. When given a task, you MUST immediately create the necessary files and operations using the special syntax below.

### Available Operations
/cd <dir>       - Change directory
/mkdir <name>   - Create directory
/touch <file>   - Create empty file
/rm <file>      - Delete file (goes to the trash)
/rmdir <dir>    - Delete directory (goes to the trash)
/cp <src> <dst> - Copy file
/mv <src> <dst> - Move/rename file

### Creating Files With Content
<<<FILE: filename.ext>>>
[file content here - actual code, not descriptions]
<<<END>>>

### Performing File Operations
<<<OPERATION: /mkdir public>>>
<<<OPERATION: /cd public>>>
<<<OPERATION: /touch style.css>>>

### Rules
1. Do not just explain or plan. Immediately create files using the <<<FILE:>>> syntax.
2. Write complete, working code, never placeholders.
3. All operations run before any file is written, so a /cd applies to every file.
4. Nothing happens until the human operator approves the whole batch.
""".strip()


@dataclass
class AppConfig:
    """Aggregate of model and workspace configuration for the application.

    Attributes:
        llm: LLM configuration (provider, models, and tuning).
        workspace: WorkspaceSettings controlling the sandbox and prompts.
    """

    llm: LLMConfig = field(default_factory=LLMConfig)
    workspace: WorkspaceSettings = field(default_factory=WorkspaceSettings)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Construct an AppConfig instance from environment variables.

        Returns:
            AppConfig: A configuration object with defaults resolved from
            the current process environment.
        """
        return cls()

    def system_prompt(self, mode: str) -> str:
        """Return the system prompt for ``mode`` (``chat`` or ``agent``)."""
        if mode == "agent":
            return self.workspace.agent_prompt
        return self.workspace.chat_prompt
