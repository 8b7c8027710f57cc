from __future__ import annotations

from pathlib import Path

from dual_terminal.core.config import AppConfig, LLMProvider
from dual_terminal.core.logging import resolve_level


def test_defaults_target_local_ollama(monkeypatch) -> None:
    for name in ("LLM_PROVIDER", "CHAT_MODEL", "AGENT_MODEL", "TRASH_DIR", "ENFORCE_ROOT_JAIL"):
        monkeypatch.delenv(name, raising=False)

    cfg = AppConfig.from_env()

    assert cfg.llm.provider is LLMProvider.OLLAMA
    assert cfg.llm.chat_model == "gemma3:4b"
    assert cfg.llm.agent_model == "deepseek-r1:7b"
    assert cfg.llm.num_thread == 3
    assert cfg.workspace.enforce_root_jail is True
    assert cfg.workspace.trash_dir is None
    assert "node_modules" in cfg.workspace.excluded_dirs


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("AGENT_MODEL", "gpt-4o")
    monkeypatch.setenv("WORKSPACE_ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("ENFORCE_ROOT_JAIL", "off")
    monkeypatch.setenv("TREE_EXCLUDED_DIRS", "dist, build ,")
    monkeypatch.setenv("TRASH_DIR", str(tmp_path / "trash"))
    monkeypatch.setenv("MODEL_CANCEL_COMMAND", "pkill -9 ollama")

    cfg = AppConfig.from_env()

    assert cfg.llm.provider is LLMProvider.OPENAI
    assert cfg.llm.model_for("agent") == "gpt-4o"
    assert cfg.workspace.root_dir == tmp_path
    assert cfg.workspace.enforce_root_jail is False
    assert cfg.workspace.excluded_dirs == ["dist", "build"]
    assert cfg.workspace.trash_dir == tmp_path / "trash"
    assert cfg.llm.cancel_command == "pkill -9 ollama"


def test_system_prompt_per_mode(monkeypatch) -> None:
    cfg = AppConfig.from_env()

    assert "<<<OPERATION:" in cfg.system_prompt("agent")
    assert "<<<" not in cfg.system_prompt("chat")


def test_resolve_level() -> None:
    assert resolve_level("debug") == 10
    assert resolve_level("nonsense", default=30) == 30
    assert resolve_level(None) == 20
