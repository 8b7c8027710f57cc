from __future__ import annotations

from pathlib import Path

import pytest

from dual_terminal.actions.executor import ActionExecutor
from dual_terminal.commands.dispatcher import CommandDispatcher
from dual_terminal.core.state import SessionState
from dual_terminal.fs.paths import PathResolver
from dual_terminal.fs.trash import DirectoryTrash


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path.resolve() / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def trash(tmp_path: Path) -> DirectoryTrash:
    return DirectoryTrash(tmp_path.resolve() / "trash")


@pytest.fixture
def resolver(workspace: Path) -> PathResolver:
    return PathResolver(root=workspace)


@pytest.fixture
def executor(resolver: PathResolver, trash: DirectoryTrash) -> ActionExecutor:
    return ActionExecutor(resolver=resolver, soft_delete=trash)


@pytest.fixture
def dispatcher(executor: ActionExecutor) -> CommandDispatcher:
    return CommandDispatcher(executor, excluded_dirs=["node_modules", ".git"])


@pytest.fixture
def state(workspace: Path) -> SessionState:
    return SessionState(session_id="test", working_directory=workspace)
