from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from tests.utils import run


@pytest.fixture()
def git_repo(tmp_path: Path) -> Iterator[Path]:
    """Git repository with one committed file."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    run(["git", "init"], cwd=repo_dir)
    run(["git", "config", "user.name", "AI Launcher"], cwd=repo_dir)
    run(["git", "config", "user.email", "launcher@example.com"], cwd=repo_dir)
    run(["git", "config", "commit.gpgsign", "false"], cwd=repo_dir)
    (repo_dir / "app.py").write_text("print('hello')\n", encoding="utf-8")
    run(["git", "add", "app.py"], cwd=repo_dir)
    run(["git", "commit", "-m", "Initial commit"], cwd=repo_dir)
    yield repo_dir


@pytest.fixture()
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the launcher at a private config directory."""
    directory = tmp_path / "config"
    monkeypatch.setenv("AI_LAUNCHER_CONFIG_DIR", str(directory))
    return directory
