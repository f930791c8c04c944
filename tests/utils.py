from __future__ import annotations

import subprocess
from pathlib import Path

from ai_launcher.core.models import SelectableItem


def run(cmd: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)


def make_item(name: str, command: str | None = None, **kwargs) -> SelectableItem:
    return SelectableItem(name=name, command=command or name, **kwargs)
