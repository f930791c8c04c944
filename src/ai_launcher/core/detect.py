"""Auto-detection of installed AI assistant CLIs."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from typing import Iterable

from ai_launcher.core.config import CCS_COMMAND, CLI_PROXY_PROVIDERS, KNOWN_TOOLS
from ai_launcher.core.models import Tool

logger = logging.getLogger(__name__)

_COMMAND_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
# A table row whose first cell is the profile and whose status cell is [OK].
_CCS_ROW_RE = re.compile(r"[│|]\s*([^\s│|]+)\s*[│|].*?[│|]\s*\[OK\]\s*[│|]")

CCS_PROBE_TIMEOUT = 3


def _is_valid_command_name(command: str) -> bool:
    return 0 < len(command) <= 100 and _COMMAND_NAME_RE.match(command) is not None


def command_exists(command: str) -> bool:
    if not _is_valid_command_name(command):
        return False
    return shutil.which(command) is not None


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def parse_ccs_api_list(output: str) -> list[str]:
    """Extract active profile names from ``ccs api list`` table output."""
    profiles: list[str] = []
    for line in strip_ansi(output).splitlines():
        match = _CCS_ROW_RE.search(line)
        if match and match.group(1) != "API":
            profiles.append(match.group(1))
    return profiles


def detect_ccs_profiles() -> list[Tool]:
    try:
        completed = subprocess.run(
            [CCS_COMMAND, "api", "list"],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=CCS_PROBE_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.warning("ccs profile probe failed: %s", exc)
        return []

    if completed.returncode != 0 or not completed.stdout:
        logger.debug("ccs api list exited with %s", completed.returncode)
        return []

    return [
        Tool(
            name=f"{CCS_COMMAND}:{profile}",
            command=f"{CCS_COMMAND} {profile}",
            description=f"CCS profile: {profile}",
        )
        for profile in parse_ccs_api_list(completed.stdout)
    ]


def detect_cli_proxy_profiles() -> list[Tool]:
    return [
        Tool(name=f"{CCS_COMMAND}:{name}", command=f"{CCS_COMMAND} {name}", description=description)
        for name, description in CLI_PROXY_PROVIDERS.items()
    ]


def detect_installed_tools() -> list[Tool]:
    """Probe PATH for the known assistant CLIs and ccs profiles."""
    detected = [
        Tool(name=name, command=command, description=description)
        for name, (command, description) in KNOWN_TOOLS.items()
        if command_exists(command)
    ]

    if command_exists(CCS_COMMAND):
        detected.append(Tool(name=CCS_COMMAND, command=CCS_COMMAND, description="CCS CLI (Claude Code Switch)"))
        detected.extend(detect_ccs_profiles())
        detected.extend(detect_cli_proxy_profiles())

    logger.debug("Detected tools: %s", [tool.name for tool in detected])
    return detected


def merge_tools(configured: Iterable[Tool], detected: Iterable[Tool]) -> list[Tool]:
    """Configured tools first; detected ones only when name and command are new."""
    configured = list(configured)
    names = {tool.name.lower() for tool in configured}
    commands = {tool.command.lower() for tool in configured}
    unique_detected = [
        tool
        for tool in detected
        if tool.name.lower() not in names and tool.command.lower() not in commands
    ]
    return [*configured, *unique_detected]


__all__ = [
    "command_exists",
    "strip_ansi",
    "parse_ccs_api_list",
    "detect_ccs_profiles",
    "detect_cli_proxy_profiles",
    "detect_installed_tools",
    "merge_tools",
]
