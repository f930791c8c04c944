"""Static configuration shared across the launcher."""

from __future__ import annotations

PLACEHOLDER = "$@"

KNOWN_TOOLS: dict[str, tuple[str, str]] = {
    "claude": ("claude", "Anthropic Claude CLI"),
    "opencode": ("opencode", "OpenCode CLI"),
    "amp": ("amp", "Sourcegraph Amp CLI"),
    "codex": ("codex", "OpenAI Codex CLI"),
    "gemini": ("gemini", "Google Gemini CLI"),
}

CCS_COMMAND = "ccs"

CLI_PROXY_PROVIDERS: dict[str, str] = {
    "gemini": "Google Gemini (OAuth)",
    "codex": "OpenAI Codex (OAuth)",
    "agy": "Antigravity (OAuth)",
    "qwen": "Qwen Code (OAuth)",
    "iflow": "Iflow (OAuth)",
    "kiro": "Kiro (OAuth)",
    "ghcp": "GitHub Copilot (OAuth)",
}

INSTALL_HINTS: dict[str, str] = {
    "claude": "Anthropic Claude CLI",
    "opencode": "OpenCode AI assistant",
    "amp": "Sourcegraph Amp CLI",
    "codex": "OpenAI Codex CLI",
    "ccs": "Claude Code Switch",
}

CONFIG_DIR_ENV_VAR = "AI_LAUNCHER_CONFIG_DIR"
DEBUG_ENV_VAR = "AI_LAUNCHER_DEBUG"
CONFIG_FILE_NAME = "config.json"

GITHUB_REPO = "jellydn/ai-cli-switcher"

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_FILE_WRITE_ERROR = 2
EXIT_PROCESS_ERROR = 3

__all__ = [
    "PLACEHOLDER",
    "KNOWN_TOOLS",
    "CCS_COMMAND",
    "CLI_PROXY_PROVIDERS",
    "INSTALL_HINTS",
    "CONFIG_DIR_ENV_VAR",
    "DEBUG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "GITHUB_REPO",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_FILE_WRITE_ERROR",
    "EXIT_PROCESS_ERROR",
]
