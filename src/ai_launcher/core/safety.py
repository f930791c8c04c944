"""Input validation for commands, arguments, git refs and output paths.

Command templates come from user configuration and end up in a shell
invocation, so every launch path goes through ``is_safe_command`` first.
The allow-list is generous enough for prompts with punctuation; the deny
patterns target the sequences that change shell control flow.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

MAX_COMMAND_LENGTH = 500
MAX_ARGUMENT_LENGTH = 200

_SAFE_COMMAND_RE = re.compile(r"^[a-zA-Z0-9._\s\-'\":,!?/\\|$@`()\[\]<>]+$")

_DANGEROUS_COMMAND_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    re.compile(r";"),
    re.compile(r"\$\("),
    re.compile(r"`[^`]*`"),
    re.compile(r"\bsudo\b"),
    re.compile(r"\brm\s+-rf\b"),
    re.compile(r">\s*/"),
)

_SAFE_ARGUMENT_RE = re.compile(r"^[a-zA-Z0-9._\-\"/\\@#=\s,:()\[\]{}]+$")

_GIT_REF_RE = re.compile(r"^[a-zA-Z0-9._\-/~^@{}]+$")
_GIT_REF_SHELL_META_RE = re.compile(r"[;&|`$()<>\[\]]")

_PROTECTED_SEGMENTS = frozenset({".git", ".config"})
_PROTECTED_ROOTS = frozenset({"etc", "root", "home", "usr", "var", "sys", "proc"})


def is_safe_command(command: str) -> bool:
    """Return True when *command* may be handed to a shell."""
    trimmed = command.strip()
    if not trimmed or len(trimmed) > MAX_COMMAND_LENGTH:
        return False
    if not _SAFE_COMMAND_RE.match(trimmed):
        return False
    # Deny patterns run on the raw string, independently of the allow-list.
    return not any(pattern.search(command) for pattern in _DANGEROUS_COMMAND_PATTERNS)


def validate_arguments(args: list[str] | tuple[str, ...]) -> bool:
    """Return True when every runtime argument is safe to interpolate."""
    return all(
        len(arg) <= MAX_ARGUMENT_LENGTH and _SAFE_ARGUMENT_RE.match(arg) is not None
        for arg in args
    )


def is_valid_git_ref(ref: str) -> bool:
    """Check a user-supplied git reference before it reaches ``git diff``."""
    if not ref or not _GIT_REF_RE.match(ref):
        return False
    if ref.startswith("-"):
        return False
    if _GIT_REF_SHELL_META_RE.search(ref):
        return False
    return ".." not in ref


def _output_path_problem(normalized: str) -> str | None:
    if os.path.isabs(normalized) or normalized.startswith(("/", "\\")):
        return "Output file path must be relative, not absolute"

    segments = re.split(r"[\\/]", normalized)
    if ".." in segments:
        return "Output file path cannot escape current directory"

    if normalized.startswith("."):
        return "Output file path points to a protected location"
    if any(segment in _PROTECTED_SEGMENTS for segment in segments):
        return "Output file path points to a protected location"
    if len(segments) > 1 and segments[0] in _PROTECTED_ROOTS:
        return "Output file path points to a protected location"
    return None


def validate_output_path(file_path: str, cwd: Path | None = None) -> str | None:
    """Validate a ``--diff-output`` destination.

    Returns:
        ``None`` when the path is acceptable, otherwise a user-facing message.
    """
    if not file_path or not file_path.strip():
        return "Output file path cannot be empty"

    normalized = os.path.normpath(file_path.strip())
    problem = _output_path_problem(normalized)
    if problem:
        return problem

    base = cwd if cwd is not None else Path.cwd()
    resolved = (base / normalized).resolve()
    if resolved.exists():
        return f"File already exists: {resolved}"
    if not resolved.parent.is_dir():
        return f"Output directory does not exist: {resolved.parent}"
    return None


def shell_quote_prompt(prompt: str) -> str:
    """Single-quote *prompt* for ``sh -c``, escaping embedded quotes."""
    escaped = prompt.replace("'", "'\\''")
    return f"'{escaped}'"


__all__ = [
    "MAX_COMMAND_LENGTH",
    "MAX_ARGUMENT_LENGTH",
    "is_safe_command",
    "validate_arguments",
    "is_valid_git_ref",
    "validate_output_path",
    "shell_quote_prompt",
]
