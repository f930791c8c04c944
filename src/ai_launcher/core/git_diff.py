"""Capture git diffs for AI analysis."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

GIT_TIMEOUT_SECONDS = 30


class GitDiffError(RuntimeError):
    """Base error for diff capture and diff argument parsing."""


class NotGitRepositoryError(GitDiffError):
    def __init__(self) -> None:
        super().__init__("Not a git repository")


class InvalidGitRefError(GitDiffError):
    def __init__(self, ref: str) -> None:
        super().__init__(f"Invalid git reference: {ref}")
        self.ref = ref


class NoChangesError(GitDiffError):
    def __init__(self) -> None:
        super().__init__("No changes found in diff")


class GitCommandError(GitDiffError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Git command failed: {message}")


@dataclass
class GitDiffOptions:
    """What to diff, plus the extra ``--diff-*`` flags."""

    type: Literal["staged", "commit"]
    ref: str | None = None
    custom_prompt: str | None = None
    output_file: str | None = None


@dataclass
class _GitCommandResult:
    returncode: int
    stdout: str
    stderr: str


def _run_git(args: list[str], cwd: Path | None = None) -> _GitCommandResult:
    """Run git command and normalize failure shape for deterministic handling."""
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        return _GitCommandResult(returncode=127, stdout="", stderr="git executable not found on PATH")
    except subprocess.TimeoutExpired:
        return _GitCommandResult(returncode=124, stdout="", stderr=f"git command timed out: git {' '.join(args)}")
    return _GitCommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def is_git_repository(cwd: Path | None = None) -> bool:
    return _run_git(["rev-parse", "--git-dir"], cwd=cwd).returncode == 0


def ensure_git_repository(cwd: Path | None = None) -> None:
    if not is_git_repository(cwd):
        raise NotGitRepositoryError()


def _looks_like_bad_ref(stderr: str) -> bool:
    text = stderr.lower()
    return "unknown revision" in text or "bad revision" in text or "ambiguous argument" in text


def get_git_diff(options: GitDiffOptions, cwd: Path | None = None) -> str:
    """Return the requested diff text.

    Raises:
        GitDiffError: options are incomplete.
        InvalidGitRefError: git does not know ``options.ref``.
        GitCommandError: git failed for another reason.
        NoChangesError: the diff is empty.
    """
    if options.type == "staged":
        args = ["diff", "--cached"]
    elif options.type == "commit" and options.ref:
        args = ["diff", options.ref]
    else:
        raise GitDiffError("Invalid git diff options")

    result = _run_git(args, cwd=cwd)
    if result.returncode != 0:
        if options.ref and _looks_like_bad_ref(result.stderr):
            raise InvalidGitRefError(options.ref)
        detail = result.stderr.strip() or "Unknown error"
        raise GitCommandError(f"git exited with code {result.returncode}: {detail}")

    diff = result.stdout.strip()
    if not diff:
        raise NoChangesError()
    return diff


__all__ = [
    "GitDiffError",
    "NotGitRepositoryError",
    "InvalidGitRefError",
    "NoChangesError",
    "GitCommandError",
    "GitDiffOptions",
    "is_git_repository",
    "ensure_git_repository",
    "get_git_diff",
]
