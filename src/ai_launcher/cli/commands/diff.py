"""``--diff-staged`` / ``--diff-commit`` handling: hand a git diff to an assistant."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from rich.console import Console

from ai_launcher.core.config import EXIT_SUCCESS, EXIT_VALIDATION_ERROR
from ai_launcher.core.git_diff import (
    GitCommandError,
    GitDiffError,
    GitDiffOptions,
    InvalidGitRefError,
    NoChangesError,
    NotGitRepositoryError,
    ensure_git_repository,
    get_git_diff,
)
from ai_launcher.core.lookup import find_tool_by_name
from ai_launcher.core.models import SelectableItem, SelectionResult
from ai_launcher.core.prompts import build_diff_analysis_prompt
from ai_launcher.core.runner import LaunchOutcome, launch_tool_with_prompt
from ai_launcher.core.safety import is_valid_git_ref

logger = logging.getLogger(__name__)

DIFF_STAGED_FLAG = "--diff-staged"
DIFF_COMMIT_FLAG = "--diff-commit"
DIFF_PROMPT_FLAG = "--diff-prompt"
DIFF_OUTPUT_FLAG = "--diff-output"

REF_HINT = "Use valid git references like: HEAD~1, main, origin/main, or commit SHA"


@dataclass
class DiffArgs:
    """Result of scanning argv for diff flags."""

    has_diff_command: bool
    options: GitDiffOptions | None = None
    diff_flag_index: int | None = None


def _flag_value(args: Sequence[str], flag: str, requirement: str) -> str | None:
    if flag not in args:
        return None
    index = args.index(flag)
    value = args[index + 1] if index + 1 < len(args) else ""
    if not value or value.startswith("-"):
        raise GitDiffError(f"{flag} requires {requirement}")
    return value


def parse_diff_args(args: Sequence[str]) -> DiffArgs:
    """Find the diff flags in *args*.

    ``--diff-staged`` wins when both modes are given. Values are validated
    here so that a bad reference never reaches git.

    Raises:
        GitDiffError: a flag is missing its value or the ref is malformed.
    """
    args = list(args)
    has_staged = DIFF_STAGED_FLAG in args
    has_commit = DIFF_COMMIT_FLAG in args
    if not has_staged and not has_commit:
        return DiffArgs(has_diff_command=False)

    custom_prompt = _flag_value(args, DIFF_PROMPT_FLAG, "a prompt text")
    output_file = _flag_value(args, DIFF_OUTPUT_FLAG, "a file path")

    if has_staged:
        return DiffArgs(
            has_diff_command=True,
            options=GitDiffOptions(type="staged", custom_prompt=custom_prompt, output_file=output_file),
            diff_flag_index=args.index(DIFF_STAGED_FLAG),
        )

    ref = _flag_value(args, DIFF_COMMIT_FLAG, "a git reference (e.g., HEAD~1, main)")
    if ref is None or not is_valid_git_ref(ref):
        raise GitDiffError(
            f"Invalid git reference format: {ref}. Only alphanumeric characters, "
            "-, _, /, ., ~, ^, and @ are allowed."
        )

    return DiffArgs(
        has_diff_command=True,
        options=GitDiffOptions(type="commit", ref=ref, custom_prompt=custom_prompt, output_file=output_file),
        diff_flag_index=args.index(DIFF_COMMIT_FLAG),
    )


@dataclass
class DiffCommandContext:
    """Everything the diff command needs from the surrounding CLI run."""

    args: list[str]
    items: list[SelectableItem]
    select: Callable[[list[SelectableItem]], SelectionResult]
    launch: Callable[..., LaunchOutcome] = launch_tool_with_prompt
    console: Console | None = None
    cwd: Path | None = None


def _failure(message: str, *hints: str) -> LaunchOutcome:
    return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error=message, hints=list(hints))


def _capture_diff(options: GitDiffOptions, cwd: Path | None) -> str | LaunchOutcome:
    try:
        ensure_git_repository(cwd)
    except NotGitRepositoryError as exc:
        return _failure(str(exc), "Initialize a git repository with: git init")

    try:
        return get_git_diff(options, cwd=cwd)
    except NoChangesError:
        if options.type == "staged":
            return _failure("No staged changes found", "Stage changes with: git add <files>")
        return _failure("No changes found in diff", f"Check your git reference: {options.ref}")
    except InvalidGitRefError as exc:
        return _failure(str(exc), REF_HINT)
    except GitCommandError as exc:
        return _failure(str(exc))


def _resolve_item(diff_flag_index: int, context: DiffCommandContext) -> SelectableItem | LaunchOutcome:
    args_before_flag = context.args[:diff_flag_index]
    if not args_before_flag:
        selection = context.select(context.items)
        if selection.cancelled:
            return LaunchOutcome(exit_code=EXIT_SUCCESS)
        if selection.item is None:
            return _failure("No tool selected")
        return selection.item

    lookup = find_tool_by_name(args_before_flag[0], context.items)
    if not lookup.success or lookup.item is None:
        return _failure(lookup.error or "No tool found")
    return lookup.item


def execute_diff_command(
    options: GitDiffOptions, diff_flag_index: int, context: DiffCommandContext
) -> LaunchOutcome:
    """Capture the diff, pick the assistant and launch it with the analysis prompt."""
    diff = _capture_diff(options, context.cwd)
    if isinstance(diff, LaunchOutcome):
        return diff

    prompt = build_diff_analysis_prompt(diff, options.ref, options.custom_prompt)

    if context.console is not None:
        context.console.print("\nAnalyzing git diff...\n")

    item = _resolve_item(diff_flag_index, context)
    if isinstance(item, LaunchOutcome):
        return item

    logger.debug("Diff analysis with %s (%d chars of diff)", item.name, len(diff))
    return context.launch(
        item.launch_command_for_prompt,
        prompt,
        use_stdin=item.prompt_use_stdin,
        output_file=options.output_file,
        cwd=context.cwd,
    )


__all__ = [
    "DiffArgs",
    "DiffCommandContext",
    "parse_diff_args",
    "execute_diff_command",
]
