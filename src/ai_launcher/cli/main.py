"""Entry point for the ``ai`` command.

argv is interpreted by hand: everything after the tool name, including
``--`` and flags the launcher does not know, belongs to the launched tool.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from ai_launcher.cli.commands.diff import DiffCommandContext, execute_diff_command, parse_diff_args
from ai_launcher.cli.commands.upgrade import run_upgrade
from ai_launcher.cli.helpers import (
    configure_logging,
    console,
    print_error,
    print_outcome,
    show_help,
    show_no_tools,
    show_version,
)
from ai_launcher.cli.ui import fuzzy_select, prompt_for_input
from ai_launcher.core.config import EXIT_SUCCESS, EXIT_VALIDATION_ERROR, PLACEHOLDER
from ai_launcher.core.detect import detect_installed_tools, merge_tools
from ai_launcher.core.git_diff import GitDiffError
from ai_launcher.core.lookup import find_tool_by_name
from ai_launcher.core.models import SelectableItem, SelectionResult, Tool, to_selectable_items
from ai_launcher.core.runner import LaunchOutcome, launch_tool, launch_tool_with_prompt, read_stdin
from ai_launcher.core.user_config import ConfigError, LoadedConfig, load_config

logger = logging.getLogger(__name__)

HELP_FLAGS = ("--help", "-h")
VERSION_FLAGS = ("--version", "-v")
SEPARATOR = "--"


@dataclass
class CliDependencies:
    """Collaborators of one CLI run; tests replace them with fakes."""

    load_config: Callable[[], LoadedConfig] = load_config
    detect_tools: Callable[[], list[Tool]] = detect_installed_tools
    read_stdin: Callable[[], str | None] = read_stdin
    select: Callable[[list[SelectableItem]], SelectionResult] = fuzzy_select
    prompt: Callable[[str], str] = prompt_for_input
    launch: Callable[..., LaunchOutcome] = launch_tool
    launch_with_prompt: Callable[..., LaunchOutcome] = launch_tool_with_prompt
    upgrade: Callable[[list[str]], int] = run_upgrade
    cwd: Path | None = field(default=None)


def _load_items(deps: CliDependencies) -> list[SelectableItem]:
    config = deps.load_config()
    tools = merge_tools(config.tools, deps.detect_tools())
    return to_selectable_items(tools, config.templates)


def _launch_by_name(
    query: str, extra_args: list[str], items: list[SelectableItem], stdin_content: str | None, deps: CliDependencies
) -> LaunchOutcome:
    result = find_tool_by_name(query, items)
    if not result.success or result.item is None:
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error=result.error)
    logger.debug("Resolved %r to %s", query, result.item.name)
    return deps.launch(result.item.command, extra_args, stdin_content)


def _launch_selected(
    items: list[SelectableItem], stdin_content: str | None, deps: CliDependencies
) -> LaunchOutcome:
    selection = deps.select(items)
    if selection.cancelled or selection.item is None:
        return LaunchOutcome(exit_code=EXIT_SUCCESS)

    item = selection.item
    command = item.command
    if item.is_template and PLACEHOLDER in command:
        console.print(f"\nSelected: {item.name}", highlight=False)
        user_input = deps.prompt(f'Enter arguments for "{item.name}": ')
        if not user_input:
            return LaunchOutcome(exit_code=EXIT_SUCCESS)
        command = command.replace(PLACEHOLDER, user_input, 1)

    console.print(f"\nRunning: {command}\n", highlight=False, markup=False)
    return deps.launch(command, [], stdin_content)


def run_cli(argv: Sequence[str], deps: CliDependencies | None = None) -> LaunchOutcome:
    """Interpret *argv* and run the chosen tool; never exits the process."""
    deps = deps or CliDependencies()
    args = list(argv)
    first = args[0] if args else None

    if first in HELP_FLAGS:
        show_help()
        return LaunchOutcome(exit_code=EXIT_SUCCESS)
    if first in VERSION_FLAGS:
        show_version()
        return LaunchOutcome(exit_code=EXIT_SUCCESS)
    if first == "upgrade":
        return LaunchOutcome(exit_code=deps.upgrade(args[1:]))

    stdin_content = deps.read_stdin()

    try:
        items = _load_items(deps)
    except ConfigError as exc:
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error=str(exc))

    if not items:
        show_no_tools()
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR)

    try:
        diff = parse_diff_args(args)
    except GitDiffError as exc:
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error=str(exc))

    if diff.has_diff_command and diff.options is not None and diff.diff_flag_index is not None:
        context = DiffCommandContext(
            args=args,
            items=items,
            select=deps.select,
            launch=deps.launch_with_prompt,
            console=console,
            cwd=deps.cwd,
        )
        return execute_diff_command(diff.options, diff.diff_flag_index, context)

    if SEPARATOR in args:
        dash_index = args.index(SEPARATOR)
        before, after = args[:dash_index], args[dash_index + 1 :]
        if not before:
            selection = deps.select(items)
            if selection.cancelled or selection.item is None:
                return LaunchOutcome(exit_code=EXIT_SUCCESS)
            return deps.launch(selection.item.command, after, stdin_content)
        return _launch_by_name(before[0], after, items, stdin_content, deps)

    if args:
        return _launch_by_name(args[0], args[1:], items, stdin_content, deps)

    return _launch_selected(items, stdin_content, deps)


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        outcome = run_cli(args)
    except KeyboardInterrupt:
        sys.exit(EXIT_SUCCESS)
    except Exception as exc:
        logger.debug("Unhandled error", exc_info=True)
        print_error(str(exc))
        sys.exit(EXIT_VALIDATION_ERROR)

    print_outcome(outcome)
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
