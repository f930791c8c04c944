"""Shared console objects and output helpers for the CLI."""

from __future__ import annotations

import logging
import os
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from ai_launcher import __version__
from ai_launcher.core.config import DEBUG_ENV_VAR, INSTALL_HINTS
from ai_launcher.core.runner import LaunchOutcome
from ai_launcher.core.user_config import get_config_path

console = Console()
err_console = Console(stderr=True)

DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

TAGLINE = "Fast launcher for AI coding assistants"

HELP_USAGE = """\
  ai                          Open the interactive selector
  ai <name> [args...]         Launch a tool or template by name
  ai <name> -- [args...]      Pass everything after -- unchanged
  <command> | ai <template>   Feed piped input to a template
  ai upgrade [--check]        Check for a newer release"""

HELP_OPTIONS = """\
  -h, --help                  Show this help
  -v, --version               Show the version
  --diff-staged               Analyze staged changes
  --diff-commit <ref>         Analyze changes against a commit or branch
  --diff-prompt <text>        Add instructions to the analysis prompt
  --diff-output <file>        Save the analysis to a file"""

HELP_EXAMPLES = """\
  ai claude                   Launch Claude
  ai cl                       Fuzzy match (resolves to claude)
  ai review src/app.py        Run the 'review' template with an argument
  git diff | ai review        Pipe input into a template
  ai claude --diff-staged     Ask Claude to review staged changes
  ai --diff-commit HEAD~1     Pick a tool, then review the last commit"""


def show_help() -> None:
    console.print(Text(f"ai-launcher v{__version__}", style="bold cyan"))
    console.print(Text(TAGLINE, style="italic"))
    console.print()
    console.print(Panel(Text(HELP_USAGE), title="Usage", border_style="cyan", title_align="left"))
    console.print(Panel(Text(HELP_OPTIONS), title="Options", border_style="cyan", title_align="left"))
    console.print(Panel(Text(HELP_EXAMPLES), title="Examples", border_style="cyan", title_align="left"))
    console.print(f"[dim]Config: {escape(str(get_config_path()))}[/dim]")


def show_version() -> None:
    console.print(f"ai-launcher v{__version__}", highlight=False)


def show_no_tools() -> None:
    err_console.print("[red]No AI tools found![/red]")
    err_console.print()
    err_console.print("Install at least one of the following:")
    for command, description in INSTALL_HINTS.items():
        err_console.print(f"  • [bold]{command}[/bold] - {description}")
    err_console.print()
    err_console.print("Or add tools to your config file.")


def print_error(message: str, hints: list[str] | None = None) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    for hint in hints or []:
        err_console.print(f"💡 {escape(hint)}", highlight=False)


def print_outcome(outcome: LaunchOutcome) -> None:
    """Render the messages carried by a launch outcome."""
    for notice in outcome.notices:
        console.print(f"[green]✓[/green] {escape(notice)}", highlight=False)
    if outcome.error:
        print_error(outcome.error, outcome.hints)
    else:
        for hint in outcome.hints:
            console.print(f"💡 {escape(hint)}", highlight=False)


def configure_logging() -> None:
    """Send debug logs to stderr when the debug env var is set."""
    if os.environ.get(DEBUG_ENV_VAR, "").lower() not in ("1", "true", "yes"):
        return
    logger = logging.getLogger("ai_launcher")
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEBUG_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


__all__ = [
    "console",
    "err_console",
    "show_help",
    "show_version",
    "show_no_tools",
    "print_error",
    "print_outcome",
    "configure_logging",
]
