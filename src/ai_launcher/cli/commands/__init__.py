"""Sub-commands of the ``ai`` launcher."""

from .diff import DiffArgs, DiffCommandContext, execute_diff_command, parse_diff_args
from .upgrade import run_upgrade

__all__ = ["DiffArgs", "DiffCommandContext", "execute_diff_command", "parse_diff_args", "run_upgrade"]
