"""Core resolution, validation and launch logic."""

from .lookup import find_tool_by_name
from .models import LookupResult, ParsedCommand, SelectableItem, SelectionResult, Template, Tool, to_selectable_items
from .runner import LaunchOutcome, launch_tool, launch_tool_with_prompt
from .safety import is_safe_command, validate_arguments, validate_output_path
from .template import build_template_command, parse_template_command

__all__ = [
    "find_tool_by_name",
    "LookupResult",
    "ParsedCommand",
    "SelectableItem",
    "SelectionResult",
    "Template",
    "Tool",
    "to_selectable_items",
    "LaunchOutcome",
    "launch_tool",
    "launch_tool_with_prompt",
    "is_safe_command",
    "validate_arguments",
    "validate_output_path",
    "build_template_command",
    "parse_template_command",
]
