"""Placeholder substitution and quote-aware tokenizing of command templates."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from ai_launcher.core.config import PLACEHOLDER
from ai_launcher.core.models import ParsedCommand


def count_placeholders(command: str) -> int:
    return command.count(PLACEHOLDER)


def has_placeholder(command: str) -> bool:
    return PLACEHOLDER in command


def build_template_command(command: str, args: Sequence[str]) -> str:
    """Fill the placeholder in *command* with *args*.

    Only the first placeholder is replaced; any later occurrence is left
    untouched. Without a placeholder the arguments are appended.
    """
    joined = " ".join(args)
    if has_placeholder(command):
        return command.replace(PLACEHOLDER, joined, 1)
    if args:
        return f"{command} {joined}"
    return command


class _QuoteState(Enum):
    UNQUOTED = "unquoted"
    SINGLE = "single"
    DOUBLE = "double"


def parse_template_command(command: str) -> ParsedCommand:
    """Split *command* on whitespace outside of quotes.

    Quote characters are kept in the resulting tokens, e.g.
    ``amp -x 'Review: hello'`` yields ``["-x", "'Review: hello'"]`` as args.
    """
    parts: list[str] = []
    current: list[str] = []
    state = _QuoteState.UNQUOTED

    for char in command:
        if char == "'" and state is not _QuoteState.DOUBLE:
            state = _QuoteState.UNQUOTED if state is _QuoteState.SINGLE else _QuoteState.SINGLE
            current.append(char)
        elif char == '"' and state is not _QuoteState.SINGLE:
            state = _QuoteState.UNQUOTED if state is _QuoteState.DOUBLE else _QuoteState.DOUBLE
            current.append(char)
        elif char.isspace() and state is _QuoteState.UNQUOTED:
            if current:
                parts.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        parts.append("".join(current))

    if not parts:
        return ParsedCommand(cmd="", args=[])
    return ParsedCommand(cmd=parts[0], args=parts[1:])


def _quote_state_at(command: str, end: int) -> _QuoteState:
    state = _QuoteState.UNQUOTED
    for char in command[:end]:
        if char == "'" and state is not _QuoteState.DOUBLE:
            state = _QuoteState.UNQUOTED if state is _QuoteState.SINGLE else _QuoteState.SINGLE
        elif char == '"' and state is not _QuoteState.SINGLE:
            state = _QuoteState.UNQUOTED if state is _QuoteState.DOUBLE else _QuoteState.DOUBLE
    return state


def quote_for_template(command: str, text: str) -> str:
    """Escape free-form *text* for the spot where it lands in *command*.

    Inside single quotes only ``'`` needs breaking out; inside double quotes
    the characters the shell still expands are backslash-escaped. Anywhere
    else (including the appended position when there is no placeholder) the
    text becomes one single-quoted word.
    """
    position = command.find(PLACEHOLDER)
    state = _quote_state_at(command, position) if position >= 0 else _QuoteState.UNQUOTED

    if state is _QuoteState.SINGLE:
        return text.replace("'", "'\\''")
    if state is _QuoteState.DOUBLE:
        return "".join(f"\\{char}" if char in '\\"$`' else char for char in text)
    return "'" + text.replace("'", "'\\''") + "'"


__all__ = [
    "count_placeholders",
    "has_placeholder",
    "build_template_command",
    "parse_template_command",
    "quote_for_template",
]
