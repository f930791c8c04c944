"""Data model for tools, templates and the items users pick from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Tool:
    """A configured or auto-detected AI assistant CLI."""

    name: str
    command: str
    description: str = ""
    aliases: tuple[str, ...] = ()
    prompt_command: str | None = None
    prompt_use_stdin: bool = False


@dataclass(frozen=True)
class Template:
    """A named command with an optional ``$@`` placeholder."""

    name: str
    command: str
    description: str
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class SelectableItem:
    """Union of tools and templates as seen by lookup and selection.

    Attributes:
        name: Display key. Not guaranteed unique across configured and
            detected tools.
        command: Command template; may contain at most one placeholder.
        description: Free text shown in the selector.
        is_template: True when the item came from the templates section.
        aliases: Alternate names, in configuration order.
        prompt_command: Command to use instead of ``command`` when a prompt
            is injected (diff analysis).
        prompt_use_stdin: Deliver injected prompts on stdin instead of as a
            quoted trailing argument.
    """

    name: str
    command: str
    description: str = ""
    is_template: bool = False
    aliases: tuple[str, ...] = ()
    prompt_command: str | None = None
    prompt_use_stdin: bool = False

    @property
    def launch_command_for_prompt(self) -> str:
        return self.prompt_command or self.command


@dataclass
class LookupResult:
    """Outcome of resolving a query against the selectable items."""

    success: bool
    item: SelectableItem | None = None
    error: str | None = None
    candidates: list[SelectableItem] = field(default_factory=list)

    @classmethod
    def found(cls, item: SelectableItem) -> "LookupResult":
        return cls(success=True, item=item)

    @classmethod
    def failed(
        cls, error: str, candidates: Iterable[SelectableItem] = ()
    ) -> "LookupResult":
        return cls(success=False, error=error, candidates=list(candidates))


@dataclass
class ParsedCommand:
    """Program name and argument tokens of a command template."""

    cmd: str
    args: list[str] = field(default_factory=list)


@dataclass
class SelectionResult:
    """Outcome of an interactive selection."""

    cancelled: bool
    item: SelectableItem | None = None


def to_selectable_items(
    tools: Iterable[Tool], templates: Iterable[Template]
) -> list[SelectableItem]:
    """Flatten tools then templates into one ordered item list."""
    items = [
        SelectableItem(
            name=tool.name,
            command=tool.command,
            description=tool.description or "",
            is_template=False,
            aliases=tuple(tool.aliases),
            prompt_command=tool.prompt_command,
            prompt_use_stdin=tool.prompt_use_stdin,
        )
        for tool in tools
    ]
    items.extend(
        SelectableItem(
            name=template.name,
            command=template.command,
            description=template.description,
            is_template=True,
            aliases=tuple(template.aliases),
        )
        for template in templates
    )
    return items


__all__ = [
    "Tool",
    "Template",
    "SelectableItem",
    "LookupResult",
    "ParsedCommand",
    "SelectionResult",
    "to_selectable_items",
]
