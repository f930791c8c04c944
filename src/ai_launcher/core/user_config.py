"""User configuration: custom tools, aliases and prompt templates.

The config lives in ``config.json`` under the per-user config directory and
is created with empty ``tools``/``templates`` lists on first run. Schema
problems are reported as a flat list of ``ConfigValidationError`` entries so
every mistake in the file is shown at once.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator

from ai_launcher.core.config import CONFIG_DIR_ENV_VAR, CONFIG_FILE_NAME, PLACEHOLDER
from ai_launcher.core.models import Template, Tool
from ai_launcher.core.template import count_placeholders

logger = logging.getLogger(__name__)

_SAFE_TOOL_COMMAND_RE = re.compile(r"^[a-zA-Z0-9._\s-]+$")
_SAFE_TEMPLATE_COMMAND_RE = re.compile(r"^[a-zA-Z0-9._\s\-\"':,!?/\\|$@]+$")

DEFAULT_CONFIG: dict[str, list[Any]] = {"tools": [], "templates": []}


class ConfigError(RuntimeError):
    """Raised when the config file cannot be read, parsed or validated."""

    def __init__(self, message: str, errors: list["ConfigValidationError"] | None = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass(frozen=True)
class ConfigValidationError:
    """One problem in the config file, e.g. ``tools[0].name``."""

    path: str
    message: str


def _require_text(value: str, label: str) -> str:
    if not value.strip():
        raise ValueError(f"{label} is required and must be a non-empty string")
    return value


class ToolEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: StrictStr
    command: StrictStr
    description: StrictStr | None = None
    aliases: list[StrictStr] = Field(default_factory=list)
    prompt_command: StrictStr | None = Field(default=None, alias="promptCommand")
    prompt_use_stdin: StrictBool = Field(default=False, alias="promptUseStdin")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        return _require_text(value, "Tool name")

    @field_validator("command")
    @classmethod
    def _command_is_safe(cls, value: str) -> str:
        _require_text(value, "Tool command")
        if not _SAFE_TOOL_COMMAND_RE.match(value.strip()):
            raise ValueError("Tool command contains unsafe characters")
        return value

    @field_validator("prompt_command")
    @classmethod
    def _prompt_command_is_safe(cls, value: str | None) -> str | None:
        if value is not None and not _SAFE_TOOL_COMMAND_RE.match(value.strip()):
            raise ValueError("Tool prompt command contains unsafe characters")
        return value

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            command=self.command,
            description=self.description or "",
            aliases=tuple(self.aliases),
            prompt_command=self.prompt_command,
            prompt_use_stdin=self.prompt_use_stdin,
        )


class TemplateEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    command: StrictStr
    description: StrictStr
    aliases: list[StrictStr] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        return _require_text(value, "Template name")

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        return _require_text(value, "Template description")

    @field_validator("command")
    @classmethod
    def _command_is_valid(cls, value: str) -> str:
        _require_text(value, "Template command")
        if not _SAFE_TEMPLATE_COMMAND_RE.match(value.strip()):
            raise ValueError("Template command contains unsafe characters")
        if count_placeholders(value) > 1:
            raise ValueError(
                f"Template command should contain at most one {PLACEHOLDER} placeholder. "
                "Multiple placeholders are not supported."
            )
        return value

    def to_template(self) -> Template:
        return Template(
            name=self.name,
            command=self.command,
            description=self.description,
            aliases=tuple(self.aliases),
        )


class LauncherConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tools: list[ToolEntry]
    templates: list[TemplateEntry]


@dataclass
class LoadedConfig:
    """Validated config converted to domain objects."""

    tools: list[Tool] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)
    warnings: list[ConfigValidationError] = field(default_factory=list)


_SECTION_LABELS = {"tools": "Tool", "templates": "Template"}


def _format_loc(loc: tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def _issue_from_error(error: dict[str, Any]) -> ConfigValidationError:
    loc = tuple(error.get("loc", ()))
    kind = error.get("type", "")

    if not loc:
        return ConfigValidationError(path="", message="Config must be an object")

    section = str(loc[0])
    label = _SECTION_LABELS.get(section, "Config")

    if len(loc) == 1:
        return ConfigValidationError(path=section, message=f"Config must have a '{section}' array")
    if len(loc) == 2:
        return ConfigValidationError(path=_format_loc(loc), message=f"{label} must be an object")

    field_name = str(loc[2])
    if kind == "value_error":
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        return ConfigValidationError(path=_format_loc(loc[:3]), message=message)
    if field_name == "aliases":
        if len(loc) > 3:
            return ConfigValidationError(path=_format_loc(loc[:3]), message="All aliases must be strings")
        return ConfigValidationError(
            path=_format_loc(loc), message=f"{label} aliases must be an array of strings"
        )
    if field_name == "description" and section == "tools":
        return ConfigValidationError(path=_format_loc(loc), message="Tool description must be a string")
    if field_name in ("name", "command", "description"):
        return ConfigValidationError(
            path=_format_loc(loc),
            message=f"{label} {field_name} is required and must be a non-empty string",
        )
    return ConfigValidationError(path=_format_loc(loc), message=str(error.get("msg", "Invalid value")))


def validate_config(data: Any) -> list[ConfigValidationError]:
    """Return every schema problem in *data* (empty when valid)."""
    try:
        LauncherConfig.model_validate(data)
    except ValidationError as exc:
        return [_issue_from_error(error) for error in exc.errors()]
    return []


def collect_warnings(config: LauncherConfig) -> list[ConfigValidationError]:
    """Non-fatal findings, such as a template that starts with the placeholder."""
    warnings = []
    for index, template in enumerate(config.templates):
        if count_placeholders(template.command) == 1 and template.command.strip().startswith(PLACEHOLDER):
            warnings.append(
                ConfigValidationError(
                    path=f"templates[{index}].command",
                    message=(
                        f"Template command starts with {PLACEHOLDER}. Consider placing the "
                        "placeholder after the base command for clarity."
                    ),
                )
            )
    return warnings


def get_config_dir() -> Path:
    """Return the directory holding ``config.json``.

    Resolution order:
    1. ``AI_LAUNCHER_CONFIG_DIR`` environment variable
    2. ``%APPDATA%\\ai-launcher`` on Windows (via platformdirs)
    3. ``~/.config/ai-launcher`` elsewhere
    """
    if env_dir := os.environ.get(CONFIG_DIR_ENV_VAR):
        return Path(env_dir)

    if os.name == "nt":
        from platformdirs import user_config_dir

        return Path(user_config_dir("ai-launcher", appauthor=False))

    return Path.home() / ".config" / "ai-launcher"


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def format_validation_errors(
    errors: list[ConfigValidationError], config_path: Path | None = None
) -> str:
    lines = ["Config validation failed:", ""]
    for error in errors:
        location = f"  {error.path}: " if error.path else "  "
        lines.append(f"{location}{error.message}")
    lines.append("")
    lines.append(f"Config file: {config_path or get_config_path()}")
    return "\n".join(lines)


def _create_default_config(config_path: Path) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n", encoding="utf-8")
    logger.info("Created default config at %s", config_path)


def load_config(config_path: Path | None = None) -> LoadedConfig:
    """Load and validate the user config, creating it on first run."""
    path = config_path or get_config_path()

    if not path.exists():
        _create_default_config(path)
        return LoadedConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {path}\n{exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file contains invalid JSON: {path}\n{exc}") from exc

    errors = validate_config(data)
    if errors:
        raise ConfigError(format_validation_errors(errors, path), errors=errors)

    parsed = LauncherConfig.model_validate(data)
    warnings = collect_warnings(parsed)
    for warning in warnings:
        logger.warning("%s: %s", warning.path, warning.message)

    return LoadedConfig(
        tools=[entry.to_tool() for entry in parsed.tools],
        templates=[entry.to_template() for entry in parsed.templates],
        warnings=warnings,
    )


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ToolEntry",
    "TemplateEntry",
    "LauncherConfig",
    "LoadedConfig",
    "validate_config",
    "collect_warnings",
    "get_config_dir",
    "get_config_path",
    "format_validation_errors",
    "load_config",
]
