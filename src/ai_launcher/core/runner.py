"""Launch a resolved tool as a child process.

Every entry point returns a ``LaunchOutcome`` rather than exiting; the CLI
layer turns the outcome into output and a process exit code. Exit codes are
a contract for calling scripts:

* 0 - success or cancellation (otherwise the child's own status)
* 1 - validation failure (command, arguments, output path, missing input)
* 2 - the captured output could not be written
* 3 - the child could not be spawned or died from a signal
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence, TextIO

from ai_launcher.core.config import (
    EXIT_FILE_WRITE_ERROR,
    EXIT_PROCESS_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
)
from ai_launcher.core.safety import (
    is_safe_command,
    shell_quote_prompt,
    validate_arguments,
    validate_output_path,
)
from ai_launcher.core.template import build_template_command, has_placeholder, quote_for_template

logger = logging.getLogger(__name__)

REQUIRES_INPUT_USAGE = "Usage: ai <template> <args...>  OR  <command> | ai <template>"


@dataclass
class LaunchOutcome:
    """Exit code plus what the CLI should tell the user."""

    exit_code: int
    error: str | None = None
    hints: list[str] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SpawnResult:
    """Normalized result of a finished (or failed) child process."""

    returncode: int | None
    stdout: str = ""
    signal: int | None = None
    error: str | None = None

    @property
    def failed_to_run(self) -> bool:
        return self.error is not None or self.signal is not None


Spawner = Callable[..., SpawnResult]


def spawn_process(
    args: str | Sequence[str],
    *,
    shell: bool = False,
    input: str | None = None,
    capture_stdout: bool = False,
) -> SpawnResult:
    """Run a child synchronously, inheriting whatever is not piped."""
    logger.debug("Spawning %r (shell=%s, stdin=%s, capture=%s)", args, shell, input is not None, capture_stdout)
    try:
        process = subprocess.Popen(
            args if isinstance(args, str) else list(args),
            shell=shell,
            stdin=subprocess.PIPE if input is not None else None,
            stdout=subprocess.PIPE if capture_stdout else None,
            text=True,
        )
    except OSError as exc:
        return SpawnResult(returncode=None, error=str(exc))

    with process:
        while True:
            try:
                stdout, _ = process.communicate(input)
                break
            except KeyboardInterrupt:
                # The child received the same SIGINT and decides whether to exit.
                continue

    returncode = process.returncode
    if returncode < 0:
        return SpawnResult(returncode=None, stdout=stdout or "", signal=-returncode)
    return SpawnResult(returncode=returncode, stdout=stdout or "")


def _process_failure(result: SpawnResult) -> LaunchOutcome:
    message = result.error or f"Process terminated by signal {result.signal if result.signal is not None else 'unknown'}"
    return LaunchOutcome(exit_code=EXIT_PROCESS_ERROR, error=message)


def _child_status(result: SpawnResult) -> int:
    return result.returncode if result.returncode is not None else EXIT_SUCCESS


def _split_words(command: str) -> list[str]:
    return [part for part in command.split() if part]


def read_stdin(stream: TextIO | None = None) -> str | None:
    """Return piped stdin content, or ``None`` for an interactive terminal."""
    stream = stream if stream is not None else sys.stdin
    try:
        if stream is None or stream.isatty():
            return None
        return stream.read().strip()
    except (OSError, ValueError) as exc:
        logger.debug("Could not read stdin: %s", exc)
        return None


def launch_tool(
    command: str,
    extra_args: Sequence[str] = (),
    stdin_content: str | None = None,
    spawn: Spawner = spawn_process,
) -> LaunchOutcome:
    """Run *command* with trailing arguments or piped input."""
    if not is_safe_command(command):
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error="Invalid command format")

    if not validate_arguments(list(extra_args)):
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error="Invalid argument format")

    has_args = len(extra_args) > 0
    has_stdin = bool(stdin_content)

    if has_placeholder(command) and not has_args and not has_stdin:
        return LaunchOutcome(
            exit_code=EXIT_VALIDATION_ERROR,
            error="This template requires input.",
            hints=[REQUIRES_INPUT_USAGE],
        )

    parts = _split_words(command)
    if not parts:
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error="Empty command")
    base_command = " ".join(parts)

    if has_args:
        final_command = " ".join(_split_words(build_template_command(base_command, list(extra_args))))
    elif has_stdin:
        # Piped text is not allow-listed, so it is quoted for its position
        # and keeps its own whitespace.
        quoted = quote_for_template(base_command, stdin_content or "")
        final_command = build_template_command(base_command, [quoted])
    else:
        final_command = base_command

    result = spawn(final_command, shell=True)
    if result.failed_to_run:
        return _process_failure(result)
    return LaunchOutcome(exit_code=_child_status(result))


def _write_output(path: Path, output: str) -> LaunchOutcome | None:
    try:
        path.write_text(output, encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to write %s: %s", path, exc)
        return LaunchOutcome(
            exit_code=EXIT_FILE_WRITE_ERROR,
            error=f"Failed to write output to {path}",
            hints=[str(exc)],
        )
    return None


def launch_tool_with_prompt(
    command: str,
    prompt: str,
    use_stdin: bool = False,
    output_file: str | None = None,
    spawn: Spawner = spawn_process,
    cwd: Path | None = None,
) -> LaunchOutcome:
    """Run *command* with *prompt* injected.

    The prompt is either piped on stdin or appended as one single-quoted
    argument run through ``sh -c``. With *output_file* the child's stdout is
    captured and written there.
    """
    if not is_safe_command(command):
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error="Invalid command format")

    parts = _split_words(command)
    if not parts:
        return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error="Empty command")

    destination: Path | None = None
    if output_file:
        problem = validate_output_path(output_file, cwd=cwd)
        if problem:
            return LaunchOutcome(exit_code=EXIT_VALIDATION_ERROR, error=problem)
        destination = ((cwd or Path.cwd()) / os.path.normpath(output_file.strip())).resolve()

    capture = destination is not None
    if use_stdin:
        result = spawn(" ".join(parts), shell=True, input=prompt, capture_stdout=capture)
    else:
        final_command = f"{command} {shell_quote_prompt(prompt)}"
        result = spawn(["sh", "-c", final_command], capture_stdout=capture)

    if result.failed_to_run:
        return _process_failure(result)

    if destination is None:
        return LaunchOutcome(exit_code=_child_status(result))

    write_failure = _write_output(destination, result.stdout)
    if write_failure is not None:
        return write_failure

    size = len(result.stdout.encode("utf-8"))
    return LaunchOutcome(
        exit_code=_child_status(result),
        notices=[f"Analysis saved to: {destination} ({size} bytes)"],
    )


__all__ = [
    "LaunchOutcome",
    "SpawnResult",
    "Spawner",
    "spawn_process",
    "read_stdin",
    "launch_tool",
    "launch_tool_with_prompt",
]
