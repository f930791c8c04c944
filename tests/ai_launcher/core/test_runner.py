"""Tests for launching tools and prompt injection."""

from __future__ import annotations

import io
import os
from pathlib import Path

import pytest

from ai_launcher.core.runner import (
    REQUIRES_INPUT_USAGE,
    SpawnResult,
    launch_tool,
    launch_tool_with_prompt,
    read_stdin,
    spawn_process,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="requires a POSIX shell")


class FakeSpawner:
    """Records spawn calls and returns a canned result."""

    def __init__(self, result: SpawnResult | None = None):
        self.calls: list[tuple[object, dict]] = []
        self.result = result or SpawnResult(returncode=0)

    def __call__(self, args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result


class TestLaunchTool:
    def test_runs_command_with_arguments(self):
        spawn = FakeSpawner()
        outcome = launch_tool("claude", ["--help"], spawn=spawn)
        assert outcome.exit_code == 0
        assert outcome.ok
        assert spawn.calls == [("claude --help", {"shell": True})]

    def test_rejects_unsafe_command(self):
        spawn = FakeSpawner()
        outcome = launch_tool("claude; rm -rf /", spawn=spawn)
        assert outcome.exit_code == 1
        assert outcome.error == "Invalid command format"
        assert spawn.calls == []

    def test_rejects_unsafe_arguments(self):
        spawn = FakeSpawner()
        outcome = launch_tool("claude", ["a;b"], spawn=spawn)
        assert outcome.exit_code == 1
        assert outcome.error == "Invalid argument format"
        assert spawn.calls == []

    def test_placeholder_requires_input(self):
        spawn = FakeSpawner()
        outcome = launch_tool("claude 'Explain: $@'", spawn=spawn)
        assert outcome.exit_code == 1
        assert outcome.error == "This template requires input."
        assert outcome.hints == [REQUIRES_INPUT_USAGE]
        assert spawn.calls == []

    def test_empty_stdin_does_not_count_as_input(self):
        outcome = launch_tool("claude 'Explain: $@'", stdin_content="", spawn=FakeSpawner())
        assert outcome.exit_code == 1

    def test_stdin_fills_placeholder(self):
        spawn = FakeSpawner()
        launch_tool("claude 'Explain: $@'", stdin_content="some diff", spawn=spawn)
        assert spawn.calls[0][0] == "claude 'Explain: some diff'"

    def test_stdin_is_appended_without_placeholder(self):
        spawn = FakeSpawner()
        launch_tool("claude", stdin_content="hello", spawn=spawn)
        assert spawn.calls[0][0] == "claude 'hello'"

    def test_stdin_quotes_cannot_break_out_of_template(self):
        spawn = FakeSpawner()
        launch_tool("claude 'Explain: $@'", stdin_content="x' ; rm -rf / ; echo '", spawn=spawn)
        assert spawn.calls[0][0] == "claude 'Explain: x'\\'' ; rm -rf / ; echo '\\'''"

    def test_stdin_whitespace_is_kept(self):
        spawn = FakeSpawner()
        launch_tool("claude 'Explain: $@'", stdin_content="line one\n  line two", spawn=spawn)
        assert spawn.calls[0][0] == "claude 'Explain: line one\n  line two'"

    def test_arguments_take_precedence_over_stdin(self):
        spawn = FakeSpawner()
        launch_tool("claude 'Explain: $@'", ["args"], stdin_content="stdin", spawn=spawn)
        assert spawn.calls[0][0] == "claude 'Explain: args'"

    def test_whitespace_is_collapsed(self):
        spawn = FakeSpawner()
        launch_tool("claude   --continue", spawn=spawn)
        assert spawn.calls[0][0] == "claude --continue"

    def test_child_status_is_propagated(self):
        outcome = launch_tool("claude", spawn=FakeSpawner(SpawnResult(returncode=5)))
        assert outcome.exit_code == 5
        assert outcome.error is None

    def test_spawn_error_is_exit_three(self):
        outcome = launch_tool("claude", spawn=FakeSpawner(SpawnResult(returncode=None, error="not found")))
        assert outcome.exit_code == 3
        assert outcome.error == "not found"

    def test_signal_is_exit_three(self):
        outcome = launch_tool("claude", spawn=FakeSpawner(SpawnResult(returncode=None, signal=9)))
        assert outcome.exit_code == 3
        assert outcome.error == "Process terminated by signal 9"


class TestLaunchToolWithPrompt:
    def test_prompt_is_quoted_argument(self):
        spawn = FakeSpawner()
        outcome = launch_tool_with_prompt("claude -p", "it's broken", spawn=spawn)
        assert outcome.exit_code == 0
        assert spawn.calls == [(["sh", "-c", "claude -p 'it'\\''s broken'"], {"capture_stdout": False})]

    def test_prompt_on_stdin(self):
        spawn = FakeSpawner()
        launch_tool_with_prompt("opencode run", "analyze", use_stdin=True, spawn=spawn)
        assert spawn.calls == [("opencode run", {"shell": True, "input": "analyze", "capture_stdout": False})]

    def test_rejects_unsafe_command(self):
        spawn = FakeSpawner()
        outcome = launch_tool_with_prompt("claude && ls", "x", spawn=spawn)
        assert outcome.exit_code == 1
        assert spawn.calls == []

    def test_output_file_is_written(self, tmp_path: Path):
        spawn = FakeSpawner(SpawnResult(returncode=0, stdout="# Report\n"))
        outcome = launch_tool_with_prompt("claude -p", "x", output_file="analysis.md", spawn=spawn, cwd=tmp_path)

        target = tmp_path / "analysis.md"
        assert outcome.exit_code == 0
        assert target.read_text(encoding="utf-8") == "# Report\n"
        assert outcome.notices == [f"Analysis saved to: {target.resolve()} (9 bytes)"]
        assert spawn.calls[0][1] == {"capture_stdout": True}

    def test_output_is_written_to_the_validated_path(self, tmp_path: Path):
        spawn = FakeSpawner(SpawnResult(returncode=0, stdout="report"))
        outcome = launch_tool_with_prompt(
            "claude -p", "x", output_file="  out.md ", spawn=spawn, cwd=tmp_path
        )

        target = tmp_path / "out.md"
        assert outcome.exit_code == 0
        assert target.read_text(encoding="utf-8") == "report"
        assert sorted(path.name for path in tmp_path.iterdir()) == ["out.md"]
        assert outcome.notices == [f"Analysis saved to: {target.resolve()} (6 bytes)"]

    def test_invalid_output_path_is_rejected_before_spawning(self, tmp_path: Path):
        spawn = FakeSpawner()
        outcome = launch_tool_with_prompt("claude -p", "x", output_file="../escape.md", spawn=spawn, cwd=tmp_path)
        assert outcome.exit_code == 1
        assert "cannot escape" in outcome.error
        assert spawn.calls == []

    def test_write_failure_is_exit_two(self, tmp_path: Path, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(Path, "write_text", refuse)
        spawn = FakeSpawner(SpawnResult(returncode=0, stdout="text"))
        outcome = launch_tool_with_prompt("claude -p", "x", output_file="out.md", spawn=spawn, cwd=tmp_path)
        assert outcome.exit_code == 2
        assert outcome.error.startswith("Failed to write output to")
        assert outcome.hints == ["read-only file system"]

    def test_spawn_failure_is_exit_three(self):
        outcome = launch_tool_with_prompt("claude -p", "x", spawn=FakeSpawner(SpawnResult(returncode=None, signal=15)))
        assert outcome.exit_code == 3


@posix_only
class TestSpawnProcess:
    """Real child processes through the default spawner."""

    def test_exit_status(self):
        assert spawn_process("exit 3", shell=True).returncode == 3

    def test_capture_stdout(self):
        result = spawn_process(["sh", "-c", "printf hello"], capture_stdout=True)
        assert result.returncode == 0
        assert result.stdout == "hello"

    def test_input_is_piped(self):
        result = spawn_process("cat", shell=True, input="piped text", capture_stdout=True)
        assert result.stdout == "piped text"

    def test_missing_executable(self):
        result = spawn_process(["definitely-not-an-ai-launcher-binary"])
        assert result.failed_to_run
        assert result.returncode is None
        assert result.error

    def test_signal_death(self):
        result = spawn_process(["sh", "-c", "kill -9 $$"])
        assert result.signal == 9
        assert result.failed_to_run


@posix_only
class TestPipedInputThroughShell:
    """Piped text reaches the child literally, whatever the template quoting."""

    def capture(self):
        results = []

        def spawn(args, **kwargs):
            result = spawn_process(args, capture_stdout=True, **kwargs)
            results.append(result)
            return result

        return spawn, results

    @pytest.mark.parametrize(
        "template",
        ["echo 'Review: $@'", 'echo "Review: $@"', "echo Review: $@", "echo Review:"],
    )
    def test_shell_syntax_in_stdin_is_not_executed(self, tmp_path: Path, template):
        marker = tmp_path / "pwned"
        payload = f"x' ; touch {marker} ; echo \" $(touch {marker}) `touch {marker}` '"
        spawn, results = self.capture()

        outcome = launch_tool(template, stdin_content=payload, spawn=spawn)

        assert outcome.exit_code == 0
        assert not marker.exists()
        assert results[0].stdout == f"Review: {payload}\n"


class TestReadStdin:
    def test_piped_content_is_stripped(self):
        assert read_stdin(io.StringIO("  hello \n")) == "hello"

    def test_terminal_returns_none(self):
        class FakeTty(io.StringIO):
            def isatty(self):
                return True

        assert read_stdin(FakeTty("ignored")) is None

    def test_closed_stream_returns_none(self):
        stream = io.StringIO("data")
        stream.close()
        assert read_stdin(stream) is None
