"""Tests for PATH probing and ccs profile discovery."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

from ai_launcher.core import detect
from ai_launcher.core.models import Tool

CCS_OUTPUT = """\
\x1b[1m┌──────────┬──────────┬────────┐\x1b[0m
│ API      │ Model    │ Status │
├──────────┼──────────┼────────┤
│ glm      │ glm-4.6  │ [OK]   │
│ mm       │ minimax  │ [OK]   │
│ kimi     │ k2       │ [MISSING] │
└──────────┴──────────┴────────┘
"""


class TestParseCcsApiList:
    def test_keeps_ok_rows(self):
        assert detect.parse_ccs_api_list(CCS_OUTPUT) == ["glm", "mm"]

    def test_ascii_borders(self):
        output = "| API | Model | Status |\n| glm | glm-4 | [OK] |\n| mm | minimax | [ERR] |\n"
        assert detect.parse_ccs_api_list(output) == ["glm"]

    def test_empty_output(self):
        assert detect.parse_ccs_api_list("") == []

    def test_strip_ansi(self):
        assert detect.strip_ansi("\x1b[32mgreen\x1b[0m") == "green"


class TestCommandExists:
    def test_rejects_unsafe_names_without_probing(self):
        with patch("ai_launcher.core.detect.shutil.which") as which:
            assert detect.command_exists("rm -rf") is False
            assert detect.command_exists("") is False
            assert detect.command_exists("a" * 101) is False
            which.assert_not_called()

    def test_uses_which(self):
        with patch("ai_launcher.core.detect.shutil.which", return_value="/usr/bin/claude"):
            assert detect.command_exists("claude") is True
        with patch("ai_launcher.core.detect.shutil.which", return_value=None):
            assert detect.command_exists("claude") is False


class TestDetectInstalledTools:
    def test_only_installed_known_tools(self):
        installed = {"claude", "amp"}
        with patch("ai_launcher.core.detect.command_exists", side_effect=lambda name: name in installed):
            tools = detect.detect_installed_tools()
        assert [tool.name for tool in tools] == ["claude", "amp"]

    def test_ccs_adds_profiles_and_providers(self):
        installed = {"ccs"}
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=CCS_OUTPUT, stderr="")
        with patch("ai_launcher.core.detect.command_exists", side_effect=lambda name: name in installed), patch(
            "ai_launcher.core.detect.subprocess.run", return_value=completed
        ):
            tools = detect.detect_installed_tools()

        names = [tool.name for tool in tools]
        assert names[:3] == ["ccs", "ccs:glm", "ccs:mm"]
        assert "ccs:agy" in names
        assert next(tool for tool in tools if tool.name == "ccs:mm").command == "ccs mm"

    def test_ccs_probe_timeout_is_tolerated(self):
        with patch(
            "ai_launcher.core.detect.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ccs", timeout=3),
        ):
            assert detect.detect_ccs_profiles() == []

    def test_ccs_probe_failure_exit(self):
        completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="boom")
        with patch("ai_launcher.core.detect.subprocess.run", return_value=completed):
            assert detect.detect_ccs_profiles() == []


class TestMergeTools:
    def test_configured_first(self):
        configured = [Tool(name="mine", command="my-ai")]
        detected = [Tool(name="claude", command="claude")]
        assert [tool.name for tool in detect.merge_tools(configured, detected)] == ["mine", "claude"]

    def test_name_collision_drops_detected(self):
        configured = [Tool(name="Claude", command="claude --continue")]
        detected = [Tool(name="claude", command="claude")]
        assert detect.merge_tools(configured, detected) == configured

    def test_command_collision_drops_detected(self):
        configured = [Tool(name="c", command="CLAUDE")]
        detected = [Tool(name="claude", command="claude")]
        assert detect.merge_tools(configured, detected) == configured
