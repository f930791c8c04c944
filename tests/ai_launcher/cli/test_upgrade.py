"""Tests for the upgrade check."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from ai_launcher import __version__
from ai_launcher.cli.commands.upgrade import (
    RELEASES_URL,
    app,
    fetch_latest_version,
    is_newer,
    run_upgrade,
    upgrade_instruction,
)

runner = CliRunner()


def mock_client(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {"tag_name": "v9.9.9"}
    client = MagicMock()
    client.get.return_value = response
    return client


class TestFetchLatestVersion:
    def test_strips_v_prefix(self):
        client = mock_client()
        assert fetch_latest_version(client) == "9.9.9"
        assert client.get.call_args.args[0] == RELEASES_URL

    def test_http_error_status(self):
        with pytest.raises(RuntimeError, match="GitHub API returned 404"):
            fetch_latest_version(mock_client(status_code=404))

    def test_missing_tag(self):
        with pytest.raises(RuntimeError, match="Failed to parse release JSON"):
            fetch_latest_version(mock_client(payload={"name": "release"}))


class TestVersionHelpers:
    def test_is_newer(self):
        assert is_newer("1.0.0", "0.9.0")
        assert not is_newer("1.0.0", "1.0.0")
        assert not is_newer("0.1.0", "0.2.0")

    def test_pipx_install(self):
        assert upgrade_instruction("/home/me/.local/pipx/venvs/ai-launcher") == "pipx upgrade ai-launcher"

    def test_pip_install(self):
        assert upgrade_instruction("/usr/local").endswith("-m pip install --upgrade ai-launcher")


class TestUpgradeCommand:
    def test_update_available(self):
        with patch("ai_launcher.cli.commands.upgrade.fetch_latest_version", return_value="99.0.0"):
            result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "New version available" in result.stdout
        assert "Upgrade with:" in result.stdout

    def test_check_only_reports(self):
        with patch("ai_launcher.cli.commands.upgrade.fetch_latest_version", return_value="99.0.0"):
            result = runner.invoke(app, ["--check"])
        assert result.exit_code == 0
        assert "New version available" in result.stdout
        assert "Upgrade with:" not in result.stdout

    def test_already_latest(self):
        with patch("ai_launcher.cli.commands.upgrade.fetch_latest_version", return_value=__version__):
            result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "Already on the latest version" in result.stdout

    def test_network_failure(self):
        with patch(
            "ai_launcher.cli.commands.upgrade.fetch_latest_version",
            side_effect=httpx.ConnectError("offline"),
        ):
            result = runner.invoke(app, [])
        assert result.exit_code == 1
        assert "Error fetching release information" in result.stdout

    def test_run_upgrade_returns_status(self):
        with patch("ai_launcher.cli.commands.upgrade.fetch_latest_version", return_value=__version__):
            assert run_upgrade([]) == 0
        with patch("ai_launcher.cli.commands.upgrade.fetch_latest_version", side_effect=RuntimeError("boom")):
            assert run_upgrade([]) == 1
