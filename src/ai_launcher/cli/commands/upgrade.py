"""Upgrade check against the latest GitHub release."""

from __future__ import annotations

import logging
import ssl
import sys
from pathlib import Path

import httpx
import truststore
import typer
from packaging.version import InvalidVersion, Version
from rich.panel import Panel

from ai_launcher import __version__
from ai_launcher.cli.helpers import console
from ai_launcher.core.config import GITHUB_REPO

logger = logging.getLogger(__name__)

RELEASES_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
PACKAGE_NAME = "ai-launcher"

app = typer.Typer(
    name="upgrade",
    help="Check for a newer ai-launcher release",
    add_completion=False,
)


def fetch_latest_version(client: httpx.Client | None = None) -> str:
    """Return the version of the latest published release (without a ``v`` prefix)."""
    if client is None:
        client = httpx.Client(verify=truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT))

    response = client.get(
        RELEASES_URL,
        timeout=30,
        follow_redirects=True,
        headers={"Accept": "application/vnd.github+json"},
    )
    if response.status_code != 200:
        raise RuntimeError(f"GitHub API returned {response.status_code} for {RELEASES_URL}")
    try:
        tag = response.json()["tag_name"]
    except (ValueError, KeyError) as exc:
        raise RuntimeError(f"Failed to parse release JSON: {exc}") from exc
    return str(tag).lstrip("v")


def is_newer(latest: str, current: str = __version__) -> bool:
    return Version(latest) > Version(current)


def upgrade_instruction(prefix: str | None = None) -> str:
    """Command that upgrades the running installation."""
    prefix = prefix if prefix is not None else sys.prefix
    if "pipx" in Path(prefix).parts:
        return f"pipx upgrade {PACKAGE_NAME}"
    return f"{Path(sys.executable).name} -m pip install --upgrade {PACKAGE_NAME}"


@app.command()
def upgrade(
    check: bool = typer.Option(False, "--check", help="Only report whether an update is available"),
) -> None:
    """Compare the installed version with the latest release."""
    console.print("Checking for updates...")
    try:
        latest = fetch_latest_version()
        newer = is_newer(latest)
    except (httpx.HTTPError, RuntimeError, InvalidVersion) as exc:
        logger.debug("Upgrade check failed", exc_info=True)
        console.print("[red]Error fetching release information[/red]")
        console.print(Panel(str(exc), title="Fetch Error", border_style="red"))
        raise typer.Exit(1)

    if not newer:
        console.print(f"[green]Already on the latest version (v{__version__})[/green]")
        return

    console.print(f"New version available: v{__version__} → [bold cyan]v{latest}[/bold cyan]")
    if check:
        return
    console.print(f"💡 Upgrade with: [bold]{upgrade_instruction()}[/bold]")


def run_upgrade(args: list[str]) -> int:
    """Run the upgrade app on *args* and return its exit status."""
    try:
        app(args=args, prog_name="ai upgrade")
    except SystemExit as exc:
        code = exc.code
        if code is None:
            return 0
        return code if isinstance(code, int) else 1
    return 0


__all__ = ["app", "fetch_latest_version", "is_newer", "upgrade_instruction", "run_upgrade"]
