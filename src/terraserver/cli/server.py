"""Control commands against a deployed server: start, stop, status."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ._common import TERRASERVER_HOME, console, print_result


def _client(url: Optional[str], password: Optional[str], home: str, authorized: bool):
    from ..client import ServerApiClient
    from ..config import PASSWORD_FILE, home_dir

    if authorized and not password:
        stored = home_dir(Path(home)) / PASSWORD_FILE
        if stored.exists():
            password = stored.read_text(encoding="utf-8").strip()
    return ServerApiClient(base_url=url, password=password)


def _run(action: str, url, password, home, authorized: bool) -> None:
    client = _client(url, password, home, authorized)
    try:
        reply = getattr(client, action)()
    except RuntimeError as exc:
        console.print(f"[bold red]{action} failed:[/] {exc}")
        sys.exit(1)
    print_result(action, reply)
    if not reply.ok:
        sys.exit(1)


_url_option = click.option(
    "--url", envvar="TERRASERVER_API_URL", default=None, help="API Gateway stage URL.",
)
_home_option = click.option(
    "--home", default=TERRASERVER_HOME, type=click.Path(), help="terraserver home directory.",
)
_password_option = click.option(
    "--password", envvar="PASSWORD", default=None,
    help="Gateway password. Defaults to the stored one.",
)


def register_server_commands(main: click.Group) -> None:
    """Register start/stop/status on the main CLI group."""

    @main.command()
    @_url_option
    @_password_option
    @_home_option
    def start(url: Optional[str], password: Optional[str], home: str):
        """Start the game server instance."""
        _run("start", url, password, home, authorized=True)

    @main.command()
    @_url_option
    @_password_option
    @_home_option
    def stop(url: Optional[str], password: Optional[str], home: str):
        """Stop the game server instance."""
        _run("stop", url, password, home, authorized=True)

    @main.command()
    @_url_option
    def status(url: Optional[str]):
        """Show the game server instance's state. No password needed."""
        _run("status", url, None, TERRASERVER_HOME, authorized=False)
