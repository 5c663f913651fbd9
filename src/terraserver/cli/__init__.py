"""
terraserver CLI — deploy and drive the game server.

The main Click group is defined here and each command group registers
itself from its own module.

Entry point: terraserver.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="terraserver")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def main(verbose: bool):
    """terraserver — a Terraria server you can switch on and off."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .deploy import register_deploy_commands
from .server import register_server_commands

register_deploy_commands(main)
register_server_commands(main)
