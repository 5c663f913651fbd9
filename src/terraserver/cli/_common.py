"""Shared utilities for the CLI command modules.

Provides the Rich console instance and state formatting helpers.
"""

from __future__ import annotations

from rich.console import Console

from .. import TERRASERVER_HOME
from ..models import ApiResult, InstanceState

console = Console()

__all__ = ["TERRASERVER_HOME", "console", "state_icon", "print_result"]


def state_icon(result: str) -> str:
    """Map an instance state name to Rich markup.

    Args:
        result: The ``result`` field from a control route.

    Returns:
        str: Rich markup string for the state.
    """
    return {
        InstanceState.RUNNING.value: "[bold green]RUNNING[/]",
        InstanceState.PENDING.value: "[bold yellow]PENDING[/]",
        InstanceState.STOPPING.value: "[bold yellow]STOPPING[/]",
        InstanceState.STOPPED.value: "[bold red]STOPPED[/]",
        InstanceState.SHUTTING_DOWN.value: "[bold red]SHUTTING DOWN[/]",
        InstanceState.TERMINATED.value: "[bold red]TERMINATED[/]",
    }.get(result, f"[dim]{result.upper()}[/]")


def print_result(action: str, reply: ApiResult) -> None:
    """Print one control route reply."""
    if reply.ok:
        console.print(f"  {action}: {state_icon(reply.result)}")
    elif reply.status_code == 404:
        console.print(f"  {action}: [yellow]instance not found in reply[/]")
    else:
        console.print(f"  {action}: [bold red]server error[/] [dim]({reply.result})[/]")
