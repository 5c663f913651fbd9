"""Deployment commands: synth, password, config."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import yaml
from rich.panel import Panel

from ._common import TERRASERVER_HOME, console


def register_deploy_commands(main: click.Group) -> None:
    """Register synth, password and the config group."""

    @main.command()
    @click.option("--home", default=TERRASERVER_HOME, type=click.Path())
    @click.option("--outdir", default="cdk.out", type=click.Path(), help="Cloud assembly directory.")
    def synth(home: str, outdir: str):
        """Synthesize the CloudFormation template for the deployment.

        \b
        Deploy the result with the CDK toolkit:

            cdk deploy --app cdk.out
        """
        from ..config import load_config, resolve_password
        from ..provisioning.stack import synth as synth_stack

        home_path = Path(home).expanduser()
        config = load_config(home_path)
        assembly, resources = synth_stack(config, resolve_password(home_path), outdir=outdir)

        stacks = ", ".join(s.stack_name for s in assembly.stacks)
        console.print(
            Panel(
                f"[bold]{config.app_name}[/] server in [cyan]{config.region}[/]\n"
                f"Stacks: {stacks}\n"
                f"Routes: {', '.join(sorted(r for r in resources.functions if r != 'auth'))}\n"
                f"[dim]Assembly written to {assembly.directory}[/]",
                title="terraserver synth",
                border_style="bright_blue",
            )
        )

    @main.command()
    @click.option("--home", default=TERRASERVER_HOME, type=click.Path())
    def password(home: str):
        """Print the gateway password, generating it on first use."""
        from ..config import resolve_password

        click.echo(resolve_password(Path(home).expanduser()))

    @main.group()
    def config():
        """Show or change deployment settings."""

    @config.command("show")
    @click.option("--home", default=TERRASERVER_HOME, type=click.Path())
    def config_show(home: str):
        """Print the effective configuration as YAML."""
        from ..config import load_config

        cfg = load_config(Path(home).expanduser())
        click.echo(yaml.dump(cfg.model_dump(), default_flow_style=False).rstrip())

    @config.command("set")
    @click.argument("key")
    @click.argument("value")
    @click.option("--home", default=TERRASERVER_HOME, type=click.Path())
    def config_set(key: str, value: str, home: str):
        """Set one configuration field.

        Example:

            terraserver config set instance_id i-0123456789abcdef0
        """
        from pydantic import ValidationError

        from ..config import load_config, save_config
        from ..models import ServerConfig

        home_path = Path(home).expanduser()
        if key not in ServerConfig.model_fields:
            console.print(f"[bold red]Unknown setting:[/] {key}")
            sys.exit(1)

        data = load_config(home_path).model_dump()
        data[key] = value
        try:
            cfg = ServerConfig(**data)
        except ValidationError as exc:
            console.print(f"[bold red]Invalid value for {key}:[/] {exc.errors()[0]['msg']}")
            sys.exit(1)

        path = save_config(cfg, home_path)
        console.print(f"  [green]{key}[/] = {getattr(cfg, key)}  [dim]({path})[/]")
