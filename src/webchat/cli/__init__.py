"""
webchat CLI entry point.
"""

import click

from .chat import listen, send, ui
from .config import init_config


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to custom configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """webchat - terminal client for WebSocket chat servers."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config
    ctx.obj["verbose"] = verbose


cli.add_command(ui)
cli.add_command(send)
cli.add_command(listen)
cli.add_command(init_config)
