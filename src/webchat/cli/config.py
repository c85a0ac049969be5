"""Configuration file command."""

from pathlib import Path

import click

from webchat.config.app import DEFAULT_CONFIG_FILE, generate_default_config


@click.command("init-config")
@click.option(
    "--path",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Where to write the configuration file",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(config_path: str, force: bool) -> None:
    """Write a configuration file populated with defaults."""
    target = Path(config_path).expanduser()
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")

    generate_default_config(config_path)
    click.echo(f"Wrote default configuration to {target}")
