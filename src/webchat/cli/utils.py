"""Shared helpers for CLI commands."""

from __future__ import annotations

import click

from webchat.config.app import ChatClientConfig, load_config
from webchat.utils.logging import setup_logging


def prepare_command(
    ctx: click.Context,
    url: str | None = None,
    username: str | None = None,
    console_logging: bool = True,
) -> ChatClientConfig:
    """
    Load configuration for a subcommand and configure logging.

    Args:
        ctx: Click context carrying the group's ``config_file`` and ``verbose``
        url: Optional server URL override
        username: Optional username override
        console_logging: Log to stderr (disabled for the TUI)

    Returns:
        Validated configuration with CLI overrides applied

    Raises:
        click.ClickException: If the configuration is invalid
    """
    obj = ctx.ensure_object(dict)
    try:
        config = load_config(
            obj.get("config_file"),
            cli_overrides={"server.url": url, "username": username},
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from None

    setup_logging(config.logging, verbose=obj.get("verbose", False), console=console_logging)
    return config
