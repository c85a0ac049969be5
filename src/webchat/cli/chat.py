"""Chat commands: interactive UI, one-shot send, and listen."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import click

from webchat.cli.utils import prepare_command
from webchat.config.app import ChatClientConfig
from webchat.errors import ChatServiceError
from webchat.service import ChatService

url_option = click.option("--url", help="WebSocket server URL (overrides config)")
username_option = click.option("--username", "-u", help="Display name (overrides config)")


async def send_and_collect(
    config: ChatClientConfig,
    text: str,
    wait: int = 0,
    timeout: float = 5.0,
) -> list[str]:
    """
    Connect, send one message and collect up to ``wait`` incoming messages.

    Collection stops early if the server closes the connection or
    ``timeout`` seconds elapse.
    """
    inbox: asyncio.Queue[str | None] = asyncio.Queue()
    received: list[str] = []

    async with ChatService(config.server) as chat:
        chat.on_message(inbox.put_nowait)
        chat.on_closed(lambda: inbox.put_nowait(None))

        await chat.connect(config.server.url, config.username)
        await chat.send(text)

        if wait > 0:
            try:
                async with asyncio.timeout(timeout):
                    while len(received) < wait:
                        message = await inbox.get()
                        if message is None:
                            break
                        received.append(message)
            except TimeoutError:
                pass

        await chat.disconnect()

    return received


async def listen_until_closed(config: ChatClientConfig, emit: Callable[[str], None]) -> None:
    """Print every incoming message until the server closes the connection."""
    closed = asyncio.Event()

    async with ChatService(config.server) as chat:
        chat.on_message(emit)
        chat.on_closed(closed.set)
        await chat.connect(config.server.url, config.username)
        await closed.wait()


@click.command()
@url_option
@username_option
@click.pass_context
def ui(ctx: click.Context, url: str | None, username: str | None) -> None:
    """Launch the interactive chat UI."""
    from webchat.tui.app import run_tui

    config = prepare_command(ctx, url, username, console_logging=False)
    run_tui(config)


@click.command()
@click.argument("text")
@url_option
@username_option
@click.option(
    "--wait",
    "-w",
    default=0,
    show_default=True,
    type=click.IntRange(min=0),
    help="Number of incoming messages to print before disconnecting",
)
@click.option(
    "--timeout",
    "-t",
    default=5.0,
    show_default=True,
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds to wait for incoming messages",
)
@click.pass_context
def send(
    ctx: click.Context,
    text: str,
    url: str | None,
    username: str | None,
    wait: int,
    timeout: float,
) -> None:
    """Send TEXT as one chat message."""
    config = prepare_command(ctx, url, username)
    try:
        replies = asyncio.run(send_and_collect(config, text, wait, timeout))
    except ChatServiceError as e:
        raise click.ClickException(str(e)) from None

    for reply in replies:
        click.echo(reply)


@click.command()
@url_option
@username_option
@click.pass_context
def listen(ctx: click.Context, url: str | None, username: str | None) -> None:
    """Print incoming messages until the server disconnects (Ctrl-C to stop)."""
    config = prepare_command(ctx, url, username)
    try:
        asyncio.run(listen_until_closed(config, click.echo))
    except ChatServiceError as e:
        raise click.ClickException(str(e)) from None
    except KeyboardInterrupt:
        click.echo("Stopped.", err=True)
        return

    click.echo("Connection closed by server.", err=True)
