"""Command line interface for the TestRail assistant."""

from __future__ import annotations

import asyncio
import logging
import signal

import click
import structlog

from comms.terminal.client import ChatClient
from comms.terminal.session import ChatLog
from shared.config import get_settings
from shared.schemas.messages import Credentials, Role


def run_async(coro):
    """Run an async function in a new event loop."""
    return asyncio.run(coro)


def _credentials_options(f):
    f = click.option("--api-key", envvar="TESTRAIL_API_KEY", prompt=True, hide_input=True,
                     help="TestRail API key or password.")(f)
    f = click.option("--email", envvar="TESTRAIL_EMAIL", prompt=True, help="TestRail user email.")(f)
    f = click.option("--url", envvar="TESTRAIL_URL", prompt=True,
                     help="TestRail base URL, e.g. https://example.testrail.io")(f)
    f = click.option("--portal", default=None, help="Portal base URL (defaults to PORTAL_URL).")(f)
    return f


@click.group()
def cli():
    """TestRail assistant CLI."""
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to PORTAL_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (defaults to PORTAL_PORT).")
def serve(host: str | None, port: int | None):
    """Run the portal API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "portal.main:app",
        host=host or settings.portal_host,
        port=port or settings.portal_port,
        log_config=None,
    )


@cli.command()
@_credentials_options
def verify(portal: str | None, url: str, email: str, api_key: str):
    """Check TestRail credentials through the portal."""
    credentials = _build_credentials(url, email, api_key)
    client = ChatClient(portal or get_settings().portal_url)
    ok, message = run_async(client.verify(credentials))
    if not ok:
        raise click.ClickException(message)
    click.echo(message)


@cli.command()
@_credentials_options
def chat(portal: str | None, url: str, email: str, api_key: str):
    """Chat with the assistant. Ctrl+C cancels the reply in progress."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.ERROR),
    )
    credentials = _build_credentials(url, email, api_key)
    renderer = _StreamRenderer()
    client = ChatClient(
        portal or get_settings().portal_url,
        credentials=credentials,
        on_update=renderer,
    )
    click.echo(client.log.entries[0].text)
    run_async(_chat_loop(client, renderer))


def _build_credentials(url: str, email: str, api_key: str) -> Credentials:
    try:
        return Credentials(url=url, email=email, api_key=api_key)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


class _StreamRenderer:
    """Prints the newest turn incrementally as the log changes."""

    def __init__(self):
        self.turn: int | None = None
        # characters already printed, per assistant entry of the turn
        self._printed: list[int] = []
        self._status_shown: set[str] = set()

    def start(self, turn: int) -> None:
        self.turn = turn
        self._printed.clear()
        self._status_shown.clear()

    def __call__(self, log: ChatLog) -> None:
        if self.turn is None:
            return
        replies = [e for e in log.turn_entries(self.turn) if e.role == Role.ASSISTANT]
        for entry in log.turn_entries(self.turn):
            if entry.role == Role.STATUS and entry.text not in self._status_shown:
                self._status_shown.add(entry.text)
                click.echo(click.style(entry.text, dim=True))
        for n, entry in enumerate(replies):
            if n == len(self._printed):
                if n:
                    click.echo()
                self._printed.append(0)
            done = self._printed[n]
            if len(entry.text) > done:
                click.echo(entry.text[done:], nl=False)
                self._printed[n] = len(entry.text)


async def _chat_loop(client: ChatClient, renderer: _StreamRenderer) -> None:
    loop = asyncio.get_running_loop()
    while True:
        try:
            text = await asyncio.to_thread(click.prompt, "\nYou", prompt_suffix="> ")
        except (click.Abort, EOFError):
            click.echo()
            return
        if text.strip().lower() in {"exit", "quit"}:
            return

        renderer.start(client.log.next_turn)
        task = asyncio.create_task(client.send(text))
        loop.add_signal_handler(signal.SIGINT, client.cancel)
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        finally:
            loop.remove_signal_handler(signal.SIGINT)
        click.echo()


if __name__ == "__main__":
    cli()
