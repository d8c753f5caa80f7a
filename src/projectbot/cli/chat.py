"""Interactive chat commands."""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from datetime import timedelta
from typing import Callable, Iterator

import click
from rich.panel import Panel

from projectbot.cli.options import backend_options, open_backend
from projectbot.cli.ui import console, print_response
from projectbot.config import settings
from projectbot.conversation import CLI_CONVERSATION_ID, Orchestrator
from projectbot.conversation.commands import WELCOME_MESSAGE
from projectbot.observability.logging import get_logger
from projectbot.observability.metrics import start_metrics_exporter

logger = get_logger(__name__)

_EXIT_WORDS = {"quit", "exit"}
GOODBYE = "👋 Thanks for using Nobl9 Project Bot! Goodbye!"

SignalHandler = Callable[[int, object], None]


def _orchestrator(backend, cancel_event: threading.Event | None = None) -> Orchestrator:
    ttl_seconds = settings.conversation_ttl_seconds
    return Orchestrator(
        backend,
        cancel_event=cancel_event,
        conversation_ttl=timedelta(seconds=ttl_seconds) if ttl_seconds else None,
    )


def interrupt_handler(cancel_event: threading.Event, busy: threading.Event) -> SignalHandler:
    """SIGINT handler for the REPL.

    Always sets ``cancel_event`` so a retry wait in progress ends at once. While
    no message is being handled it also raises KeyboardInterrupt to leave the
    blocking read.
    """

    def _handler(signum: int, frame: object) -> None:
        cancel_event.set()
        if not busy.is_set():
            raise KeyboardInterrupt

    return _handler


@contextmanager
def _sigint(handler: SignalHandler) -> Iterator[None]:
    # Signal handlers can only be installed from the main thread.
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_repl(orchestrator: Orchestrator, cancel_event: threading.Event) -> None:
    """Read lines from stdin until quit/exit/EOF or Ctrl+C, forwarding each to the bot."""
    stdin = click.get_text_stream("stdin")
    busy = threading.Event()
    console.print(Panel(WELCOME_MESSAGE, title="Nobl9 Project Bot", border_style="cyan"))
    # Registers the CLI conversation so the first real message isn't treated as a greeting.
    orchestrator.reply(CLI_CONVERSATION_ID, "start")

    with _sigint(interrupt_handler(cancel_event, busy)):
        try:
            while True:
                console.print("> ", end="")
                line = stdin.readline()
                if line == "":
                    console.print()
                    break
                text = line.strip()
                if not text:
                    continue
                if text.lower() in _EXIT_WORDS:
                    break
                busy.set()
                try:
                    response = orchestrator.reply(CLI_CONVERSATION_ID, text)
                finally:
                    busy.clear()
                print_response(response)
                if cancel_event.is_set():
                    console.print("Shutting down...")
                    break
        except KeyboardInterrupt:
            cancel_event.set()
            console.print("\nShutting down...")
        finally:
            orchestrator.end_conversation(CLI_CONVERSATION_ID)
    console.print(GOODBYE)


@click.command()
@backend_options
def chat(**backend_kwargs) -> None:
    """Start an interactive session."""
    with open_backend(**backend_kwargs) as backend:
        start_metrics_exporter(settings.metrics_port)
        cancel_event = threading.Event()
        logger.info("chat_started", backend=type(backend).__name__)
        run_repl(_orchestrator(backend, cancel_event), cancel_event)


@click.command()
@click.argument("message", nargs=-1, required=True)
@backend_options
def ask(message: tuple[str, ...], **backend_kwargs) -> None:
    """Send a single MESSAGE and print the reply."""
    with open_backend(**backend_kwargs) as backend:
        orchestrator = _orchestrator(backend)
        orchestrator.reply(CLI_CONVERSATION_ID, "start")
        response = orchestrator.reply(CLI_CONVERSATION_ID, " ".join(message))
    print_response(response)


def register(cli: click.Group) -> None:
    cli.add_command(chat)
    cli.add_command(ask)
