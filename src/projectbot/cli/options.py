"""Backend options shared by commands that talk to Nobl9."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator

import click

from projectbot.backend import ProjectBackend, build_backend
from projectbot.config import get_settings, resolve_credentials, save_credentials
from projectbot.errors import BotError

F = Callable[..., Any]


def backend_options(func: F) -> F:
    """Attach credential/backend flags to a click command."""
    options = [
        click.option("--client-id", default=None, help="Nobl9 client ID"),
        click.option("--client-secret", default=None, help="Nobl9 client secret"),
        click.option("--org", "organization", default=None, help="Nobl9 organization"),
        click.option("--url", default=None, help="Nobl9 base URL (default: https://app.nobl9.com)"),
        click.option(
            "--config",
            "config_path",
            default=None,
            type=click.Path(dir_okay=False),
            help="Path to credentials file (default: ~/.nobl9/config.json)",
        ),
        click.option("--fake", is_flag=True, help="Use the in-memory backend (no API calls)"),
        click.option(
            "--save-config",
            is_flag=True,
            help="Persist the resolved credentials to the credentials file",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def make_backend(
    *,
    client_id: str | None,
    client_secret: str | None,
    organization: str | None,
    url: str | None,
    config_path: str | None,
    fake: bool,
    save_config: bool,
) -> ProjectBackend:
    """Build the backend or fail the command with a readable message."""
    settings = get_settings()
    if fake:
        settings = settings.model_copy(update={"backend_provider": "fake"})
    if config_path:
        settings = settings.model_copy(update={"nobl9_config_path": config_path})

    overrides = {
        "client_id": client_id,
        "client_secret": client_secret,
        "organization": organization,
        "url": url,
    }
    try:
        if save_config and settings.backend_provider == "real":
            creds = resolve_credentials(settings, overrides=overrides).require_complete()
            save_credentials(creds, settings.nobl9_config_path or None)
        return build_backend(settings, overrides=overrides)
    except BotError as exc:
        raise click.ClickException(exc.message) from exc


@contextmanager
def open_backend(**backend_kwargs: Any) -> Iterator[ProjectBackend]:
    """Build the backend for one command and release its connections afterwards."""
    backend = make_backend(**backend_kwargs)
    try:
        yield backend
    finally:
        close = getattr(backend, "close", None)
        if callable(close):
            close()
