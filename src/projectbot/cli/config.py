"""Configuration CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from projectbot.cli.ui import console
from projectbot.config import get_settings, resolve_credentials, settings
from projectbot.errors import BotError


def _mask(secret: str) -> str:
    if not secret:
        return "-"
    return f"{secret[:2]}{'*' * 6}" if len(secret) > 4 else "*" * 6


@click.group()
def config() -> None:
    """Inspect configuration."""


@config.command("show")
def config_show() -> None:
    """Show effective configuration (secrets masked)."""
    try:
        creds = resolve_credentials(get_settings())
    except BotError as exc:
        raise click.ClickException(exc.message) from exc

    table = Table(title="Nobl9 Project Bot Configuration", show_lines=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Environment", settings.environment)
    table.add_row("Backend", settings.backend_provider)
    table.add_row("Nobl9 URL", creds.url)
    table.add_row("Organization", creds.organization or "-")
    table.add_row("Client ID", creds.client_id or "-")
    table.add_row("Client Secret", _mask(creds.client_secret))
    table.add_row("Credentials File", settings.nobl9_config_path or "~/.nobl9/config.json")
    table.add_row("Log Level", settings.log_level)
    table.add_row("Conversation TTL (s)", str(settings.conversation_ttl_seconds))
    table.add_row("Metrics Port", str(settings.metrics_port or "disabled"))

    console.print(table)


def register(cli: click.Group) -> None:
    cli.add_command(config)
