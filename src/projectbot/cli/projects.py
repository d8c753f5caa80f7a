"""Project CLI commands."""

from __future__ import annotations

import click

from projectbot.cli.options import backend_options, open_backend
from projectbot.cli.ui import console, render_projects_table
from projectbot.conversation.retry import with_retry
from projectbot.errors import BotError


@click.group()
def projects() -> None:
    """Inspect Nobl9 projects."""


@projects.command("list")
@backend_options
def list_projects(**backend_kwargs) -> None:
    """List projects in the organization."""
    with open_backend(**backend_kwargs) as backend:
        try:
            items = with_retry(backend.list_projects, name="list_projects")
        except BotError as exc:
            raise click.ClickException(f"Failed to list projects: {exc}") from exc
    if not items:
        console.print("[yellow]No projects found in your organization.[/yellow]")
        return
    render_projects_table(items)


def register(cli: click.Group) -> None:
    cli.add_command(projects)
