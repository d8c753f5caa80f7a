"""Shared CLI UI helpers (Rich formatting)."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from rich.console import Console
from rich.table import Table
from rich.text import Text

from projectbot.backend.base import Project

console = Console()


def print_response(response: str) -> None:
    """Print a bot response verbatim (no Rich markup interpretation)."""
    console.print(Text(response))
    console.print()


def render_projects_table(projects: Iterable[Project]) -> None:
    """Render a table of projects using Rich."""
    table = Table(title="Nobl9 Projects", show_lines=False)
    table.add_column("Name", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Owner", style="magenta")
    table.add_column("Created", style="white")

    for project in projects:
        created = project.created_at
        created_str = (
            created.isoformat(timespec="seconds") if isinstance(created, datetime) else "-"
        )
        table.add_row(project.name, project.description or "-", project.owner or "-", created_str)

    console.print(table)
