"""projectbot command-line interface.

Commands live in submodules under `projectbot.cli.*` and register themselves
on the root group.
"""

from __future__ import annotations

import click

from projectbot.app_version import get_app_version
from projectbot.observability import init_observability


@click.group()
@click.version_option(version=get_app_version(), prog_name="projectbot")
def cli() -> None:
    """Nobl9 Project Bot - create projects and assign roles conversationally."""
    init_observability()


def _register_commands() -> None:
    from projectbot.cli import chat, config, projects

    chat.register(cli)
    config.register(cli)
    projects.register(cli)


_register_commands()


if __name__ == "__main__":
    cli()
