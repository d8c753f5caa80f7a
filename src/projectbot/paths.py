"""Path helpers for locating repo resources.

The bot runs both as an editable install (`pip install -e .`) and from a source
checkout with `PYTHONPATH=src`. `pyproject.toml` lives outside the package tree,
so we walk up from this file to find the repo root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def get_repo_root() -> Path:
    """Return the repository root (directory containing `pyproject.toml`).

    Falls back to the current working directory if a repo root cannot be found.
    """
    start = Path(__file__).resolve()
    for parent in (start, *start.parents):
        if (parent / "pyproject.toml").is_file():
            return parent
    return Path.cwd()


def default_credentials_path() -> Path:
    """Return `~/.nobl9/config.json`, the credentials file the Nobl9 tooling uses."""
    return Path.home() / ".nobl9" / "config.json"
