"""Unit tests for app version helper."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError


def _missing(_name: str) -> str:
    raise PackageNotFoundError()


def test_get_app_version_returns_string() -> None:
    from projectbot.app_version import get_app_version

    version = get_app_version("projectbot")
    assert isinstance(version, str)
    assert version


def test_get_app_version_falls_back_to_pyproject(monkeypatch, tmp_path) -> None:
    from projectbot import app_version as mod

    monkeypatch.setattr(mod, "_dist_version", _missing)
    monkeypatch.setattr(mod, "get_repo_root", lambda: tmp_path)
    (tmp_path / "pyproject.toml").write_bytes(b'[project]\nversion = "1.2.3"\n')

    assert mod.get_app_version("missing") == "1.2.3"


def test_get_app_version_returns_default_on_read_error(monkeypatch, tmp_path) -> None:
    from projectbot import app_version as mod

    monkeypatch.setattr(mod, "_dist_version", _missing)
    monkeypatch.setattr(mod, "get_repo_root", lambda: tmp_path)
    (tmp_path / "pyproject.toml").write_text("not toml")

    assert mod.get_app_version("missing") == "0.0.0"
