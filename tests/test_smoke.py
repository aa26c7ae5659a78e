"""
Smoke tests for package structure and availability.

Scope
-----
These tests strictly verify that the package is installed correctly in the
environment and that top-level modules are importable.
"""

from __future__ import annotations

import importlib

import pytest

from asmo import __version__


def test_package_importable() -> None:
    """Ensure the top-level package can be imported."""
    mod = importlib.import_module("asmo")
    assert mod is not None


def test_version_is_set() -> None:
    """Ensure the package exposes a valid version string."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0


@pytest.mark.parametrize(  # type: ignore[misc]
    "module",
    [
        "asmo.core.value",
        "asmo.core.snapshot",
        "asmo.core.query",
        "asmo.monitor",
        "asmo.api.app",
    ],
)
def test_submodules_importable(module: str) -> None:
    """Every layer imports on its own, without touching real sensors."""
    assert importlib.import_module(module) is not None


def test_cli_module_exposes_app() -> None:
    """
    Ensure the CLI module exposes the Typer 'app' object.

    The presence of 'app' is required for the entry point defined in
    pyproject.toml (`asmo.cli:app`).
    """
    cli = importlib.import_module("asmo.cli")
    assert hasattr(cli, "app"), "asmo.cli must expose an 'app' Typer object."
