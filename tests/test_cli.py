# tests/test_cli.py
"""
Tests for the asmo command-line interface (CLI).

Scope
-----
1.  **Command Registration**: `serve`, `snapshot` and `--help` are wired up.
2.  **Snapshot Rendering**: the measured tree (or the part `--path` selects)
    is printed as JSON.
3.  **Error Handling**: unresolvable paths exit 1, undecodable ones exit 2,
    and a failing measurement is reported instead of crashing.

We use `typer.testing.CliRunner` to invoke the app in-process, and patch
`Monitor.from_settings` so no real sensors are read.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from asmo.cli import app
from asmo.core.contracts.stats import CoreData, SystemStats
from asmo.core.snapshot import SnapshotStore


class FixedMonitor:
    """Stand-in producer that always publishes the same record."""

    def __init__(self) -> None:
        self.calls = 0

    def run_once(self, store: SnapshotStore) -> Any:
        self.calls += 1
        stats = SystemStats(
            battery_level=77,
            cores=[CoreData(name="cpu0", usage=12.5), CoreData(name="cpu1", usage=50.0)],
        )
        return store.publish(stats.describe(2))


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create a fresh CliRunner for each test."""
    return CliRunner()


def _invoke(runner: CliRunner, args: list[str]) -> Any:
    with patch("asmo.cli.Monitor.from_settings", return_value=FixedMonitor()):
        return runner.invoke(app, args)


def test_cli_help_shows_usage(runner: CliRunner) -> None:
    """Invoking --help should print usage instructions and exit 0."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, f"Help failed: {result.output}"
    assert "asmo" in result.output
    assert "serve" in result.output
    assert "snapshot" in result.output


def test_snapshot_prints_whole_tree(runner: CliRunner) -> None:
    result = _invoke(runner, ["snapshot", "--no-warmup"])
    assert result.exit_code == 0, f"CLI Failed with Output:\n{result.output}"
    data = json.loads(result.output)
    assert data["battery_level"] == 77
    assert list(data)[0] == "manufacturer"


def test_snapshot_resolves_path(runner: CliRunner) -> None:
    result = _invoke(runner, ["snapshot", "--no-warmup", "--path", "cores/*/usage"])
    assert result.exit_code == 0, f"CLI Failed with Output:\n{result.output}"
    assert json.loads(result.output) == [
        {"name": "cpu0", "usage": 12.5},
        {"name": "cpu1", "usage": 50.0},
    ]


def test_snapshot_warmup_samples_twice(runner: CliRunner) -> None:
    monitor = FixedMonitor()
    with (
        patch("asmo.cli.Monitor.from_settings", return_value=monitor),
        patch("asmo.cli.time.sleep") as mock_sleep,
    ):
        result = runner.invoke(app, ["snapshot", "-q", "battery_level"])
    assert result.exit_code == 0, f"CLI Failed with Output:\n{result.output}"
    assert monitor.calls == 2
    mock_sleep.assert_called_once()
    assert result.output.strip() == "77"


def test_snapshot_unknown_path_exits_1(runner: CliRunner) -> None:
    result = _invoke(runner, ["snapshot", "--no-warmup", "--path", "cores/cpu9"])
    assert result.exit_code == 1, f"Expected 1, got {result.exit_code}:\n{result.output}"
    assert "/cores/cpu9" in result.output
    assert "GET / for available endpoints" in result.output


def test_snapshot_bad_encoding_exits_2(runner: CliRunner) -> None:
    result = _invoke(runner, ["snapshot", "--no-warmup", "--path", "%FF"])
    assert result.exit_code == 2
    assert "Bad path" in result.output


def test_snapshot_handles_measurement_crash(runner: CliRunner) -> None:
    """Exceptions while measuring are caught and displayed nicely."""
    broken = MagicMock()
    broken.run_once.side_effect = RuntimeError("sensor bus wedged")
    with patch("asmo.cli.Monitor.from_settings", return_value=broken):
        result = runner.invoke(app, ["snapshot", "--no-warmup"])

    assert (
        result.exit_code == 1
    ), f"Expected crash (1), got {result.exit_code}. Output:\n{result.output}"
    assert "Measurement Error" in result.output
    assert "sensor bus wedged" in result.output


def test_serve_delegates_to_server_main(runner: CliRunner) -> None:
    with patch("asmo.api.server.main") as mock_main:
        result = runner.invoke(app, ["serve", "--port", "8123", "--host", "127.0.0.1"])
    assert result.exit_code == 0, f"CLI Failed with Output:\n{result.output}"
    mock_main.assert_called_once_with(host="127.0.0.1", port=8123, reload=False)
