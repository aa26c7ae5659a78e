"""Small readers for procfs/sysfs pseudo-files.

Every helper raises on failure (``OSError`` for unreadable files,
``ValueError`` for unparsable content); deciding what a failure means is the
caller's job.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

_CORE_DIR_RE = re.compile(r"^cpu(\d+)$")

#: Exceptions a single read may raise without aborting a refresh cycle.
READ_ERRORS: tuple[type[Exception], ...] = (OSError, ValueError, subprocess.SubprocessError)


def read_text(path: Path) -> str:
    """Return the stripped content of ``path``."""
    return path.read_text(encoding="utf-8", errors="replace").strip()


def read_float(path: Path) -> float:
    """Return the first whitespace-separated token of ``path`` as a float."""
    text = read_text(path)
    if not text:
        raise ValueError(f"{path} is empty")
    return float(text.split()[0])


def read_int(path: Path) -> int:
    """Return the first whitespace-separated token of ``path`` as an int."""
    return int(read_float(path))


def first_float(text: str) -> float:
    """Parse the first token of ``text`` as a float (``"42 kB"`` -> 42.0)."""
    parts = text.split()
    if not parts:
        raise ValueError("no numeric token")
    return float(parts[0])


def core_index(name: str) -> int | None:
    """Return N for ``cpuN`` directory names, None for anything else."""
    match = _CORE_DIR_RE.match(name)
    return int(match.group(1)) if match else None


def run_command(*args: str, timeout: float = 2.0) -> str:
    """Run a short helper command and return its stripped stdout.

    Raises ``OSError`` when the binary is missing and
    ``subprocess.SubprocessError`` on timeout or non-zero exit.
    """
    completed = subprocess.run(
        list(args), capture_output=True, text=True, timeout=timeout, check=True
    )
    return completed.stdout.strip()


__all__ = [
    "READ_ERRORS",
    "core_index",
    "first_float",
    "read_float",
    "read_int",
    "read_text",
    "run_command",
]
