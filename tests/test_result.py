"""Unit tests for the lightweight Result utilities."""

from __future__ import annotations

import pytest

from asmo.core.result import Err, Ok, Result, err, ok


def test_ok_map_keeps_values_typed() -> None:
    r: Result[int, str] = ok(10)
    r2 = r.map(lambda x: x + 5).map(lambda x: x * 2)
    assert r2.is_ok() and not r2.is_err()
    assert r2.unwrap() == 30


def test_err_passes_through_map() -> None:
    """`Err` skips the mapped function and keeps its payload."""
    calls: list[int] = []
    r: Result[int, str] = err("boom")
    r2 = r.map(lambda x: calls.append(x) or x)
    assert r2.is_err()
    assert isinstance(r2, Err) and r2.unwrap_err() == "boom"
    assert calls == []


def test_unwrap_variants_and_defaults() -> None:
    """Unwrap behavior: default value and explicit error raising."""
    assert ok("x").unwrap() == "x"
    assert ok("x").unwrap(default="fallback") == "x"
    assert err("e").unwrap(default="fallback") == "fallback"

    with pytest.raises(RuntimeError):
        err("e").unwrap()
    with pytest.raises(RuntimeError):
        ok(1).unwrap_err()


def test_none_is_a_valid_success_value() -> None:
    """A JSON null leaf resolves to `Ok(None)`, which must not look like a miss."""
    r: Result[None, str] = ok(None)
    assert r.is_ok()
    assert r.unwrap() is None
    assert r.unwrap(default="fallback") is None
    assert isinstance(r, Ok) and r.value is None
