"""Typed Result container for resolution outcomes.

Motivation
----------
A malformed or unknown query path is an ordinary client condition, not an
exceptional one. The resolver reports it as a value, so the request handler
turns it into a 404 without a try/except around the hot path.

Each variant implements the operations itself (no ``isinstance`` dispatch in
the base class); the base only declares the interface:

- introspection: ``is_ok`` / ``is_err``
- unwraps: ``unwrap`` / ``unwrap_err``
- ``map``, which transforms the success value and passes errors through

Example
-------
>>> from asmo.core.result import ok, err, Result
>>> def lookup(tree: dict[str, int], key: str) -> Result[int, str]:
...     return ok(tree[key]) if key in tree else err(key)
>>> lookup({"battery_level": 100}, "battery_level").map(lambda v: v // 10).unwrap()
10
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")

# Resolved values may legitimately be None (a JSON null leaf), so "no default
# given" needs its own marker.
_MISSING: Any = object()


class Result(ABC, Generic[T, E]):
    """Either a success (:class:`Ok`) or a failure (:class:`Err`)."""

    __slots__ = ()

    @abstractmethod
    def is_ok(self) -> bool: ...

    def is_err(self) -> bool:
        return not self.is_ok()

    @abstractmethod
    def unwrap(self, default: T = _MISSING) -> T:
        """Success value; on ``Err`` return ``default`` or raise ``RuntimeError``."""

    @abstractmethod
    def unwrap_err(self) -> E:
        """Error value; raise ``RuntimeError`` on ``Ok``."""

    @abstractmethod
    def map(self, fn: Callable[[T], U]) -> Result[U, E]: ...


@dataclass(frozen=True, slots=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self, default: T = _MISSING) -> T:
        return self.value

    def unwrap_err(self) -> E:
        raise RuntimeError(f"unwrap_err() called on {self!r}")

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        return Ok(fn(self.value))


@dataclass(frozen=True, slots=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def unwrap(self, default: T = _MISSING) -> T:
        if default is _MISSING:
            raise RuntimeError(f"unwrap() called on {self!r}")
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        return Err(self.error)


def ok(value: T) -> Result[T, E]:
    """Build an :class:`Ok`, typed as the base for call-site inference."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Build an :class:`Err`, typed as the base for call-site inference."""
    return Err(error)


__all__ = ["Err", "Ok", "Result", "err", "ok"]
