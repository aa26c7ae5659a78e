"""Unit tests for value-tree conversion, freezing and thawing."""

from __future__ import annotations

import dataclasses
import math
from enum import Enum
from typing import Any

import pytest
from pydantic import BaseModel, Field

from asmo.core.contracts.stats import BatteryStatus, CoreData, SystemStats
from asmo.core.value import (
    freeze,
    identifier_of,
    is_array,
    is_object,
    is_scalar,
    thaw,
    to_value,
)


class Mode(str, Enum):
    FAST = "fast"


class Level(Enum):
    HIGH = 3


@dataclasses.dataclass
class Gauge:
    name: str
    reading: float


class Wrapper(BaseModel):
    zeta: int = 1
    alpha: str = Field(default="a", serialization_alias="Alpha")
    gauges: list[CoreData] = Field(default_factory=list)


class Renders:
    def describe(self) -> Any:
        return {"kind": "custom", "values": (1, 2)}


def test_predicates() -> None:
    """Text is a scalar, never an array; mappings are objects."""
    assert is_object({"a": 1})
    assert is_array([1]) and is_array((1,))
    assert not is_array("abc")
    assert is_scalar(None) and is_scalar(True) and is_scalar(1.5) and is_scalar("x")
    assert not is_scalar([])


def test_identifier_of() -> None:
    assert identifier_of({"name": "cpu0", "usage": 1.0}) == "cpu0"
    assert identifier_of({"usage": 1.0}) is None
    assert identifier_of({"name": 7}) is None
    assert identifier_of("cpu0") is None
    assert identifier_of({"id": "x"}, identifier="id") == "x"


def test_enums_unwrap_to_their_values() -> None:
    """str-mixin enums must not leak through as enum members."""
    out = to_value({"mode": Mode.FAST, "level": Level.HIGH})
    assert out == {"mode": "fast", "level": 3}
    assert type(out["mode"]) is str  # type: ignore[index]


def test_model_declaration_order_and_aliases() -> None:
    """Pydantic fields keep declaration order and honour serialization aliases."""
    out = to_value(Wrapper(gauges=[CoreData(name="cpu0", usage=1.0)]))
    assert isinstance(out, dict)
    assert list(out) == ["zeta", "Alpha", "gauges"]
    assert out["gauges"][0]["name"] == "cpu0"  # type: ignore[index]


def test_system_stats_tree_shape() -> None:
    """The root record renders in declaration order with the battery enum unwrapped."""
    tree = SystemStats(battery_status=BatteryStatus.FULL).describe()
    assert isinstance(tree, dict)
    keys = list(tree)
    assert keys[0] == "manufacturer"
    assert keys[-1] == "cores"
    assert keys.index("battery_level") < keys.index("cpu_temp") < keys.index("brightness")
    assert tree["battery_status"] == "Full"
    assert tree["cores"] == []


def test_dataclass_and_describable() -> None:
    assert to_value(Gauge(name="p", reading=0.5)) == {"name": "p", "reading": 0.5}
    assert to_value(Renders()) == {"kind": "custom", "values": [1, 2]}


def test_float_normalization() -> None:
    """Non-finite floats become null; rounding applies only when asked."""
    assert to_value(math.nan) is None
    assert to_value(math.inf) is None
    assert to_value(28.571428) == pytest.approx(28.571428)
    assert to_value(28.571428, float_digits=2) == 28.57
    assert to_value({"a": [1.23456]}, float_digits=1) == {"a": [1.2]}


def test_mapping_keys_become_text() -> None:
    assert to_value({1: "one"}) == {"1": "one"}


def test_unsupported_type_is_rejected() -> None:
    with pytest.raises(TypeError):
        to_value(object())
    with pytest.raises(TypeError):
        to_value({"s": {1, 2}})


def test_freeze_is_deep_and_immutable() -> None:
    frozen = freeze({"a": {"b": [1, {"c": 2}]}})
    assert is_object(frozen)
    with pytest.raises(TypeError):
        frozen["a"] = 1  # type: ignore[index]
    inner = frozen["a"]["b"]  # type: ignore[index]
    assert isinstance(inner, tuple)
    with pytest.raises(TypeError):
        inner[1]["c"] = 3


def test_thaw_round_trips_to_plain_containers() -> None:
    source = {"a": {"b": [1, {"c": None}]}, "z": "x"}
    plain = thaw(freeze(source))
    assert plain == source
    assert type(plain) is dict and type(plain["a"]["b"]) is list
    assert list(plain) == ["a", "z"]
