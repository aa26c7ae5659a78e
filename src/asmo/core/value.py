"""
Value Tree: the schema-free, order-preserving data model snapshots are made of.

A value is one of::

    None | bool | int | float | str          (scalars)
    Mapping[str, Value]                      (object, insertion-ordered keys)
    Sequence[Value]                          (array, element order)

Any structured measurement record is converted into this form exactly once,
by :func:`to_value`, before it is published. From then on the resolver walks
it generically; the only field name it knows is :data:`IDENTIFIER_FIELD`, the
key carried by every record inside an array so that records can be selected by
name instead of position.

Immutability
------------
Published trees are *frozen*: objects become :class:`types.MappingProxyType`
views over private dicts and arrays become tuples. Readers therefore cannot
mutate a snapshot that other requests are reading. :func:`thaw` produces a
plain dict/list copy for serialization.

Ordering
--------
Conversion preserves declaration order of model fields and insertion order of
mappings. That order is what callers get back for whole-object or whole-array
retrieval, so it is part of the contract.
"""

from __future__ import annotations

import dataclasses
import enum
import math
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any, Protocol, TypeAlias, TypeGuard, runtime_checkable

from pydantic import BaseModel

Scalar: TypeAlias = None | bool | int | float | str
Value: TypeAlias = Scalar | Mapping[str, "Value"] | Sequence["Value"]

#: Key every record inside an array carries for name-based lookup.
IDENTIFIER_FIELD: str = "name"


@runtime_checkable
class Describable(Protocol):
    """Anything that can render itself as a :data:`Value`."""

    def describe(self) -> Value: ...


# --------------------------------------------------------------------------- #
# Variant predicates
# --------------------------------------------------------------------------- #


def is_object(value: Any) -> TypeGuard[Mapping[str, Any]]:
    """Return True for the Object variant."""
    return isinstance(value, Mapping)


def is_array(value: Any) -> TypeGuard[Sequence[Any]]:
    """Return True for the Array variant (text is a scalar, not an array)."""
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def is_scalar(value: Any) -> bool:
    """Return True for Null, Bool, Number and Text."""
    return value is None or isinstance(value, bool | int | float | str)


def identifier_of(value: Any, identifier: str = IDENTIFIER_FIELD) -> str | None:
    """Return the identifier of an array record, or None if it has none."""
    if not is_object(value):
        return None
    ident = value.get(identifier)
    return ident if isinstance(ident, str) else None


# --------------------------------------------------------------------------- #
# Conversion
# --------------------------------------------------------------------------- #


def _number(value: float, float_digits: int | None) -> float | None:
    """Normalize a float: non-finite values become null, then round."""
    if not math.isfinite(value):
        return None
    if float_digits is not None:
        return round(value, float_digits)
    return value


def to_value(obj: Any, *, float_digits: int | None = None) -> Value:
    """Convert ``obj`` into a plain (unfrozen) value tree.

    Supported inputs, in lookup order:

    - :class:`enum.Enum` members, converted through their ``value``;
    - scalars;
    - pydantic models, field by field in declaration order (serialization
      aliases are honoured so the tree matches the model's JSON form);
    - dataclass instances, field by field in declaration order;
    - objects implementing :class:`Describable`;
    - mappings (keys coerced to ``str``) and lists/tuples.

    Raises
    ------
    TypeError
        For any other type; the conversion is total over the supported set
        and never guesses.
    """
    # str/int-mixin enums must unwrap before the scalar checks match them.
    if isinstance(obj, enum.Enum):
        return to_value(obj.value, float_digits=float_digits)
    if obj is None or isinstance(obj, bool | str | int):
        return obj
    if isinstance(obj, float):
        return _number(obj, float_digits)
    if isinstance(obj, BaseModel):
        out: dict[str, Value] = {}
        for name, info in type(obj).model_fields.items():
            key = info.serialization_alias or info.alias or name
            out[key] = to_value(getattr(obj, name), float_digits=float_digits)
        return out
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_value(getattr(obj, f.name), float_digits=float_digits)
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, Describable):
        return to_value(obj.describe(), float_digits=float_digits)
    if isinstance(obj, Mapping):
        return {str(k): to_value(v, float_digits=float_digits) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [to_value(v, float_digits=float_digits) for v in obj]
    raise TypeError(f"cannot convert {type(obj).__name__!r} into a value tree")


def freeze(value: Value) -> Value:
    """Return a deep-frozen copy of ``value`` (MappingProxyType / tuple)."""
    if is_object(value):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if is_array(value):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Value) -> Any:
    """Return a deep plain copy of ``value`` (dict / list), JSON-ready."""
    if is_object(value):
        return {k: thaw(v) for k, v in value.items()}
    if is_array(value):
        return [thaw(v) for v in value]
    return value


__all__ = [
    "IDENTIFIER_FIELD",
    "Describable",
    "Scalar",
    "Value",
    "freeze",
    "identifier_of",
    "is_array",
    "is_object",
    "is_scalar",
    "thaw",
    "to_value",
]
