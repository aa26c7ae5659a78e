"""
Query Resolver: walks a value tree guided by a :class:`QueryPath`.

Resolution is recursive descent, one segment at a time, left to right:

- **Object** context: the segment names a key.
- **Array** context: the segment names a record by its identifier field, or
  is a wildcard (``*`` / ``all``) that *fans out*: the rest of the path is
  resolved independently against every element and the per-element results
  are collected into an array, in element order. The fan-out result is final.
- **Scalar** context with segments left: ``NotTraversable``.

The terminal segment may list several comma-separated selectors; the result is
then a new object holding exactly those fields, in the order written. A single
selector returns the sub-value itself. ``self`` returns the context unchanged.

Fan-out results
---------------
Every per-element result is an object that starts with the element's
identifier, so callers can tell entries apart::

    cores/*/usage            -> [{"name": "cpu0", "usage": 28.57}, ...]
    cores/all/usage,cur_freq -> [{"name": "cpu0", "usage": ..., "cur_freq": ...}, ...]

Object results get the identifier prepended (the element's identifier wins
over a same-named key in the result); anything else is wrapped under a label:
the terminal selector, the key in front of a nested wildcard, or else the key
of the array itself. Elements the remainder does not fit are skipped; only
when *no* element of a non-empty array fits does the fan-out fail, with the
first element's error.

Resolution is pure: it never mutates the tree, performs no I/O and never
raises for a bad path; all failures come back as :class:`Err`.
"""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType
from typing import Any

from asmo.core.query.errors import NotFound, NotTraversable, ResolveError, TooDeep
from asmo.core.query.path import PATH_SEPARATOR, QueryPath, Segment, parse_path
from asmo.core.result import Result, err, ok
from asmo.core.value import IDENTIFIER_FIELD, Value, identifier_of, is_array, is_object

#: Default maximum nesting of wildcard fan-out within one query.
DEFAULT_MAX_FANOUT_DEPTH = 4

_ABSENT: Any = object()


def _find_record(array: Sequence[Value], ident: str, identifier: str) -> Value:
    """Return the first record whose identifier equals ``ident``, or ``_ABSENT``."""
    for element in array:
        if identifier_of(element, identifier) == ident:
            return element
    return _ABSENT


class _Walk:
    """State of one resolution: the parsed path plus its policy knobs."""

    __slots__ = ("query", "max_depth", "identifier")

    def __init__(self, query: QueryPath, max_depth: int, identifier: str) -> None:
        self.query = query
        self.max_depth = max_depth
        self.identifier = identifier

    # ------------------------------ helpers ---------------------------------

    def _prefix(self, count: int) -> str:
        return self.query.prefix(count)

    def _selector_path(self, index: int, selector: str) -> str:
        """Path naming one selector of the terminal group at ``index``."""
        head = self._prefix(index)
        return f"{head}{PATH_SEPARATOR}{selector}" if head else selector

    def _label(self, start: int) -> str:
        """Key used to wrap a non-object fan-out result.

        Falls back to the key of the array being fanned out when the remainder
        names no key of its own (``vals/*/self``).
        """
        label: str | None = None
        for seg in self.query.segments[start:]:
            if seg.is_wildcard:
                break
            if not seg.is_multi and not seg.is_self:
                label = seg.selectors[0]
        if label is not None:
            return label
        owner = start - 2 if start >= 2 else start - 1
        return self.query.segments[owner].text

    def _tag(self, element: Value, result: Value, label: str) -> Value:
        """Attach the element's identifier to its fan-out result."""
        ident = identifier_of(element, self.identifier)
        out: dict[str, Value] = {} if ident is None else {self.identifier: ident}
        if is_object(result):
            for key, value in result.items():
                if key not in out:
                    out[key] = value
        else:
            out[label] = result
        return MappingProxyType(out)

    # ------------------------------ descent ---------------------------------

    def step(self, context: Value, index: int, depth: int) -> Result[Value, ResolveError]:
        segments = self.query.segments
        if index >= len(segments):
            return ok(context)
        seg = segments[index]
        if index == len(segments) - 1:
            return self._terminal(context, seg, index, depth)

        if is_object(context):
            if seg.text not in context:
                return err(NotFound(self._prefix(index + 1)))
            return self.step(context[seg.text], index + 1, depth)

        if is_array(context):
            if seg.is_wildcard:
                return self._fan_out(context, index, depth)
            element = _find_record(context, seg.text, self.identifier)
            if element is _ABSENT:
                return err(NotFound(self._prefix(index + 1)))
            return self.step(element, index + 1, depth)

        return err(NotTraversable(self._prefix(index + 1)))

    def _fan_out(
        self, array: Sequence[Value], index: int, depth: int
    ) -> Result[Value, ResolveError]:
        depth += 1
        if depth > self.max_depth:
            return err(TooDeep(self._prefix(index + 1), limit=self.max_depth))

        label = self._label(index + 1)
        results: list[Value] = []
        first_error: ResolveError | None = None
        for element in array:
            outcome = self.step(element, index + 1, depth)
            if outcome.is_err():
                failure = outcome.unwrap_err()
                if isinstance(failure, TooDeep):
                    return outcome
                if first_error is None:
                    first_error = failure
                continue
            results.append(self._tag(element, outcome.unwrap(), label))

        if first_error is not None and not results:
            return err(first_error)
        return ok(tuple(results))

    # ------------------------------ terminal --------------------------------

    def _terminal(
        self, context: Value, seg: Segment, index: int, depth: int
    ) -> Result[Value, ResolveError]:
        if seg.is_self:
            return ok(context)

        if is_object(context):
            if not seg.is_multi:
                key = seg.selectors[0]
                if key not in context:
                    return err(NotFound(self._prefix(index + 1)))
                return ok(context[key])
            picked: dict[str, Value] = {}
            for selector in seg.selectors:
                if selector not in context:
                    return err(NotFound(self._selector_path(index, selector)))
                picked[selector] = context[selector]
            return ok(MappingProxyType(picked))

        if is_array(context):
            if seg.is_wildcard:
                if depth + 1 > self.max_depth:
                    return err(TooDeep(self._prefix(index + 1), limit=self.max_depth))
                return ok(context)
            if not seg.is_multi:
                element = _find_record(context, seg.selectors[0], self.identifier)
                if element is _ABSENT:
                    return err(NotFound(self._prefix(index + 1)))
                return ok(element)
            records: dict[str, Value] = {}
            for selector in seg.selectors:
                element = _find_record(context, selector, self.identifier)
                if element is _ABSENT:
                    return err(NotFound(self._selector_path(index, selector)))
                records[selector] = element
            return ok(MappingProxyType(records))

        return err(NotTraversable(self._prefix(index + 1)))


def resolve(
    root: Value,
    path: QueryPath | str,
    *,
    max_depth: int = DEFAULT_MAX_FANOUT_DEPTH,
    identifier: str = IDENTIFIER_FIELD,
) -> Result[Value, ResolveError]:
    """
    Resolve ``path`` against ``root``.

    Parameters
    ----------
    root : Value
        Snapshot tree (normally ``Snapshot.tree``).
    path : QueryPath | str
        Parsed path, or raw text to parse with :func:`parse_path`.
    max_depth : int
        Maximum wildcard fan-out nesting; deeper queries fail with ``TooDeep``.
    identifier : str
        Key identifying records inside arrays.

    Returns
    -------
    Result[Value, ResolveError]
        ``Ok`` with the resolved value (sharing structure with ``root``), or
        ``Err`` with a :class:`NotFound`, :class:`NotTraversable` or
        :class:`TooDeep` record.

    Raises
    ------
    QueryPathError
        Only when ``path`` is raw text that is not valid percent-encoding;
        a parsed :class:`QueryPath` never raises.
    """
    query = parse_path(path) if isinstance(path, str) else path
    return _Walk(query, max_depth, identifier).step(root, 0, 0)


__all__ = ["DEFAULT_MAX_FANOUT_DEPTH", "resolve"]
