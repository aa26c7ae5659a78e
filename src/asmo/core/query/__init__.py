"""Path-query language over the snapshot value tree.

Currently exposed:

- :func:`parse_path` / :class:`QueryPath`: URL text to segments.
- :func:`resolve`: walk a tree, returning ``Result[Value, ResolveError]``.
- :func:`enumerate_endpoints` / :func:`build_index`: the discovery index.
"""

from __future__ import annotations

from .errors import ERROR_HINT, NotFound, NotTraversable, ResolveError, TooDeep
from .index import build_index, enumerate_endpoints
from .path import QueryPath, QueryPathError, Segment, parse_path, parse_raw_path
from .resolver import DEFAULT_MAX_FANOUT_DEPTH, resolve

__all__ = [
    "DEFAULT_MAX_FANOUT_DEPTH",
    "ERROR_HINT",
    "NotFound",
    "NotTraversable",
    "QueryPath",
    "QueryPathError",
    "ResolveError",
    "Segment",
    "TooDeep",
    "build_index",
    "enumerate_endpoints",
    "parse_path",
    "parse_raw_path",
    "resolve",
]
