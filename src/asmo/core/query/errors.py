"""
Resolution error taxonomy.

Every way a query can fail is one of these frozen records, returned inside
:class:`~asmo.core.result.Err` rather than raised. Each knows the HTTP status
it maps to, so the request handler needs no per-kind branching.

- :class:`NotFound`: a key or identifier named in the path does not exist.
- :class:`NotTraversable`: the path continues past a scalar leaf.
- :class:`TooDeep`: wildcard fan-out nesting exceeds the configured limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

#: Static hint attached to every error body served over HTTP.
ERROR_HINT = "GET / for available endpoints"


@dataclass(frozen=True, slots=True)
class ResolveError:
    """Base record: the offending path prefix, ``a/b/c`` without a leading slash."""

    path: str

    kind: ClassVar[str] = "error"
    status_code: ClassVar[int] = 404

    @property
    def message(self) -> str:
        return self.kind.replace("_", " ")

    def to_body(self) -> dict[str, str]:
        """Render the JSON body served to clients."""
        return {"error": self.message, "path": f"/{self.path}", "hint": ERROR_HINT}


@dataclass(frozen=True, slots=True)
class NotFound(ResolveError):
    kind: ClassVar[str] = "not_found"


@dataclass(frozen=True, slots=True)
class NotTraversable(ResolveError):
    kind: ClassVar[str] = "not_traversable"


@dataclass(frozen=True, slots=True)
class TooDeep(ResolveError):
    """Fan-out nesting went past ``limit`` levels."""

    limit: int = 0

    kind: ClassVar[str] = "too_deep"
    status_code: ClassVar[int] = 400

    @property
    def message(self) -> str:
        return f"wildcard nesting exceeds {self.limit} levels"


__all__ = ["ERROR_HINT", "NotFound", "NotTraversable", "ResolveError", "TooDeep"]
