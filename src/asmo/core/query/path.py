"""
Query paths: parsing URL text into resolvable segments.

Grammar
-------
::

    path      := segment ( "/" segment )*
    segment   := literal | wildcard          (non-terminal)
    terminal  := selector ( "," selector )*  (last segment only)
    wildcard  := "*" | "all"

Empty segments (leading, trailing or doubled slashes) are dropped, so ``""``,
``"/"`` and ``"//"`` all parse to the empty path, which resolves to the whole
snapshot. Each raw segment is percent-decoded *after* splitting, so an encoded
``%2F`` stays inside its segment, and then trimmed of surrounding whitespace
(a segment of only spaces counts as empty). Only the terminal segment is split
on commas, each selector trimmed the same way; anywhere else a comma is part
of the literal.

Whether a literal names an object key or an array identifier is not decided
here: it depends on the value the segment meets during resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

PATH_SEPARATOR = "/"
FIELD_DELIMITER = ","

#: Reserved tokens that fan out over every element of an array (synonyms).
WILDCARD_TOKENS: frozenset[str] = frozenset({"*", "all"})

#: Terminal selector returning the current context unchanged.
SELF_MARKER = "self"


class QueryPathError(ValueError):
    """Raised when raw path text cannot be decoded into segments."""


def is_wildcard(token: str) -> bool:
    """Return True for ``*`` and ``all``."""
    return token in WILDCARD_TOKENS


@dataclass(frozen=True, slots=True)
class Segment:
    """
    One step of a query path.

    Attributes
    ----------
    text : str
        Decoded segment text as written.
    selectors : tuple[str, ...]
        Field selectors. Non-terminal segments always hold exactly one
        selector equal to ``text``; the terminal segment holds one per
        comma-separated field, in the order written.
    """

    text: str
    selectors: tuple[str, ...]

    @property
    def is_wildcard(self) -> bool:
        return len(self.selectors) == 1 and is_wildcard(self.selectors[0])

    @property
    def is_multi(self) -> bool:
        return len(self.selectors) > 1

    @property
    def is_self(self) -> bool:
        return self.selectors == (SELF_MARKER,)


@dataclass(frozen=True, slots=True)
class QueryPath:
    """Ordered, parsed query path."""

    segments: tuple[Segment, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.segments

    def __len__(self) -> int:
        return len(self.segments)

    def prefix(self, count: int) -> str:
        """Render the first ``count`` segments as ``a/b/c`` for error messages."""
        return PATH_SEPARATOR.join(s.text for s in self.segments[:count])

    def __str__(self) -> str:
        return self.prefix(len(self.segments))


def _decode(raw: str) -> str:
    """Percent-decode one segment, refusing malformed UTF-8."""
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError as exc:
        raise QueryPathError(f"segment {raw!r} is not valid percent-encoded UTF-8") from exc


def _split_selectors(text: str) -> tuple[str, ...]:
    """Split a terminal segment on commas, trimming and dropping blanks."""
    parts = tuple(p.strip() for p in text.split(FIELD_DELIMITER))
    selectors = tuple(p for p in parts if p)
    return selectors or (text,)


def parse_path(raw: str) -> QueryPath:
    """
    Parse URL path text into a :class:`QueryPath`.

    Parameters
    ----------
    raw : str
        Path text, with or without a leading slash, still percent-encoded.

    Raises
    ------
    QueryPathError
        If a segment is not valid percent-encoded UTF-8.
    """
    texts = [_decode(part).strip() for part in raw.split(PATH_SEPARATOR) if part]
    texts = [t for t in texts if t]
    if not texts:
        return QueryPath()

    segments = [Segment(text=t, selectors=(t,)) for t in texts[:-1]]
    last = texts[-1]
    segments.append(Segment(text=last, selectors=_split_selectors(last)))
    return QueryPath(segments=tuple(segments))


def parse_raw_path(raw: bytes) -> QueryPath:
    """Parse an ASGI ``raw_path`` (bytes, possibly carrying a query string)."""
    path_bytes = raw.split(b"?", 1)[0]
    try:
        text = path_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise QueryPathError("request path is not valid UTF-8") from exc
    return parse_path(text)


__all__ = [
    "FIELD_DELIMITER",
    "PATH_SEPARATOR",
    "SELF_MARKER",
    "WILDCARD_TOKENS",
    "QueryPath",
    "QueryPathError",
    "Segment",
    "is_wildcard",
    "parse_path",
    "parse_raw_path",
]
