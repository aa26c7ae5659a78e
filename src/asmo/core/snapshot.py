"""
Snapshot Store: single-writer, many-reader holder of the current value tree.

The producer loop builds a complete tree, then calls :meth:`SnapshotStore.publish`,
which freezes it, stamps it with the next version number and installs it with
one reference assignment. Request handlers call :meth:`SnapshotStore.borrow`
and resolve against whatever :class:`Snapshot` they got; a later publish swaps
the store's reference but never touches the object a reader already holds, so
a request can never see fields from two different refresh cycles.

Design Notes
------------
- **No reader locking**: ``borrow`` is a plain attribute read. Rebinding an
  attribute is atomic in CPython, so readers never wait on the writer.
- **Writer lock**: ``publish`` takes a lock only to keep the version counter
  and the swap consistent if more than one writer ever exists (tests do this);
  readers never touch it.
- **Never empty**: the store is seeded with a placeholder tree (version 0), so
  there is no "not yet measured" state visible to callers.
- **Lifetime**: snapshots are ordinary objects; one stays alive for as long as
  any request holds it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ClassVar

from asmo.core.contracts.stats import SystemStats
from asmo.core.value import Describable, Value, freeze, is_object, to_value


@dataclass(frozen=True, slots=True, eq=False)
class Snapshot:
    """
    Immutable, versioned value tree.

    Attributes
    ----------
    version : int
        Sequential publish number; 0 is the seeded placeholder.
    tree : Value
        Frozen root object (MappingProxyType with frozen children).
    published_at : datetime
        UTC time the snapshot was installed.
    """

    version: int
    tree: Value
    published_at: datetime

    def age_seconds(self, now: datetime | None = None) -> float:
        """Return how long ago this snapshot was published."""
        current = now if now is not None else datetime.now(UTC)
        return max(0.0, (current - self.published_at).total_seconds())


def _placeholder_tree() -> Value:
    """Tree of an unmeasured device: every field at its sentinel value."""
    return SystemStats().describe()


class SnapshotStore:
    """
    Holder of the current :class:`Snapshot`.

    The module keeps one process-wide instance behind :func:`get_snapshot_store`
    (mirroring how the API wires its collaborators); tests build their own.
    """

    _instance: ClassVar[SnapshotStore | None] = None

    __slots__ = ("_current", "_write_lock")

    def __init__(self, initial: Value | Describable | None = None) -> None:
        self._write_lock = threading.Lock()
        tree = self._prepare(initial if initial is not None else _placeholder_tree())
        self._current: Snapshot = Snapshot(version=0, tree=tree, published_at=datetime.now(UTC))

    @classmethod
    def get_instance(cls) -> SnapshotStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @staticmethod
    def _prepare(tree: Value | Describable) -> Value:
        """Convert and freeze ``tree``; reject anything but an Object root."""
        value = to_value(tree)
        if not is_object(value):
            raise TypeError(f"snapshot root must be an object, got {type(value).__name__}")
        return freeze(value)

    # ------------------------------- Write path -----------------------------

    def publish(self, tree: Value | Describable) -> Snapshot:
        """
        Install ``tree`` as the current snapshot and return it.

        The tree is frozen *before* the lock is taken, so the critical section
        is a counter increment plus one reference swap regardless of tree size
        or reader count.

        Raises
        ------
        TypeError
            If the root is not an object.
        """
        frozen = self._prepare(tree)
        with self._write_lock:
            snap = Snapshot(
                version=self._current.version + 1,
                tree=frozen,
                published_at=datetime.now(UTC),
            )
            self._current = snap
        return snap

    # ------------------------------- Read path ------------------------------

    def borrow(self) -> Snapshot:
        """Return the snapshot that is current at the instant of the call."""
        return self._current

    @property
    def version(self) -> int:
        """Version of the current snapshot."""
        return self._current.version


def get_snapshot_store() -> SnapshotStore:
    """Return the process-wide store."""
    return SnapshotStore.get_instance()


__all__ = ["Snapshot", "SnapshotStore", "get_snapshot_store"]
