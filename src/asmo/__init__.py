"""asmo: device telemetry served as a path-addressable value tree.

A producer samples the device on a fixed interval and publishes immutable
snapshots; any URL path resolves against the current snapshot at request time.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
