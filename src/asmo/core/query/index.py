"""
Discovery index: every addressable path of a snapshot, served at ``GET /``.

The index is derived from the same value tree the resolver walks, so the two
cannot drift: a field added to the telemetry schema shows up here and becomes
resolvable in the same release, with no routing changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from asmo import __version__
from asmo.core.query.path import FIELD_DELIMITER, WILDCARD_TOKENS
from asmo.core.snapshot import Snapshot
from asmo.core.value import IDENTIFIER_FIELD, Value, identifier_of, is_array, is_object

SERVICE_NAME = "asmo"


def enumerate_endpoints(
    value: Value, prefix: str = "", *, identifier: str = IDENTIFIER_FIELD
) -> list[str]:
    """
    List every addressable path under ``value``, depth-first in tree order.

    Object keys yield ``/key`` and recurse; arrays of identified records yield
    ``/key/<id>`` plus ``/key/<id>/<field>`` for each non-identifier field.
    Records without an identifier are skipped (they are not addressable by
    name).
    """
    out: list[str] = []
    if not is_object(value):
        return out
    tree = cast(Mapping[str, Value], value)

    for key, child in tree.items():
        path = f"{prefix}/{key}"
        out.append(path)
        if is_object(child):
            out.extend(enumerate_endpoints(child, path, identifier=identifier))
        elif is_array(child):
            for item in child:
                ident = identifier_of(item, identifier)
                if ident is None:
                    continue
                item_path = f"{path}/{ident}"
                out.append(item_path)
                record = cast(Mapping[str, Value], item)
                out.extend(f"{item_path}/{field}" for field in record if field != identifier)
    return out


def build_index(snapshot: Snapshot) -> dict[str, Any]:
    """Build the ``GET /`` payload for ``snapshot``."""
    wildcard = " or ".join(f"'{t}'" for t in sorted(WILDCARD_TOKENS))
    return {
        "name": SERVICE_NAME,
        "version": __version__,
        "snapshot_version": snapshot.version,
        "endpoints": ["/stats", *enumerate_endpoints(snapshot.tree)],
        "multi_field": (
            f"Combine fields with '{FIELD_DELIMITER}': /battery_level,cpu_temp,gpu_load"
        ),
        "wildcard": f"Use {wildcard} for arrays: /cores/*/usage  /cores/all/usage,cur_freq",
        "usage": "GET any endpoint to retrieve its data.",
    }


__all__ = ["SERVICE_NAME", "build_index", "enumerate_endpoints"]
