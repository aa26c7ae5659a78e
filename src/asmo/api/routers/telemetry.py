"""
API Routes for telemetry lookup.

Endpoints
---------
- `GET /`: discovery index listing every addressable path.
- `GET /stats`: the whole current snapshot.
- `GET /{path}`: any path, resolved against the current snapshot, e.g.
  `/battery_level`, `/cpu_temp,gpu_temp`, `/cores/cpu0/usage`,
  `/cores/*/usage`, `/cores/all/usage,cur_freq`.

Design Decisions
----------------
- **No per-field routes**: a field added to the schema is reachable at once.
- **One snapshot per request**: each handler borrows once and resolves
  entirely against that snapshot, so a response never mixes two refresh cycles.
- **Raw path decoding**: segments are split on `/` *before* percent-decoding,
  using the ASGI `raw_path`, so an encoded `%2F` stays inside its segment.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from asmo.core.query.index import build_index
from asmo.core.query.path import parse_raw_path
from asmo.core.query.resolver import resolve
from asmo.core.settings import Settings, get_logger
from asmo.core.snapshot import SnapshotStore
from asmo.core.value import thaw

router = APIRouter(tags=["Telemetry"])
logger = get_logger("asmo.api.telemetry")


def get_store(request: Request) -> SnapshotStore:
    """Dependency: the store the application was built with."""
    store: SnapshotStore = request.app.state.store
    return store


def get_settings(request: Request) -> Settings:
    """Dependency: the settings the application was built with."""
    cfg: Settings = request.app.state.settings
    return cfg


@router.get("/", summary="List every available endpoint")
async def index(request: Request, store: SnapshotStore = Depends(get_store)) -> dict[str, Any]:
    """
    Return the discovery index of the current snapshot.

    The index is rebuilt only when a snapshot with a new version is served;
    between publishes the cached payload is returned as-is.
    """
    snap = store.borrow()
    cached: tuple[int, dict[str, Any]] | None = request.app.state.index_cache
    if cached is None or cached[0] != snap.version:
        cached = (snap.version, build_index(snap))
        request.app.state.index_cache = cached
    return cached[1]


@router.get("/stats", summary="Full telemetry snapshot")
async def stats(store: SnapshotStore = Depends(get_store)) -> JSONResponse:
    """Return the whole current snapshot in declaration order."""
    return JSONResponse(content=thaw(store.borrow().tree))


@router.get("/{path:path}", summary="Resolve an arbitrary path")
async def resolve_path(
    request: Request,
    path: str,
    store: SnapshotStore = Depends(get_store),
    cfg: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Resolve `path` against the current snapshot.

    Returns `200` with the resolved value, `404` with `{"error", "path",
    "hint"}` for unknown or non-traversable paths and `400` with the same
    shape when wildcard nesting exceeds the configured limit.
    """
    raw: bytes = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    query = parse_raw_path(raw)

    snap = store.borrow()
    outcome = resolve(snap.tree, query, max_depth=cfg.max_fanout_depth).map(thaw)
    if outcome.is_err():
        failure = outcome.unwrap_err()
        logger.debug("Unresolved path /%s (%s) against v%d", path, failure.kind, snap.version)
        return JSONResponse(status_code=failure.status_code, content=failure.to_body())
    return JSONResponse(content=outcome.unwrap())


__all__ = ["router"]
