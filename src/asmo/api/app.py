"""
FastAPI Application Factory & Configuration.

This module initializes the FastAPI application instance. It is responsible for:
1.  **Middleware Setup**: CORS, so dashboards on other origins can poll us.
2.  **Exception Handling**: Global handlers so every error returns structured JSON.
3.  **Routing**: Mounting the telemetry router (index, stats, dynamic paths).
4.  **Lifecycle**: Starting the producer loop on startup, cancelling it on shutdown.

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`). This allows for:
-   Easy testing: a test passes its own pre-filled `SnapshotStore` and turns
    the producer off, so no real sensors are touched.
-   Configuration injection: a `Settings` instance other than the global one.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from asmo import __version__
from asmo.api.routers import telemetry
from asmo.core.settings import Settings, get_logger, load_settings
from asmo.core.snapshot import SnapshotStore, get_snapshot_store
from asmo.monitor.loop import Monitor

logger = get_logger("asmo.api")


def create_app(
    *,
    store: SnapshotStore | None = None,
    monitor: Monitor | None = None,
    settings: Settings | None = None,
    start_producer: bool = True,
) -> FastAPI:
    """
    Construct and configure the asmo FastAPI application.

    Parameters
    ----------
    store:
        Snapshot store to serve from; defaults to the process-wide store.
    monitor:
        Producer to run; built from `settings` (running device discovery) at
        startup when omitted.
    settings:
        Configuration; defaults to `load_settings()`.
    start_producer:
        When False the lifespan starts no producer task and the app only
        serves whatever `store` holds.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    cfg = settings if settings is not None else load_settings()
    snapshot_store = store if store is not None else get_snapshot_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        ASGI Lifespan context manager.

        - **Startup**: discover the device and spawn the producer task.
        - **Shutdown**: cancel the producer task and wait for it to finish.
        """
        task: asyncio.Task[None] | None = None
        if start_producer:
            producer = monitor
            if producer is None:
                # Discovery reads files and spawns getprop; keep it off the loop.
                producer = await asyncio.to_thread(Monitor.from_settings, cfg)
            task = asyncio.create_task(
                producer.run(snapshot_store, cfg.poll_interval_s), name="asmo-producer"
            )
            logger.info("Producer task started")

        yield

        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Producer task stopped")

    app = FastAPI(
        title="asmo",
        description="Device telemetry, addressable by any URL path.",
        version=__version__,
        docs_url=None if cfg.is_prod else "/docs",
        redoc_url=None if cfg.is_prod else "/redoc",
        lifespan=lifespan,
    )
    app.state.store = snapshot_store
    app.state.settings = cfg
    app.state.index_cache = None

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler so unhandled exceptions still return structured JSON."""
        logger.exception("Unhandled error serving %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map ValueErrors (e.g. undecodable query paths) to HTTP 400 Bad Request."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, object]:
        """Liveness check plus freshness of the served snapshot."""
        snap = snapshot_store.borrow()
        return {
            "status": "ok",
            "environment": cfg.environment,
            "version": __version__,
            "snapshot_version": snap.version,
            "snapshot_age_s": round(snap.age_seconds(), 3),
        }

    # The telemetry router ends with a catch-all path, so it goes last.
    app.include_router(telemetry.router)

    return app


__all__ = ["create_app"]
