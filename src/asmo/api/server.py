"""
ASGI Entry Point for the asmo API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads environment variables from `.env` before the application factory runs,
so `ASMO_*` overrides are visible to `load_settings()`.

Usage
-----
Run via the module entry point:
    $ python -m asmo.api.server

Or via uvicorn directly:
    $ uvicorn asmo.api.server:app
"""

from __future__ import annotations

import socket
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from asmo.api.app import create_app
from asmo.core.settings import get_logger, load_settings

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #

load_dotenv(dotenv_path=Path(".env"))

# Factory invocation (device discovery is deferred to the lifespan startup)
app = create_app()

logger = get_logger("asmo.server")


def local_ip() -> str:
    """Best-effort LAN address for the startup banner."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connecting a UDP socket only selects a route.
        sock.connect(("10.255.255.255", 1))
        return str(sock.getsockname()[0])
    except OSError:
        return "localhost"
    finally:
        sock.close()


def main(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Run the API server."""
    cfg = load_settings()
    bind_host = host or cfg.host
    bind_port = port or cfg.port

    shown = local_ip() if bind_host in ("0.0.0.0", "::") else bind_host
    logger.info("asmo running on http://%s:%d (GET / for all endpoints)", shown, bind_port)

    uvicorn.run(
        "asmo.api.server:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
