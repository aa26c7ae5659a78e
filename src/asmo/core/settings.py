"""Service configuration on top of pydantic-settings.

Values come from process environment variables first, then from `.env` and
`.env.local` in the working directory. Every variable is prefixed `ASMO_`
except `LOG_LEVEL`.

Every tunable of the service lives here: the bind address, the refresh period
of the producer loop, the fan-out depth limit of the resolver and the roots of
the procfs/sysfs trees the sampler reads (overridable for tests).
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed service configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `ASMO_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    host, port :
        Bind address of the HTTP server; map from `ASMO_HOST` / `ASMO_PORT`.
    poll_interval_ms : int
        Refresh period of the producer loop in milliseconds.
    storage_tick_interval : int
        Storage usage is re-read every N producer ticks (statvfs is slow on
        some devices and the value barely moves).
    max_fanout_depth : int
        Maximum nesting of wildcard fan-out in one query.
    float_digits : int | None
        Decimal places kept for floats in published snapshots.
    proc_root, sys_root, storage_path :
        Filesystem locations the sampler reads.
    """

    environment: EnvName = Field(default="dev", alias="ASMO_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    host: str = Field(default="0.0.0.0", alias="ASMO_HOST")
    port: int = Field(default=3000, ge=1, le=65535, alias="ASMO_PORT")

    poll_interval_ms: int = Field(default=500, ge=50, alias="ASMO_POLL_INTERVAL_MS")
    storage_tick_interval: int = Field(default=60, ge=1, alias="ASMO_STORAGE_TICK_INTERVAL")
    max_fanout_depth: int = Field(default=4, ge=1, le=16, alias="ASMO_MAX_FANOUT_DEPTH")
    float_digits: int | None = Field(default=2, ge=0, le=12, alias="ASMO_FLOAT_DIGITS")

    proc_root: str = Field(default="/proc", alias="ASMO_PROC_ROOT")
    sys_root: str = Field(default="/sys", alias="ASMO_SYS_ROOT")
    storage_path: str = Field(default="/", alias="ASMO_STORAGE_PATH")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_prod(self) -> bool:
        return self.environment == "prod"

    @property
    def poll_interval_s(self) -> float:
        """Refresh period in seconds, as `asyncio.sleep` expects it."""
        return self.poll_interval_ms / 1000.0

    def log_level_numeric(self) -> int:
        """`log_level` as a `logging` constant."""
        return logging.getLevelNamesMapping().get(self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Build the settings once per process.

    Tests that mutate `os.environ` call `load_settings.cache_clear()` to get a
    fresh instance.
    """
    os.environ.setdefault("ASMO_ENV", "dev")
    return Settings()


# Module-level instance, read from env / .env files at import time.
settings: Settings = load_settings()

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str = "asmo") -> logging.Logger:
    """Return the named logger, wired to stderr at the configured level.

    Each logger gets exactly one handler however often it is requested, and
    does not propagate, so uvicorn's root configuration cannot double-log it.
    """
    log = logging.getLogger(name)
    if not log.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(stream)
    log.setLevel(load_settings().log_level_numeric())
    log.propagate = False
    return log
