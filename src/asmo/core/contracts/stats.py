"""
Telemetry contracts: the measurement records published as snapshots.

These Pydantic models are the only place that knows field names. Each model
renders itself into the generic value tree through :meth:`describe`, so the
query resolver and the discovery index stay schema-free.

- :class:`CoreData`: one CPU core; ``name`` is the identifier field.
- :class:`SystemStats`: the whole device, root of every snapshot.
- :class:`BatteryStatus`: Android ``BatteryManager`` status codes.

Sentinels
---------
Defaults double as the documented "never measured" sentinels: ``0`` / ``0.0``
for numbers, ``""`` for identity strings and ``"N/A"`` for the battery status.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from asmo.core.value import Value, to_value


class BatteryStatus(str, Enum):
    """Battery charge state as reported by the platform."""

    UNKNOWN = "Unknown"
    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    NOT_CHARGING = "Not charging"
    FULL = "Full"
    NOT_AVAILABLE = "N/A"

    @classmethod
    def from_code(cls, code: int) -> BatteryStatus:
        """Map an Android ``BATTERY_STATUS_*`` integer onto a status."""
        return _STATUS_BY_CODE.get(code, cls.UNKNOWN)

    @classmethod
    def from_text(cls, text: str) -> BatteryStatus:
        """Map a sysfs ``power_supply/*/status`` string onto a status."""
        needle = text.strip().lower()
        for member in cls:
            if member.value.lower() == needle:
                return member
        return cls.UNKNOWN


_STATUS_BY_CODE: dict[int, BatteryStatus] = {
    1: BatteryStatus.UNKNOWN,
    2: BatteryStatus.CHARGING,
    3: BatteryStatus.DISCHARGING,
    4: BatteryStatus.NOT_CHARGING,
    5: BatteryStatus.FULL,
}


class CoreData(BaseModel):
    """Live and static data for one CPU core."""

    name: str = Field(description="Core identifier, e.g. 'cpu0'.")
    usage: float = Field(default=0.0, description="Busy share since last tick, percent.")
    model_name: str = Field(default="", description="Core model as reported by the kernel.")
    cur_freq: float = Field(default=0.0, description="Current frequency, MHz.")
    min_freq: float = Field(default=0.0, description="Minimum frequency, MHz.")
    max_freq: float = Field(default=0.0, description="Maximum frequency, MHz.")


class SystemStats(BaseModel):
    """One full measurement of the device.

    Field order is the order clients see for ``GET /stats`` and the empty
    query path, so new fields should be appended next to their relatives
    rather than sorted.
    """

    manufacturer: str = ""
    product_model: str = ""
    soc_model: str = ""
    kernel_version: str = ""
    android_version: str = ""
    uptime_seconds: int = 0

    battery_level: int = 0
    battery_status: BatteryStatus = BatteryStatus.NOT_AVAILABLE
    battery_temp: float = 0.0

    cpu_temp: float = 0.0
    gpu_temp: float = 0.0
    gpu_load: float = 0.0
    total_cpu: float = 0.0

    memory_used_mb: float = 0.0
    memory_total_mb: float = 0.0
    swap_used_mb: float = 0.0
    swap_total_mb: float = 0.0

    tx_bytes_mb: float = 0.0
    rx_bytes_mb: float = 0.0

    storage_free_gb: float = 0.0
    storage_total_gb: float = 0.0

    refresh_rate: float = 0.0
    brightness: float = 0.0

    cores: list[CoreData] = Field(default_factory=list)

    def describe(self, float_digits: int | None = None) -> Value:
        """Render this record as a value tree, keeping declaration order."""
        return to_value(self, float_digits=float_digits)


__all__ = ["BatteryStatus", "CoreData", "SystemStats"]
