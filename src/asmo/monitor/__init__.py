from __future__ import annotations

from .discover import DevicePaths, StaticCoreInfo, StaticDeviceInfo, discover_device_layout
from .loop import Monitor
from .sampler import BatteryReading, CpuTimes, MemoryInfo, Sampler

__all__ = [
    "BatteryReading",
    "CpuTimes",
    "DevicePaths",
    "MemoryInfo",
    "Monitor",
    "Sampler",
    "StaticCoreInfo",
    "StaticDeviceInfo",
    "discover_device_layout",
]
