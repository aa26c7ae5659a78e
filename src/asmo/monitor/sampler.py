"""
Per-metric readers for the refresh loop.

Each public method of :class:`Sampler` reads exactly one metric group from
procfs/sysfs and either returns it or raises (``OSError`` / ``ValueError``).
Retaining the previous value after a failed read is the monitor's policy, not
the sampler's; the sampler stays stateless apart from its root paths.

Units
-----
- temperatures: degrees Celsius (sysfs reports millidegrees, batteries
  report tenths of a degree)
- memory: MB (``/proc/meminfo`` reports kB)
- frequencies: MHz (cpufreq reports kHz)
- network: MB since boot, all interfaces except ``lo``
- storage: GB
- brightness: fraction of the panel maximum, 0.0 to 1.0
- refresh rate: Hz of the active display mode
"""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from asmo.core.contracts.stats import BatteryStatus
from asmo.monitor.sysfs import (
    READ_ERRORS,
    core_index,
    first_float,
    read_float,
    read_int,
    read_text,
    run_command,
)

_MB = 1024.0 * 1024.0
_GB = 1024.0 * 1024.0 * 1024.0

# `dumpsys display` reports the rate the panel is actually rendering at.
_FRAME_RATE_RE = re.compile(r"mActiveRenderFrameRate=([0-9.]+)")
# Framebuffer modes look like `U:1080x2400p-120`.
_FB_MODE_RE = re.compile(r"-([0-9.]+)$")


@dataclass(frozen=True, slots=True)
class CpuTimes:
    """Cumulative jiffies of one ``/proc/stat`` cpu line."""

    total: int = 0
    idle: int = 0


@dataclass(frozen=True, slots=True)
class MemoryInfo:
    total_mb: float
    available_mb: float
    swap_total_mb: float
    swap_free_mb: float

    @property
    def used_mb(self) -> float:
        return max(0.0, self.total_mb - self.available_mb)

    @property
    def swap_used_mb(self) -> float:
        return max(0.0, self.swap_total_mb - self.swap_free_mb)


@dataclass(frozen=True, slots=True)
class BatteryReading:
    level: int = 0
    status: BatteryStatus = BatteryStatus.NOT_AVAILABLE
    temp_c: float = 0.0


def parse_cpu_stat(fields: Sequence[str]) -> CpuTimes:
    """Sum the first 8 jiffy counters; idle is ``idle + iowait`` (fields 3, 4)."""
    total = 0
    idle = 0
    for i, token in enumerate(fields[:8]):
        value = int(token)
        total += value
        if i in (3, 4):
            idle += value
    return CpuTimes(total=total, idle=idle)


def usage_between(previous: CpuTimes, current: CpuTimes) -> float:
    """Busy percentage between two samples; 0.0 when no time elapsed."""
    dt = max(0, current.total - previous.total)
    di = max(0, current.idle - previous.idle)
    if dt <= 0:
        return 0.0
    return min(100.0, max(0.0, (dt - di) / dt * 100.0))


class Sampler:
    """Stateless procfs/sysfs reader bound to a pair of filesystem roots."""

    def __init__(
        self,
        proc_root: str | Path = "/proc",
        sys_root: str | Path = "/sys",
        storage_path: str | Path = "/",
    ) -> None:
        self.proc_root = Path(proc_root)
        self.sys_root = Path(sys_root)
        self.storage_path = Path(storage_path)

    # ------------------------------- thermal / gpu --------------------------

    def thermal(self, path: Path) -> float:
        """Thermal zone temperature in Celsius."""
        return read_float(path) / 1000.0

    def gpu_load(self) -> float:
        """Adreno ``gpubusy`` ratio as a percentage."""
        text = read_text(self.sys_root / "class" / "kgsl" / "kgsl-3d0" / "gpubusy")
        parts = text.split()
        if len(parts) < 2:
            raise ValueError(f"unexpected gpubusy content: {text!r}")
        busy, total = int(parts[0]), int(parts[1])
        return busy / total * 100.0 if total > 0 else 0.0

    # ------------------------------- memory ---------------------------------

    def memory(self) -> MemoryInfo:
        """MemTotal / MemAvailable / SwapTotal / SwapFree from ``meminfo``."""
        wanted = {"MemTotal": 0.0, "MemAvailable": 0.0, "SwapTotal": 0.0, "SwapFree": 0.0}
        seen: set[str] = set()
        for line in read_text(self.proc_root / "meminfo").splitlines():
            key, sep, rest = line.partition(":")
            if sep and key in wanted:
                wanted[key] = first_float(rest) / 1024.0
                seen.add(key)
        if "MemTotal" not in seen:
            raise ValueError("meminfo has no MemTotal line")
        return MemoryInfo(
            total_mb=wanted["MemTotal"],
            available_mb=wanted["MemAvailable"],
            swap_total_mb=wanted["SwapTotal"],
            swap_free_mb=wanted["SwapFree"],
        )

    # ------------------------------- cpu ------------------------------------

    def cpu_times(self) -> tuple[CpuTimes, dict[int, CpuTimes]]:
        """Aggregate and per-core jiffies from ``/proc/stat``."""
        aggregate: CpuTimes | None = None
        per_core: dict[int, CpuTimes] = {}
        for line in read_text(self.proc_root / "stat").splitlines():
            parts = line.split()
            if not parts or not parts[0].startswith("cpu"):
                continue
            if parts[0] == "cpu":
                aggregate = parse_cpu_stat(parts[1:])
                continue
            index = core_index(parts[0])
            if index is not None:
                per_core[index] = parse_cpu_stat(parts[1:])
        if aggregate is None:
            raise ValueError("/proc/stat has no aggregate cpu line")
        return aggregate, per_core

    def cpu_freqs(self, names: Sequence[str]) -> list[float]:
        """Current frequency per core in MHz; offline cores read as 0.0."""
        cpu_dir = self.sys_root / "devices" / "system" / "cpu"
        freqs: list[float] = []
        for name in names:
            try:
                freqs.append(read_float(cpu_dir / name / "cpufreq" / "scaling_cur_freq") / 1000.0)
            except READ_ERRORS:
                freqs.append(0.0)
        return freqs

    # ------------------------------- system ---------------------------------

    def uptime(self) -> int:
        """Whole seconds since boot."""
        return int(read_float(self.proc_root / "uptime"))

    def network(self) -> tuple[float, float]:
        """``(rx_mb, tx_mb)`` summed over every interface but loopback."""
        rx = 0
        tx = 0
        for line in read_text(self.proc_root / "net" / "dev").splitlines():
            iface, sep, rest = line.partition(":")
            if not sep or iface.strip() == "lo":
                continue
            fields = rest.split()
            if len(fields) < 10:
                continue
            rx += int(fields[0])
            tx += int(fields[8])
        return rx / _MB, tx / _MB

    def storage(self) -> tuple[float, float]:
        """``(free_gb, total_gb)`` of the filesystem holding ``storage_path``."""
        stat = os.statvfs(self.storage_path)
        block = float(stat.f_frsize)
        return stat.f_bavail * block / _GB, stat.f_blocks * block / _GB

    # ------------------------------- battery / display ----------------------

    def _battery_dir(self) -> Path:
        supplies = self.sys_root / "class" / "power_supply"
        preferred = supplies / "battery"
        if preferred.is_dir():
            return preferred
        for supply in sorted(supplies.iterdir()):
            try:
                if read_text(supply / "type") == "Battery":
                    return supply
            except OSError:
                continue
        raise FileNotFoundError(f"no battery under {supplies}")

    def battery(self) -> BatteryReading:
        """Charge level, status and temperature of the main battery."""
        supply = self._battery_dir()
        level = read_int(supply / "capacity")
        try:
            status = BatteryStatus.from_text(read_text(supply / "status"))
        except OSError:
            status = BatteryStatus.UNKNOWN
        try:
            temp_c = read_float(supply / "temp") / 10.0
        except READ_ERRORS:
            temp_c = 0.0
        return BatteryReading(level=level, status=status, temp_c=temp_c)

    def brightness(self) -> float:
        """First backlight's brightness as a fraction of its maximum."""
        backlights = sorted((self.sys_root / "class" / "backlight").iterdir())
        if not backlights:
            raise FileNotFoundError("no backlight device")
        panel = backlights[0]
        current = read_float(panel / "brightness")
        maximum = read_float(panel / "max_brightness")
        if maximum <= 0:
            raise ValueError(f"{panel.name} reports max_brightness {maximum}")
        return current / maximum

    def refresh_rate(self) -> float:
        """Refresh rate of the active display mode in Hz.

        Android reports it in ``dumpsys display``; without that service the
        first mode of framebuffer ``fb0`` carries it.
        """
        try:
            dump = run_command("dumpsys", "display")
        except READ_ERRORS:
            dump = ""
        match = _FRAME_RATE_RE.search(dump)
        if match:
            return float(match.group(1))

        modes = read_text(self.sys_root / "class" / "graphics" / "fb0" / "modes").splitlines()
        match = _FB_MODE_RE.search(modes[0].strip()) if modes else None
        if match is None:
            raise ValueError("fb0 reports no display mode with a refresh rate")
        return float(match.group(1))


__all__ = [
    "BatteryReading",
    "CpuTimes",
    "MemoryInfo",
    "Sampler",
    "parse_cpu_stat",
    "usage_between",
]
