"""
One-shot device discovery, run once at startup and never again.

Discovery answers the questions whose answers do not change while the process
lives: which thermal zones are the CPU and GPU sensors, how many cores there
are and what their static limits are, and what the device calls itself. The
refresh loop then reads only the hot values.

Each reader falls back to a harmless default instead of failing startup; a
device without a GPU thermal zone simply reports ``0.0`` for ``gpu_temp``.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass
from pathlib import Path

from asmo.core.settings import get_logger
from asmo.monitor.sysfs import READ_ERRORS, core_index, read_float, read_text, run_command

logger = get_logger("asmo.monitor.discover")

_CPU_ZONE_MARKERS: tuple[str, ...] = ("cpuss-0", "aoss-0", "x86_pkg_temp", "cpu")
_GPU_ZONE_MARKERS: tuple[str, ...] = ("gpuss-0", "gpu")
_MODEL_KEYS: tuple[str, ...] = ("model name", "Processor", "Hardware")


@dataclass(frozen=True, slots=True)
class StaticCoreInfo:
    """Per-core facts that never change: identifier, model, frequency range."""

    name: str
    model_name: str
    min_freq: float
    max_freq: float


@dataclass(frozen=True, slots=True)
class StaticDeviceInfo:
    """Device identity plus the static core table."""

    manufacturer: str
    product_model: str
    soc_model: str
    kernel_version: str
    android_version: str
    cores: tuple[StaticCoreInfo, ...]


@dataclass(frozen=True, slots=True)
class DevicePaths:
    """Resolved sensor files the refresh loop reads every tick."""

    cpu_temp: Path
    gpu_temp: Path


# --------------------------------------------------------------------------- #
# Readers
# --------------------------------------------------------------------------- #


def find_thermal_zones(sys_root: Path) -> tuple[Path, Path]:
    """Pick the CPU and GPU thermal zone ``temp`` files.

    Zones are scanned in name order; the first zone whose ``type`` matches a
    marker wins, earlier markers taking precedence over later ones.
    """
    thermal = sys_root / "class" / "thermal"
    cpu_temp = thermal / "thermal_zone0" / "temp"
    gpu_temp = thermal / "thermal_zone1" / "temp"

    try:
        zones = sorted(p for p in thermal.iterdir() if p.name.startswith("thermal_zone"))
    except OSError:
        return cpu_temp, gpu_temp

    best_cpu: int | None = None
    best_gpu: int | None = None
    for zone in zones:
        try:
            zone_type = read_text(zone / "type").lower()
        except OSError:
            continue
        for rank, marker in enumerate(_CPU_ZONE_MARKERS):
            if marker in zone_type and (best_cpu is None or rank < best_cpu):
                best_cpu, cpu_temp = rank, zone / "temp"
                break
        for rank, marker in enumerate(_GPU_ZONE_MARKERS):
            if marker in zone_type and (best_gpu is None or rank < best_gpu):
                best_gpu, gpu_temp = rank, zone / "temp"
                break
    return cpu_temp, gpu_temp


def list_core_names(sys_root: Path) -> list[str]:
    """Return ``cpuN`` directory names sorted by N (``cpu2`` before ``cpu10``)."""
    cpu_dir = sys_root / "devices" / "system" / "cpu"
    try:
        names = [p.name for p in cpu_dir.iterdir() if core_index(p.name) is not None]
    except OSError:
        return []
    return sorted(names, key=lambda n: core_index(n) or 0)


def _cpuinfo_models(proc_root: Path) -> tuple[dict[int, str], str]:
    """Parse ``/proc/cpuinfo`` into per-processor models and a global fallback."""
    try:
        text = read_text(proc_root / "cpuinfo")
    except OSError:
        return {}, ""

    per_core: dict[int, str] = {}
    fallback = ""
    current: int | None = None
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key, value = key.strip(), value.strip()
        if key == "processor" and value.isdigit():
            current = int(value)
        elif key in _MODEL_KEYS and value:
            if current is not None and key == "model name":
                per_core[current] = value
            elif not fallback:
                fallback = value
    return per_core, fallback


def _freq_mhz(path: Path) -> float:
    try:
        return read_float(path) / 1000.0
    except READ_ERRORS:
        return 0.0


def read_core_info(proc_root: Path, sys_root: Path, names: list[str]) -> list[StaticCoreInfo]:
    """Gather static per-core facts for ``names``."""
    per_core, fallback = _cpuinfo_models(proc_root)
    cpu_dir = sys_root / "devices" / "system" / "cpu"
    cores: list[StaticCoreInfo] = []
    for name in names:
        index = core_index(name)
        freq_dir = cpu_dir / name / "cpufreq"
        cores.append(
            StaticCoreInfo(
                name=name,
                model_name=per_core.get(index, fallback) if index is not None else fallback,
                min_freq=_freq_mhz(freq_dir / "cpuinfo_min_freq"),
                max_freq=_freq_mhz(freq_dir / "cpuinfo_max_freq"),
            )
        )
    return cores


def getprop(key: str) -> str:
    """Read an Android system property; empty when not on Android."""
    try:
        return run_command("getprop", key)
    except READ_ERRORS:
        return ""


def _dmi(sys_root: Path, name: str) -> str:
    try:
        return read_text(sys_root / "class" / "dmi" / "id" / name)
    except OSError:
        return ""


def read_identity(sys_root: Path) -> tuple[str, str, str, str]:
    """Return ``(manufacturer, product_model, soc_model, android_version)``."""
    manufacturer = getprop("ro.product.manufacturer") or _dmi(sys_root, "sys_vendor")
    product_model = getprop("ro.product.model") or _dmi(sys_root, "product_name")
    soc_model = getprop("ro.soc.model") or platform.machine()
    android_version = getprop("ro.build.version.release")
    return manufacturer, product_model, soc_model, android_version


def read_kernel_version(proc_root: Path) -> str:
    """Third token of ``/proc/version`` (``Linux version 6.1.0 ...``)."""
    try:
        tokens = read_text(proc_root / "version").split()
    except OSError:
        tokens = []
    if len(tokens) >= 3:
        return tokens[2]
    return platform.release() or "unknown"


def discover_device_layout(
    proc_root: str | Path = "/proc", sys_root: str | Path = "/sys"
) -> tuple[DevicePaths, StaticDeviceInfo]:
    """Run every startup reader and return the sensor paths plus static info."""
    proc = Path(proc_root)
    sysfs = Path(sys_root)

    cpu_temp, gpu_temp = find_thermal_zones(sysfs)
    names = list_core_names(sysfs)
    cores = read_core_info(proc, sysfs, names)
    manufacturer, product_model, soc_model, android_version = read_identity(sysfs)

    paths = DevicePaths(cpu_temp=cpu_temp, gpu_temp=gpu_temp)
    info = StaticDeviceInfo(
        manufacturer=manufacturer,
        product_model=product_model,
        soc_model=soc_model,
        kernel_version=read_kernel_version(proc),
        android_version=android_version,
        cores=tuple(cores),
    )
    logger.info(
        "Discovered %s %s with %d cores (cpu sensor %s, gpu sensor %s)",
        manufacturer or "unknown",
        product_model or "device",
        len(cores),
        cpu_temp,
        gpu_temp,
    )
    return paths, info


__all__ = [
    "DevicePaths",
    "StaticCoreInfo",
    "StaticDeviceInfo",
    "discover_device_layout",
    "getprop",
    "read_core_info",
    "list_core_names",
    "read_identity",
    "read_kernel_version",
    "find_thermal_zones",
]
