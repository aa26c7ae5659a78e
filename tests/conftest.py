"""Shared fixtures: a fake procfs/sysfs tree shaped like a small Android phone."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from asmo.monitor import sampler as sampler_module

PROC_STAT = """\
cpu  100 0 100 700 100 0 0 0 0 0
cpu0 60 0 40 300 0 0 0 0 0 0
cpu1 40 0 60 400 100 0 0 0 0 0
intr 12345
"""

MEMINFO = """\
MemTotal:        8000000 kB
MemFree:          500000 kB
MemAvailable:    4000000 kB
SwapTotal:       2048000 kB
SwapFree:        1024000 kB
"""

NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:  999999      10    0    0    0     0          0         0   999999      10    0    0    0     0       0          0
 wlan0: 2097152      20    0    0    0     0          0         0  1048576      15    0    0    0     0       0          0
"""  # noqa: E501

CPUINFO = """\
processor\t: 0
model name\t: Cortex-A55

processor\t: 1
model name\t: Cortex-A78

Hardware\t: Qualcomm Technologies, Inc SM8450
"""


@dataclass
class FakeDevice:
    """Roots of a fake device tree plus a writer for ad-hoc files."""

    proc: Path
    sys: Path

    def write(self, path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path


@pytest.fixture  # type: ignore[misc]
def fake_device(tmp_path: Path) -> FakeDevice:
    """Populate `tmp_path` with the pseudo-files the monitor reads."""
    dev = FakeDevice(proc=tmp_path / "proc", sys=tmp_path / "sys")
    proc, sysfs = dev.proc, dev.sys

    dev.write(proc / "stat", PROC_STAT)
    dev.write(proc / "meminfo", MEMINFO)
    dev.write(proc / "uptime", "12345.67 54321.00\n")
    dev.write(proc / "net" / "dev", NET_DEV)
    dev.write(proc / "version", "Linux version 6.1.25-android14 (build@host) #1 SMP PREEMPT\n")
    dev.write(proc / "cpuinfo", CPUINFO)

    thermal = sysfs / "class" / "thermal"
    zones = [
        ("battery", "31000"),
        ("cpuss-0-usr", "45200"),
        ("gpuss-0-usr", "39800"),
        ("cpu-1-0", "50000"),
    ]
    for zone, (kind, temp) in enumerate(zones):
        dev.write(thermal / f"thermal_zone{zone}" / "type", f"{kind}\n")
        dev.write(thermal / f"thermal_zone{zone}" / "temp", f"{temp}\n")

    cpu_dir = sysfs / "devices" / "system" / "cpu"
    for name, cur, low, high in [
        ("cpu0", "1804800", "300000", "1804800"),
        ("cpu1", "2400000", "710400", "2841600"),
    ]:
        dev.write(cpu_dir / name / "cpufreq" / "scaling_cur_freq", f"{cur}\n")
        dev.write(cpu_dir / name / "cpufreq" / "cpuinfo_min_freq", f"{low}\n")
        dev.write(cpu_dir / name / "cpufreq" / "cpuinfo_max_freq", f"{high}\n")
    # Non-core entries living next to the cores.
    (cpu_dir / "cpufreq").mkdir(parents=True, exist_ok=True)
    dev.write(cpu_dir / "online", "0-1\n")

    dev.write(sysfs / "class" / "kgsl" / "kgsl-3d0" / "gpubusy", "  250  1000\n")

    battery = sysfs / "class" / "power_supply" / "battery"
    dev.write(battery / "capacity", "85\n")
    dev.write(battery / "status", "Charging\n")
    dev.write(battery / "temp", "312\n")

    panel = sysfs / "class" / "backlight" / "panel0-backlight"
    dev.write(panel / "brightness", "512\n")
    dev.write(panel / "max_brightness", "1024\n")
    dev.write(sysfs / "class" / "graphics" / "fb0" / "modes", "U:1080x2400p-120\n")

    dmi = sysfs / "class" / "dmi" / "id"
    dev.write(dmi / "sys_vendor", "Acme\n")
    dev.write(dmi / "product_name", "Phone 1\n")
    return dev


@pytest.fixture(autouse=True)  # type: ignore[misc]
def no_dumpsys(monkeypatch: Any) -> None:
    """Act as a host without Android's `dumpsys`, whatever the test machine has."""

    def missing(*args: str, timeout: float = 2.0) -> str:
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(sampler_module, "run_command", missing)
