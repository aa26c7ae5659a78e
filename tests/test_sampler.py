"""Unit tests for the procfs/sysfs readers, against a fake device tree."""

from __future__ import annotations

import shutil
from typing import Any

import pytest

from asmo.core.contracts.stats import BatteryStatus
from asmo.monitor import sampler as sampler_module
from asmo.monitor.sampler import CpuTimes, Sampler, parse_cpu_stat, usage_between
from asmo.monitor.sysfs import core_index, first_float, read_float
from conftest import FakeDevice


@pytest.fixture  # type: ignore[misc]
def sampler(fake_device: FakeDevice) -> Sampler:
    return Sampler(fake_device.proc, fake_device.sys, fake_device.proc.parent)


def test_sysfs_helpers(fake_device: FakeDevice) -> None:
    assert core_index("cpu12") == 12
    assert core_index("cpufreq") is None
    assert first_float("42 kB") == 42.0
    assert read_float(fake_device.proc / "uptime") == pytest.approx(12345.67)
    with pytest.raises(ValueError):
        read_float(fake_device.write(fake_device.proc / "empty", "\n"))
    with pytest.raises(OSError):
        read_float(fake_device.proc / "missing")


def test_cpu_stat_arithmetic() -> None:
    times = parse_cpu_stat("100 0 100 700 100 0 0 0 55 55".split())
    assert times == CpuTimes(total=1000, idle=800)
    assert usage_between(CpuTimes(), times) == pytest.approx(20.0)
    assert usage_between(times, times) == 0.0


def test_cpu_times_aggregate_and_per_core(sampler: Sampler) -> None:
    total, per_core = sampler.cpu_times()
    assert total == CpuTimes(total=1000, idle=800)
    assert sorted(per_core) == [0, 1]
    assert usage_between(CpuTimes(), per_core[0]) == pytest.approx(25.0)


def test_cpu_freqs_in_mhz_with_offline_core(sampler: Sampler) -> None:
    assert sampler.cpu_freqs(["cpu0", "cpu1", "cpu7"]) == pytest.approx([1804.8, 2400.0, 0.0])


def test_thermal_and_gpu(fake_device: FakeDevice, sampler: Sampler) -> None:
    zone = fake_device.sys / "class" / "thermal" / "thermal_zone1" / "temp"
    assert sampler.thermal(zone) == pytest.approx(45.2)
    assert sampler.gpu_load() == pytest.approx(25.0)


def test_memory(sampler: Sampler) -> None:
    mem = sampler.memory()
    assert mem.total_mb == pytest.approx(7812.5)
    assert mem.used_mb == pytest.approx(3906.25)
    assert mem.swap_total_mb == pytest.approx(2000.0)
    assert mem.swap_used_mb == pytest.approx(1000.0)


def test_memory_without_total_is_an_error(fake_device: FakeDevice, sampler: Sampler) -> None:
    fake_device.write(fake_device.proc / "meminfo", "MemFree: 1 kB\n")
    with pytest.raises(ValueError):
        sampler.memory()


def test_uptime_and_network(sampler: Sampler) -> None:
    assert sampler.uptime() == 12345
    rx, tx = sampler.network()
    assert rx == pytest.approx(2.0)
    assert tx == pytest.approx(1.0)


def test_storage(sampler: Sampler) -> None:
    free, total = sampler.storage()
    assert total > 0
    assert 0 <= free <= total


def test_battery(sampler: Sampler) -> None:
    reading = sampler.battery()
    assert reading.level == 85
    assert reading.status is BatteryStatus.CHARGING
    assert reading.temp_c == pytest.approx(31.2)


def test_battery_found_by_type(fake_device: FakeDevice, sampler: Sampler) -> None:
    supplies = fake_device.sys / "class" / "power_supply"
    shutil.rmtree(supplies / "battery")
    fake_device.write(supplies / "usb" / "type", "USB\n")
    fake_device.write(supplies / "BAT0" / "type", "Battery\n")
    fake_device.write(supplies / "BAT0" / "capacity", "40\n")
    fake_device.write(supplies / "BAT0" / "status", "Not charging\n")

    reading = sampler.battery()
    assert reading.level == 40
    assert reading.status is BatteryStatus.NOT_CHARGING
    assert reading.temp_c == 0.0


def test_brightness(fake_device: FakeDevice, sampler: Sampler) -> None:
    assert sampler.brightness() == pytest.approx(0.5)
    fake_device.write(
        fake_device.sys / "class" / "backlight" / "panel0-backlight" / "max_brightness", "0\n"
    )
    with pytest.raises(ValueError):
        sampler.brightness()


def test_battery_status_mapping() -> None:
    assert BatteryStatus.from_code(5) is BatteryStatus.FULL
    assert BatteryStatus.from_code(99) is BatteryStatus.UNKNOWN
    assert BatteryStatus.from_text(" discharging ") is BatteryStatus.DISCHARGING
    assert BatteryStatus.from_text("weird") is BatteryStatus.UNKNOWN


def test_refresh_rate_from_framebuffer_mode(sampler: Sampler) -> None:
    """Without `dumpsys` the first fb0 mode supplies the rate."""
    assert sampler.refresh_rate() == pytest.approx(120.0)


def test_refresh_rate_prefers_dumpsys(sampler: Sampler, monkeypatch: Any) -> None:
    dump = "Display Devices:\n  mActiveRenderFrameRate=90.0\n  mActiveRenderFrameRate=60.0\n"
    monkeypatch.setattr(sampler_module, "run_command", lambda *args, **kwargs: dump)
    assert sampler.refresh_rate() == pytest.approx(90.0)


def test_refresh_rate_unavailable(fake_device: FakeDevice, sampler: Sampler) -> None:
    (fake_device.sys / "class" / "graphics" / "fb0" / "modes").unlink()
    with pytest.raises(OSError):
        sampler.refresh_rate()

    fake_device.write(fake_device.sys / "class" / "graphics" / "fb0" / "modes", "U:1080x2400p\n")
    with pytest.raises(ValueError):
        sampler.refresh_rate()
