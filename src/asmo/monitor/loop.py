"""
Producer Loop: builds a full :class:`SystemStats` every period and publishes it.

Milestones of one cycle
-----------------------
1. **Sample**: every metric group is read through :meth:`Monitor._measure`.
2. **Assemble**: hot values are merged with the static device info into a
   fresh :class:`SystemStats`; nothing shared is mutated.
3. **Publish**: the record is described into a value tree and handed to
   :meth:`SnapshotStore.publish` in one call.

Failure policy
--------------
A single failed read never aborts the cycle. The field keeps the value of its
last successful read, or its documented sentinel (the ``SystemStats`` default)
if it was never read successfully. The first failure of a field is logged at
WARNING, repeats at DEBUG, and recovery at INFO, so a permanently missing
sensor does not flood the log. If building the record fails as a whole, the
previous snapshot simply stays published until a later cycle succeeds.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from asmo.core.contracts.stats import CoreData, SystemStats
from asmo.core.settings import Settings, get_logger
from asmo.core.snapshot import Snapshot, SnapshotStore
from asmo.monitor.discover import DevicePaths, StaticDeviceInfo, discover_device_layout
from asmo.monitor.sampler import BatteryReading, CpuTimes, MemoryInfo, Sampler, usage_between
from asmo.monitor.sysfs import READ_ERRORS, core_index

T = TypeVar("T")

logger = get_logger("asmo.monitor")

_NO_MEMORY = MemoryInfo(total_mb=0.0, available_mb=0.0, swap_total_mb=0.0, swap_free_mb=0.0)


class Monitor:
    """
    Sole writer of the snapshot store.

    Attributes
    ----------
    paths : DevicePaths
        Sensor files chosen at discovery.
    info : StaticDeviceInfo
        Identity and static core table.
    sampler : Sampler
        Stateless metric readers.
    storage_tick_interval : int
        Storage is re-read on every N-th cycle and cached in between.
    float_digits : int | None
        Rounding applied when the record is described into a tree.
    """

    def __init__(
        self,
        paths: DevicePaths,
        info: StaticDeviceInfo,
        sampler: Sampler,
        *,
        storage_tick_interval: int = 60,
        float_digits: int | None = 2,
    ) -> None:
        self.paths = paths
        self.info = info
        self.sampler = sampler
        self.storage_tick_interval = max(1, storage_tick_interval)
        self.float_digits = float_digits

        self._tick = 0
        self._last: dict[str, Any] = {}
        self._failing: set[str] = set()
        self._core_names = [core.name for core in info.cores]
        self._prev_total = CpuTimes()
        self._prev_cores: dict[int, CpuTimes] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> Monitor:
        """Run device discovery and build a monitor wired to ``settings``."""
        paths, info = discover_device_layout(settings.proc_root, settings.sys_root)
        sampler = Sampler(settings.proc_root, settings.sys_root, settings.storage_path)
        return cls(
            paths,
            info,
            sampler,
            storage_tick_interval=settings.storage_tick_interval,
            float_digits=settings.float_digits,
        )

    # ------------------------------- policy ---------------------------------

    def _measure(self, field: str, read: Callable[[], T], sentinel: T) -> T:
        """Run ``read``; on failure return the last good value or ``sentinel``."""
        try:
            value = read()
        except READ_ERRORS as exc:
            if field in self._failing:
                logger.debug("Reading %s still failing: %s", field, exc)
            else:
                self._failing.add(field)
                logger.warning("Reading %s failed, keeping previous value: %s", field, exc)
            return self._last.get(field, sentinel)

        if field in self._failing:
            self._failing.discard(field)
            logger.info("Reading %s recovered", field)
        self._last[field] = value
        return value

    @property
    def failing_fields(self) -> frozenset[str]:
        """Fields whose most recent read failed."""
        return frozenset(self._failing)

    def _cpu_usage(self) -> tuple[float, list[float]]:
        """Total and per-core busy percentages since the previous cycle."""
        total, per_core = self.sampler.cpu_times()
        usages: list[float] = []
        for name in self._core_names:
            index = core_index(name)
            current = per_core.get(index) if index is not None else None
            if current is None or index is None:
                usages.append(0.0)
                continue
            usages.append(usage_between(self._prev_cores.get(index, CpuTimes()), current))
            self._prev_cores[index] = current
        total_usage = usage_between(self._prev_total, total)
        self._prev_total = total
        return total_usage, usages

    # ------------------------------- cycle ----------------------------------

    def build_snapshot(self) -> SystemStats:
        """Sample every metric once and assemble a fresh record."""
        core_count = len(self._core_names)

        cpu_temp = self._measure("cpu_temp", lambda: self.sampler.thermal(self.paths.cpu_temp), 0.0)
        gpu_temp = self._measure("gpu_temp", lambda: self.sampler.thermal(self.paths.gpu_temp), 0.0)
        gpu_load = self._measure("gpu_load", self.sampler.gpu_load, 0.0)
        memory = self._measure("memory", self.sampler.memory, _NO_MEMORY)
        total_cpu, usages = self._measure("cpu_usage", self._cpu_usage, (0.0, [0.0] * core_count))
        freqs = self._measure(
            "cur_freq", lambda: self.sampler.cpu_freqs(self._core_names), [0.0] * core_count
        )
        uptime = self._measure("uptime_seconds", self.sampler.uptime, 0)
        rx_mb, tx_mb = self._measure("network", self.sampler.network, (0.0, 0.0))
        battery = self._measure("battery", self.sampler.battery, BatteryReading())
        refresh_rate = self._measure("refresh_rate", self.sampler.refresh_rate, 0.0)
        brightness = self._measure("brightness", self.sampler.brightness, 0.0)

        if self._tick % self.storage_tick_interval == 0:
            storage_free, storage_total = self._measure("storage", self.sampler.storage, (0.0, 0.0))
        else:
            storage_free, storage_total = self._last.get("storage", (0.0, 0.0))
        self._tick += 1

        cores = [
            CoreData(
                name=core.name,
                usage=usages[i] if i < len(usages) else 0.0,
                model_name=core.model_name,
                cur_freq=freqs[i] if i < len(freqs) else 0.0,
                min_freq=core.min_freq,
                max_freq=core.max_freq,
            )
            for i, core in enumerate(self.info.cores)
        ]

        return SystemStats(
            manufacturer=self.info.manufacturer,
            product_model=self.info.product_model,
            soc_model=self.info.soc_model,
            kernel_version=self.info.kernel_version,
            android_version=self.info.android_version,
            uptime_seconds=uptime,
            battery_level=battery.level,
            battery_status=battery.status,
            battery_temp=battery.temp_c,
            cpu_temp=cpu_temp,
            gpu_temp=gpu_temp,
            gpu_load=gpu_load,
            total_cpu=total_cpu,
            memory_used_mb=memory.used_mb,
            memory_total_mb=memory.total_mb,
            swap_used_mb=memory.swap_used_mb,
            swap_total_mb=memory.swap_total_mb,
            tx_bytes_mb=tx_mb,
            rx_bytes_mb=rx_mb,
            storage_free_gb=storage_free,
            storage_total_gb=storage_total,
            refresh_rate=refresh_rate,
            brightness=brightness,
            cores=cores,
        )

    def run_once(self, store: SnapshotStore) -> Snapshot:
        """Build one record and publish it; exceptions propagate to the caller."""
        stats = self.build_snapshot()
        return store.publish(stats.describe(self.float_digits))

    async def run(
        self, store: SnapshotStore, interval_s: float, *, cycles: int | None = None
    ) -> None:
        """
        Refresh ``store`` every ``interval_s`` seconds until cancelled.

        Blocking file reads run in a worker thread. A cycle that raises is
        logged and skipped; the previously published snapshot stays current.
        ``cycles`` bounds the number of iterations (used by one-shot callers).
        """
        loop = asyncio.get_running_loop()
        logger.info("Producer loop started (period %.0f ms)", interval_s * 1000)
        done = 0
        while cycles is None or done < cycles:
            started = loop.time()
            try:
                snap = await asyncio.to_thread(self.run_once, store)
                logger.debug("Published snapshot v%d", snap.version)
            except Exception:
                logger.exception("Snapshot cycle failed; v%d stays published", store.version)
            done += 1
            if cycles is not None and done >= cycles:
                break
            await asyncio.sleep(max(0.0, interval_s - (loop.time() - started)))


__all__ = ["Monitor"]
