# scripts/smoke.py
"""
Smoke Test Script for asmo on a real device.

Runs device discovery, publishes a few snapshots and resolves a handful of
representative paths against the last one, printing what each returns. Use it
on a new device to see which sensors were found before serving it.

Usage
-----
1. Default paths:
    $ uv run python scripts/smoke.py

2. Custom paths and more refresh cycles:
    $ uv run python scripts/smoke.py --cycles 5 --path cores/all/usage,cur_freq
"""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

from asmo.core.query.resolver import resolve
from asmo.core.settings import load_settings
from asmo.core.snapshot import SnapshotStore
from asmo.core.value import thaw
from asmo.monitor.loop import Monitor

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Query Paths
# --------------------------------------------------------------------------- #
DEFAULT_PATHS = [
    "battery_level,battery_status,battery_temp",
    "cpu_temp,gpu_temp,gpu_load",
    "memory_used_mb,memory_total_mb",
    "cores/*/usage,cur_freq",
    "cores/cpu0",
]


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run asmo Smoke Test")
    parser.add_argument("--cycles", "-c", type=int, default=3, help="Refresh cycles to run")
    parser.add_argument(
        "--path", "-p", action="append", help="Path to resolve (repeatable)", default=None
    )
    args = parser.parse_args()

    cfg = load_settings()
    store = SnapshotStore()

    # 1. Discovery + Sampling Phase
    try:
        print("... Running device discovery ...")
        monitor = Monitor.from_settings(cfg)
        asyncio.run(monitor.run(store, cfg.poll_interval_s, cycles=max(1, args.cycles)))
    except Exception as exc:
        print(f"\n❌ Measurement Crashed: {exc}")
        traceback.print_exc()
        return

    snap = store.borrow()
    print("\n" + "=" * 60)
    print(f"✅ Published snapshot v{snap.version}")
    print("=" * 60)

    if monitor.failing_fields:
        print(f"\n⚠️  Fields without data: {', '.join(sorted(monitor.failing_fields))}")

    # 2. Resolution Phase
    for path in args.path or DEFAULT_PATHS:
        outcome = resolve(snap.tree, path, max_depth=cfg.max_fanout_depth)
        if outcome.is_err():
            failure = outcome.unwrap_err()
            print(f"\n❌ /{path}: {failure.message} at /{failure.path}")
            continue
        print(f"\n📌 /{path}")
        print(json.dumps(thaw(outcome.unwrap()), indent=2))


if __name__ == "__main__":
    main()
