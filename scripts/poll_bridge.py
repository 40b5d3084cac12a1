#!/usr/bin/env python3
"""Run one poll cycle against a live bridge and print the mirrored tree.

Settings come from ``NUKI_*`` environment variables; command line flags
override them. Example::

    NUKI_TOKEN=abc123 python scripts/poll_bridge.py --ip 192.168.1.10
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pynukibridge import BridgeConfig, InMemoryStateStore, LockPoller  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--ip", dest="bridge_ip", help="Bridge IP address or hostname")
    parser.add_argument("--port", dest="bridge_port", type=int, help="Bridge API port")
    parser.add_argument("--token", help="Bridge API token")
    parser.add_argument("--name", dest="bridge_name", help="State-tree namespace")
    parser.add_argument("--timeout", dest="request_timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def _run(config: BridgeConfig) -> int:
    store = InMemoryStateStore()
    poller = LockPoller(config, store)
    try:
        await poller.start()
        while poller.cycle_count < 1:
            await asyncio.sleep(0.05)
    finally:
        await poller.stop()

    result = poller.last_result
    tree: dict[str, Any] = {
        path: {"val": state.val, "ack": state.ack, "ts": state.ts.isoformat()}
        for path, state in store.snapshot().items()
    }
    print(json.dumps(tree, indent=2, ensure_ascii=False))
    if result is None or not result.ok:
        print(f"Cycle failed: {result.error if result else 'no result'}", file=sys.stderr)
        return 1
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "verbose" and value is not None
    }
    config = BridgeConfig.from_env(poll_interval=0, **overrides)
    return asyncio.run(_run(config))


if __name__ == "__main__":
    raise SystemExit(main())
