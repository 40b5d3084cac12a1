"""Periodic lock-list polling.

:class:`LockPoller` drives the adapter lifecycle::

    idle -> fetching -> mirroring -> idle -> ...   (every poll_interval)
    any  -> stopped                                (on stop(), terminal)

Every error of a cycle is handled at the cycle boundary: it is logged and
the next tick runs as scheduled.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import aiohttp

from pynukibridge._redact import redact_for_log
from pynukibridge.client import NukiBridgeClient
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import (
    BridgeConfigError,
    BridgeEmptyResponseError,
    BridgeParseError,
    BridgeTransportError,
    NukiBridgeError,
)
from pynukibridge.models.lock import LockRecord
from pynukibridge.state.mirror import MirrorResult, StateMirror
from pynukibridge.state.objects import StateValue
from pynukibridge.state.store import StateStore, SupportsSubscribe

_logger = logging.getLogger(__name__)


class PollerState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    MIRRORING = "mirroring"
    STOPPED = "stopped"


@dataclass
class CycleResult:
    """Outcome of one fetch + mirror cycle."""

    locks: list[LockRecord] = field(default_factory=list)
    mirrored: list[MirrorResult] = field(default_factory=list)
    error: Exception | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled and all(m.ok for m in self.mirrored)


class LockPoller:
    """Poll the bridge and mirror its locks into a state store.

    Usage::

        async with LockPoller(config, store) as poller:
            ...  # runs until the block exits
    """

    def __init__(
        self,
        config: BridgeConfig,
        store: StateStore,
        *,
        client: NukiBridgeClient | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._mirror = StateMirror(store)
        self._owns_client = client is None
        self._client = client if client is not None else NukiBridgeClient(config, session=session)
        self._task: asyncio.Task[None] | None = None
        self._state = PollerState.IDLE
        self._subscription: str | None = None
        self._cycle_count = 0
        self._last_result: CycleResult | None = None
        self._cycle_lock = asyncio.Lock()

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def cycle_count(self) -> int:
        """Number of completed cycles."""
        return self._cycle_count

    @property
    def last_result(self) -> CycleResult | None:
        return self._last_result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LockPoller:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Open the client, subscribe to the namespace and schedule polling."""
        if self._state == PollerState.STOPPED:
            raise NukiBridgeError("Poller has been stopped and cannot be restarted")
        if self._task is not None:
            return

        if self._owns_client:
            await self._client.__aenter__()

        _logger.info(
            "Starting lock poller for bridge %s: %s",
            self._config.namespace or "<unnamed>",
            redact_for_log(dataclasses.asdict(self._config)),
        )

        if self._config.namespace and isinstance(self._store, SupportsSubscribe):
            self._subscription = f"{self._config.namespace}.*"
            self._store.subscribe(self._subscription, self._on_state_change)

        self._task = asyncio.create_task(self._run(), name=f"pynukibridge-poll-{self._config.namespace}")

    async def stop(self) -> None:
        """Cancel pending work and release resources.

        Safe to call at any time, including while a cycle is in flight;
        staged writes of an interrupted cycle are discarded.
        """
        if self._state == PollerState.STOPPED:
            return
        self._state = PollerState.STOPPED
        task, self._task = self._task, None
        try:
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        finally:
            if self._subscription is not None and isinstance(self._store, SupportsSubscribe):
                self._store.unsubscribe(self._subscription, self._on_state_change)
                self._subscription = None
            if self._owns_client:
                await self._client.close()
            _logger.info("Lock poller stopped, cleaned everything up")

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                _logger.exception("Unexpected error during lock poll")
            if self._config.poll_interval <= 0:
                return
            await asyncio.sleep(self._config.poll_interval)

    # ------------------------------------------------------------------
    # One cycle
    # ------------------------------------------------------------------

    async def poll_once(self) -> CycleResult:
        """Fetch the lock list once and mirror every lock.

        Never raises :class:`NukiBridgeError`; the error is logged and
        returned on the result. Concurrent calls run one after another, so
        at most one request is outstanding.
        """
        async with self._cycle_lock:
            return await self._cycle()

    async def _cycle(self) -> CycleResult:
        result = CycleResult()
        if self._state == PollerState.STOPPED:
            result.cancelled = True
            return result

        self._state = PollerState.FETCHING
        try:
            try:
                locks = await self._client.get_locks()
            except BridgeConfigError as exc:
                _logger.warning("Skipping lock poll: %s", exc)
                result.error = exc
                return result
            except BridgeEmptyResponseError as exc:
                _logger.warning("Response has no valid content. Check IP address and try again: %s", exc)
                result.error = exc
                return result
            except (BridgeTransportError, BridgeParseError) as exc:
                _logger.error("Lock list request failed: %s", exc)
                result.error = exc
                return result
            except NukiBridgeError as exc:
                _logger.error("Lock poll failed: %s", exc)
                result.error = exc
                return result

            if self._state == PollerState.STOPPED:
                # stop() ran while the request was in flight.
                result.cancelled = True
                return result

            result.locks = locks
            self._state = PollerState.MIRRORING
            result.mirrored = await self._mirror.mirror_all(self._config.namespace, locks)
            _logger.debug("Mirrored %d lock(s) from %s", len(locks), self._config.namespace)
            return result
        except asyncio.CancelledError:
            result.cancelled = True
            raise
        except Exception as exc:
            result.error = exc
            raise
        finally:
            if self._state != PollerState.STOPPED:
                self._state = PollerState.IDLE
            self._cycle_count += 1
            self._last_result = result

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def _on_state_change(self, path: str, state: StateValue) -> None:
        if state.ack:
            _logger.debug("stateChange %s val=%r", path, state.val)
            return
        # Mirrored states are read-only; commands are not forwarded to the bridge.
        _logger.info("Ignoring command on %s (val=%r): ack is not set", path, state.val)
