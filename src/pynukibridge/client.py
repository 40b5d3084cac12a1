"""High-level async client for the bridge HTTP API."""

from __future__ import annotations

from typing import Any

import aiohttp

from pynukibridge._api.locks import fetch_locks
from pynukibridge._transport import BridgeTransport, Transport
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import NukiBridgeError
from pynukibridge.models.lock import LockRecord


class NukiBridgeClient:
    """Async client for the bridge's local API.

    Usage::

        async with NukiBridgeClient(config) as client:
            locks = await client.get_locks()
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> NukiBridgeClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = BridgeTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session if this client created it."""
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise NukiBridgeError("Client not initialized. Use 'async with NukiBridgeClient(...) as client:'")
        return self._transport

    async def get_locks(self) -> list[LockRecord]:
        """Fetch every lock paired with the bridge."""
        return await fetch_locks(self._config, self._require_transport())
