"""HTTP transport for the bridge's local REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp
from yarl import URL

from pynukibridge._redact import redact_url
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import BridgeEmptyResponseError, BridgeParseError, BridgeTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`BridgeTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> Any: ...


class BridgeTransport:
    """Plain HTTP GET transport with a bounded timeout and JSON decoding."""

    def __init__(
        self,
        config: BridgeConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> Any:
        """GET ``{base_url}{endpoint}`` and return the decoded JSON body.

        Raises
        ------
        BridgeTransportError
            Network failure, timeout, or non-200 status.
        BridgeEmptyResponseError
            Status 200 with an empty body or a JSON ``null``.
        BridgeParseError
            Body is not valid UTF-8 or not valid JSON.
        """
        url = f"{self._config.base_url}{endpoint}"
        _logger.debug("GET %s", redact_url(URL(url).with_query(dict(params))))

        try:
            async with self._http.get(url, params=dict(params), timeout=self._timeout) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    raise BridgeTransportError(
                        f"HTTP {resp.status} from {endpoint}: {raw[:200].decode(errors='replace')}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except BridgeTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise BridgeTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise BridgeTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BridgeParseError(
                f"Response from {endpoint} is not valid UTF-8: {raw[:200]!r}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            raise BridgeEmptyResponseError(f"Empty response from {endpoint}", endpoint=endpoint)

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise BridgeParseError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if body is None:
            raise BridgeEmptyResponseError(f"Null response from {endpoint}", endpoint=endpoint)
        return body
