"""Adapter configuration for pynukibridge."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pynukibridge._constants import (
    DEFAULT_BRIDGE_PORT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    LIST_ENDPOINT,
    sanitize_path_segment,
)


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Adapter configuration.

    Parameters
    ----------
    bridge_ip : str
        Bridge IP address or hostname. An empty value disables fetching.
    bridge_port : int
        Bridge HTTP API port.
    token : str
        API token configured on the bridge.
    bridge_name : str
        Optional name used as the state-tree namespace. Defaults to the
        IP address with separators replaced (``192_168_1_10``).
    poll_interval : float
        Seconds between two polls. ``0`` or less polls only once on start.
    request_timeout : float
        Total timeout in seconds for one bridge request.
    """

    bridge_ip: str = ""
    bridge_port: int = DEFAULT_BRIDGE_PORT
    token: str = ""
    bridge_name: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def has_address(self) -> bool:
        return bool(self.bridge_ip.strip())

    @property
    def base_url(self) -> str:
        return f"http://{self.bridge_ip.strip()}:{self.bridge_port}"

    @property
    def list_url(self) -> str:
        """Lock list URL without the token query parameter."""
        return f"{self.base_url}{LIST_ENDPOINT}"

    @property
    def namespace(self) -> str:
        """State-tree prefix for every lock of this bridge."""
        name = self.bridge_name.strip() or self.bridge_ip
        return sanitize_path_segment(name)

    @classmethod
    def from_adapter_config(cls, native: Mapping[str, Any], **overrides: Any) -> BridgeConfig:
        """Create configuration from the host's native adapter settings.

        The host stores ``bridge_ip``, ``bridge_port``, ``token`` and
        ``bridge_name``; missing or ``None`` entries fall back to defaults.
        """
        kwargs: dict[str, Any] = {}
        for key in ("bridge_ip", "token", "bridge_name"):
            value = native.get(key)
            if value is not None:
                kwargs[key] = str(value)

        port = native.get("bridge_port")
        if port not in (None, ""):
            kwargs["bridge_port"] = int(port)

        for key in ("poll_interval", "request_timeout"):
            value = native.get(key)
            if value not in (None, ""):
                kwargs[key] = float(value)

        kwargs.update(overrides)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from ``NUKI_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "NUKI_BRIDGE_IP": "bridge_ip",
            "NUKI_TOKEN": "token",
            "NUKI_BRIDGE_NAME": "bridge_name",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("NUKI_BRIDGE_PORT")
        if port_env is not None and "bridge_port" not in overrides:
            config_kwargs["bridge_port"] = int(port_env)

        interval_env = env.get("NUKI_POLL_INTERVAL")
        if interval_env is not None and "poll_interval" not in overrides:
            config_kwargs["poll_interval"] = float(interval_env)

        timeout_env = env.get("NUKI_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
