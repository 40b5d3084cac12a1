"""pynukibridge - Mirror smart-lock bridge state into a home-automation state tree."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pynukibridge")
except PackageNotFoundError:
    __version__ = "0+local"
from pynukibridge.client import NukiBridgeClient
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import (
    BridgeConfigError,
    BridgeEmptyResponseError,
    BridgeParseError,
    BridgeTransportError,
    NukiBridgeError,
    StoreWriteError,
)
from pynukibridge.models import LastKnownState, LockRecord
from pynukibridge.poller import CycleResult, LockPoller, PollerState
from pynukibridge.state import InMemoryStateStore, MirrorResult, StateMirror, StateStore, StateValue

__all__ = [
    "__version__",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeEmptyResponseError",
    "BridgeParseError",
    "BridgeTransportError",
    "CycleResult",
    "InMemoryStateStore",
    "LastKnownState",
    "LockPoller",
    "LockRecord",
    "MirrorResult",
    "NukiBridgeClient",
    "NukiBridgeError",
    "PollerState",
    "StateMirror",
    "StateStore",
    "StateValue",
    "StoreWriteError",
]
