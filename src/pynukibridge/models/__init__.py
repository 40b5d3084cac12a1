"""Data models for bridge API responses."""

from pynukibridge.models._base import BridgeBaseModel
from pynukibridge.models.lock import LastKnownState, LockRecord

__all__ = [
    "BridgeBaseModel",
    "LastKnownState",
    "LockRecord",
]
