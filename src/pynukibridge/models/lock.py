"""Lock record model for the ``/list`` endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, StrictBool, StrictInt, StrictStr, field_validator

from pynukibridge.models._base import BridgeBaseModel


class LastKnownState(BridgeBaseModel):
    """Last state the bridge has seen for a lock."""

    state: StrictInt
    """Bridge-defined status code (e.g. ``1`` = locked)."""
    state_name: StrictStr
    """Human-readable counterpart of :attr:`state`."""
    battery_critical: StrictBool
    """Whether the lock reports a critical battery level."""
    timestamp: StrictStr
    """ISO-8601 time of the last state change, as reported by the bridge."""


class LockRecord(BridgeBaseModel):
    """One lock paired with the bridge.

    Current bridge firmware sends the identifier as ``nukiId``; ``id`` is
    accepted as well.
    """

    id: str = Field(validation_alias=AliasChoices("id", "nukiId"))
    """Stable lock identifier, normalized to ``str``."""
    name: StrictStr
    """Display name assigned in the app."""
    last_known_state: LastKnownState

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError("lock id must be a string or an integer")
        text = str(value).strip()
        if not text:
            raise ValueError("lock id must be non-empty")
        return text
