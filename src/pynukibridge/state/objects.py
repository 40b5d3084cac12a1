"""Object descriptors declared in the host state tree.

The host platform needs an object (type + role metadata) at a path
before it accepts state values there.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ObjectType(StrEnum):
    DEVICE = "device"
    STATE = "state"


class ValueType(StrEnum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"


class ObjectCommon(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    type: ValueType | None = None
    role: str | None = None
    read: bool = True
    write: bool = False


class ObjectDescriptor(BaseModel):
    """A typed object definition, e.g. ``{"type": "state", "common": {...}}``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ObjectType
    common: ObjectCommon
    native: dict[str, Any] = Field(default_factory=dict)

    def accepts(self, value: Any) -> bool:
        """Whether *value* matches the declared value type."""
        expected = self.common.type
        if self.type != ObjectType.STATE or expected is None:
            return False
        if value is None:
            return True
        if expected == ValueType.BOOLEAN:
            return isinstance(value, bool)
        if expected == ValueType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)


class StateValue(BaseModel):
    """A value written to a state, as seen by readers and subscribers."""

    model_config = ConfigDict(frozen=True)

    val: Any
    ack: bool
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))


def device_object(name: str) -> ObjectDescriptor:
    return ObjectDescriptor(type=ObjectType.DEVICE, common=ObjectCommon(name=name))


def state_object(name: str, value_type: ValueType, role: str) -> ObjectDescriptor:
    return ObjectDescriptor(
        type=ObjectType.STATE,
        common=ObjectCommon(name=name, type=value_type, role=role),
    )
