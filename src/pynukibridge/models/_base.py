"""Base model for bridge API responses.

Every bridge response model inherits from :class:`BridgeBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``raw`` dict that captures the original payload, so fields the
  library does not model (firmware version, door sensor state, ...) stay
  reachable.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class BridgeBaseModel(BaseModel):
    """Base for bridge API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        # Keep the caller's raw= when constructing with kwargs.
        if not isinstance(values, dict) or "raw" in values:
            return values
        merged = dict(values)
        merged["raw"] = dict(values)
        return merged
