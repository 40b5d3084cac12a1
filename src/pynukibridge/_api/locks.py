"""Lock list endpoint: ``GET /list?token=...``."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from pynukibridge._constants import LIST_ENDPOINT, sanitize_path_segment
from pynukibridge._transport import Transport
from pynukibridge.config import BridgeConfig
from pynukibridge.exceptions import BridgeConfigError, BridgeParseError
from pynukibridge.models.lock import LockRecord

_logger = logging.getLogger(__name__)

_LOCK_LIST = TypeAdapter(list[LockRecord])


def _items_from_body(body: Any) -> list[Any]:
    """Flatten the two accepted body shapes into a list of raw records.

    The bridge answers with an array. Some proxies re-key it by lock id;
    for that shape the key fills in a missing ``id``.
    """
    if isinstance(body, list):
        return list(body)
    if isinstance(body, dict):
        items: list[Any] = []
        for key, value in body.items():
            if isinstance(value, dict) and "id" not in value and "nukiId" not in value:
                value = {**value, "id": key}
            items.append(value)
        return items
    raise BridgeParseError(
        f"Lock list must be a JSON array or object, got {type(body).__name__}",
        endpoint=LIST_ENDPOINT,
    )


def parse_lock_list(body: Any) -> list[LockRecord]:
    """Decode a ``/list`` body into lock records.

    Either every entry decodes or a :class:`BridgeParseError` is raised;
    there are no partial results.
    """
    items = _items_from_body(body)
    try:
        locks = _LOCK_LIST.validate_python(items)
    except ValidationError as exc:
        raise BridgeParseError(
            f"Lock list did not validate: {exc.error_count()} error(s): {exc.errors()[0]['msg']}",
            endpoint=LIST_ENDPOINT,
        ) from exc

    # Ids that differ only in path separators would share one state path.
    seen: dict[str, str] = {}
    for lock in locks:
        segment = sanitize_path_segment(lock.id)
        if segment in seen:
            raise BridgeParseError(
                f"Duplicate lock id {lock.id!r} in lock list (collides with {seen[segment]!r})",
                endpoint=LIST_ENDPOINT,
            )
        seen[segment] = lock.id
    return locks


async def fetch_locks(config: BridgeConfig, transport: Transport) -> list[LockRecord]:
    """Fetch and parse the lock list.

    Raises :class:`BridgeConfigError` without issuing a request when no
    bridge address is configured.
    """
    if not config.has_address:
        raise BridgeConfigError("No bridge address configured")

    body = await transport.get_json(LIST_ENDPOINT, {"token": config.token})
    locks = parse_lock_list(body)
    _logger.debug("Lock list from %s: %d lock(s)", config.list_url, len(locks))
    return locks
