"""Mirror lock records into the host state tree.

For each lock the mirror declares a ``device`` object at
``{namespace}.{lock id}`` and four typed states below it, then writes the
record's values with ``ack=True``: they are confirmed facts reported by the
bridge, not pending commands. Writes are unconditional; there is no diffing
against the previous cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from pynukibridge._constants import sanitize_path_segment
from pynukibridge.exceptions import StoreWriteError
from pynukibridge.models.lock import LockRecord
from pynukibridge.state.objects import ObjectDescriptor, ValueType, device_object, state_object
from pynukibridge.state.store import StateStore

_logger = logging.getLogger(__name__)


class MirroredLeaf(NamedTuple):
    key: str
    descriptor: ObjectDescriptor
    value_of: Callable[[LockRecord], Any]


MIRRORED_LEAVES: tuple[MirroredLeaf, ...] = (
    MirroredLeaf(
        "state",
        state_object("Status", ValueType.NUMBER, "value"),
        lambda lock: lock.last_known_state.state,
    ),
    MirroredLeaf(
        "stateName",
        state_object("Status text", ValueType.STRING, "text"),
        lambda lock: lock.last_known_state.state_name,
    ),
    MirroredLeaf(
        "batteryCritical",
        state_object("Battery critical", ValueType.BOOLEAN, "value"),
        lambda lock: lock.last_known_state.battery_critical,
    ),
    MirroredLeaf(
        "timestamp",
        state_object("Last state change", ValueType.STRING, "time"),
        lambda lock: lock.last_known_state.timestamp,
    ),
)


def lock_path(namespace: str, lock: LockRecord) -> str:
    return f"{namespace}.{sanitize_path_segment(lock.id)}"


@dataclass
class MirrorResult:
    """Outcome of mirroring one lock."""

    path: str
    written: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class StateMirror:
    """Write lock records into a :class:`StateStore`."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    async def mirror(self, namespace: str, lock: LockRecord) -> MirrorResult:
        """Declare and write the four leaves for *lock*.

        A rejected leaf is logged and skipped; the remaining leaves are
        still written. All accepted writes are committed together.
        """
        path = lock_path(namespace, lock)
        result = MirrorResult(path=path)

        try:
            await self._store.ensure_declared(path, device_object(lock.name))
        except StoreWriteError as exc:
            _logger.error("Could not declare lock %s (%s): %s", lock.id, lock.name, exc)

        async with self._store.batch():
            for leaf in MIRRORED_LEAVES:
                leaf_path = f"{path}.{leaf.key}"
                try:
                    await self._store.ensure_declared(leaf_path, leaf.descriptor)
                    await self._store.write(leaf_path, leaf.value_of(lock), ack=True)
                except StoreWriteError as exc:
                    _logger.error("Could not write %s: %s", leaf_path, exc)
                    result.failed.append(leaf.key)
                    continue
                result.written.append(leaf.key)

        _logger.debug("Mirrored lock %s (%s) to %s", lock.id, lock.name, path)
        return result

    async def mirror_all(self, namespace: str, locks: Iterable[LockRecord]) -> list[MirrorResult]:
        """Mirror *locks* one after another, in the order given."""
        return [await self.mirror(namespace, lock) for lock in locks]
