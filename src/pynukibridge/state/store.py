"""State store interface and in-memory reference implementation.

The host platform owns the real state tree; the adapter only needs the
small surface described by :class:`StateStore`. :class:`InMemoryStateStore`
implements the same semantics for tests and local runs.
"""

from __future__ import annotations

import contextlib
import fnmatch
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from pynukibridge.exceptions import StoreWriteError
from pynukibridge.state.objects import ObjectDescriptor, StateValue

_logger = logging.getLogger(__name__)

StateCallback = Callable[[str, StateValue], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StateStore(Protocol):
    """Structural interface of the host's state tree."""

    async def ensure_declared(self, path: str, descriptor: ObjectDescriptor) -> bool:
        """Create the object at *path* unless one exists. Returns ``True`` if created."""
        ...

    async def write(self, path: str, value: Any, *, ack: bool) -> None: ...

    def batch(self) -> AbstractAsyncContextManager[None]:
        """Group writes so readers see all of them or none."""
        ...


@runtime_checkable
class SupportsSubscribe(Protocol):
    """A store that can notify about committed writes."""

    def subscribe(self, pattern: str, callback: StateCallback) -> None: ...

    def unsubscribe(self, pattern: str, callback: StateCallback) -> None: ...


class InMemoryStateStore:
    """Dictionary-backed state tree with subscriptions.

    Writes are type-checked against the declared object. Inside
    :meth:`batch` writes are staged and become visible, and notify
    subscribers, only when the block exits without an exception.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._objects: dict[str, ObjectDescriptor] = {}
        self._states: dict[str, StateValue] = {}
        self._subscriptions: list[tuple[str, StateCallback]] = []
        self._staged: dict[str, StateValue] | None = None

    async def ensure_declared(self, path: str, descriptor: ObjectDescriptor) -> bool:
        if not path or path.startswith(".") or path.endswith(".") or ".." in path:
            raise StoreWriteError(f"Invalid object path {path!r}", path=path)
        if path in self._objects:
            return False
        self._objects[path] = descriptor
        _logger.debug("Declared %s object at %s", descriptor.type, path)
        return True

    async def write(self, path: str, value: Any, *, ack: bool) -> None:
        descriptor = self._objects.get(path)
        if descriptor is None:
            raise StoreWriteError(f"No object declared at {path}", path=path)
        if not descriptor.accepts(value):
            raise StoreWriteError(
                f"Value {value!r} does not match {descriptor.type} {descriptor.common.type} at {path}",
                path=path,
            )

        state = StateValue(val=value, ack=ack, ts=self._clock())
        if self._staged is not None:
            self._staged[path] = state
            return
        self._commit({path: state})

    @contextlib.asynccontextmanager
    async def batch(self) -> AsyncIterator[None]:
        if self._staged is not None:
            # Nested batches join the outer one.
            yield
            return

        staged: dict[str, StateValue] = {}
        self._staged = staged
        try:
            yield
        finally:
            self._staged = None
        self._commit(staged)

    def _commit(self, states: dict[str, StateValue]) -> None:
        self._states.update(states)
        for path, state in states.items():
            for pattern, callback in list(self._subscriptions):
                if not fnmatch.fnmatchcase(path, pattern):
                    continue
                try:
                    callback(path, state)
                except Exception:
                    _logger.debug("State subscriber for %s failed", pattern, exc_info=True)

    # ------------------------------------------------------------------
    # Reads and subscriptions
    # ------------------------------------------------------------------

    def get_object(self, path: str) -> ObjectDescriptor | None:
        return self._objects.get(path)

    def get_state(self, path: str) -> StateValue | None:
        return self._states.get(path)

    def snapshot(self, prefix: str = "") -> dict[str, StateValue]:
        """All committed states whose path starts with *prefix*."""
        return {path: state for path, state in sorted(self._states.items()) if path.startswith(prefix)}

    def subscribe(self, pattern: str, callback: StateCallback) -> None:
        """Call *callback* for every committed write whose path matches *pattern*."""
        self._subscriptions.append((pattern, callback))

    def unsubscribe(self, pattern: str, callback: StateCallback) -> None:
        with contextlib.suppress(ValueError):
            self._subscriptions.remove((pattern, callback))
