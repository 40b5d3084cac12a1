"""State layer.

Declares the objects the adapter owns in the host state tree and mirrors
lock records into them.
"""

from pynukibridge.state.mirror import MIRRORED_LEAVES, MirrorResult, StateMirror, lock_path
from pynukibridge.state.objects import ObjectDescriptor, ObjectType, StateValue, ValueType
from pynukibridge.state.store import InMemoryStateStore, StateStore, SupportsSubscribe

__all__ = [
    "MIRRORED_LEAVES",
    "InMemoryStateStore",
    "MirrorResult",
    "ObjectDescriptor",
    "ObjectType",
    "StateMirror",
    "StateStore",
    "StateValue",
    "SupportsSubscribe",
    "ValueType",
    "lock_path",
]
