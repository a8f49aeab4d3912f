"""Stage registry — stable identity for opaque pipeline-stage handles.

The hooking layer hands the registry whatever object represents a stage in
its reactive library.  The registry never writes to that object.  Identity
lives in a side table keyed by the handle, and labels and parents come from a
pluggable ``Provenance``.

Internal handles (the bus's own plumbing, or anything derived from it) are
excluded from identity assignment so that observing the bus never feeds
events back into it.

Thread Safety:
    All table access is guarded by a re-entrant lock (parent resolution
    recurses into the registry).

"""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from streamtrace.events.codec import UNKNOWN_LABEL

if TYPE_CHECKING:
    from collections.abc import Callable

    from streamtrace._types import StageHandle
    from streamtrace.instrument.identity import IdentityAllocator

# Attribute an explicit tag operator sets on a stage handle.
LABEL_ATTR = "__streamtrace_label__"

# Longest parent chain walked before giving up (guards cyclic provenance).
_MAX_PARENT_DEPTH = 1024

# Attribute values that are data, never an upstream stage.
_SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool)


@dataclass(frozen=True, slots=True)
class StageInfo:
    """What the provenance function knows about a stage handle.

    Attributes:
        label: Human name, ``"unknown"`` when unresolved.
        parent: Handle of the upstream stage, or None.

    """

    label: str = UNKNOWN_LABEL
    parent: object | None = None


class Provenance(Protocol):
    """Derives a label and an optional parent handle for a stage handle."""

    def describe(self, handle: object) -> StageInfo: ...


class AttributeProvenance:
    """Default provenance: explicit tag attribute, then the handle's type name.

    The parent is read from ``parent_attr`` (``source`` by default, the
    attribute most reactive libraries use to link an operator to its
    upstream).  Scalar values such as a file path held in ``source`` are
    not stages and yield no parent.

    """

    __slots__ = ("_label_attr", "_parent_attr")

    def __init__(self, *, label_attr: str = LABEL_ATTR, parent_attr: str = "source") -> None:
        self._label_attr = label_attr
        self._parent_attr = parent_attr

    def describe(self, handle: object) -> StageInfo:
        label = getattr(handle, self._label_attr, None)
        if not label:
            label = type(handle).__name__ or UNKNOWN_LABEL
        parent = getattr(handle, self._parent_attr, None)
        if isinstance(parent, _SCALAR_TYPES):
            parent = None
        return StageInfo(label=str(label), parent=parent)


def tag(handle: object, label: str) -> object:
    """Attach an explicit label to a stage handle and return it.

    Handles that refuse attribute assignment are returned untouched.
    """
    try:
        setattr(handle, LABEL_ATTR, label)
    except (AttributeError, TypeError):
        pass
    return handle


class _HandleTable:
    """Identity-keyed handle -> value map.

    Keys are ``id(handle)``, so two equal but distinct handles are distinct
    stages.  Handles are held weakly whenever they allow it; others are kept
    alive by the table so that their ``id()`` cannot be recycled.

    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        # id(handle) -> (weakref or the handle itself, value, is_weak)
        self._entries: dict[int, tuple[object, int, bool]] = {}

    def get(self, handle: object) -> int | None:
        entry = self._entries.get(id(handle))
        if entry is None:
            return None
        holder, value, is_weak = entry
        target = holder() if is_weak else holder  # type: ignore[operator]
        return value if target is handle else None

    def set(self, handle: object, value: int) -> None:
        key = id(handle)
        try:
            ref = weakref.ref(handle, lambda r, key=key: self._forget(key, r))
        except TypeError:
            self._entries[key] = (handle, value, False)
            return
        self._entries[key] = (ref, value, True)

    def _forget(self, key: int, ref: object) -> None:
        entry = self._entries.get(key)
        if entry is not None and entry[0] is ref:
            del self._entries[key]

    def __contains__(self, handle: object) -> bool:
        return self.get(handle) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class StageRegistry:
    """Assigns stage ids to handles, at most once per physical stage.

    Args:
        allocator: Source of stage ids.
        provenance: Label/parent derivation for handles.
        on_created: Called once per new stage with
            ``(stage_id, label, parent_id)``, while the registry lock is held
            so that a parent's creation is always reported before its child's.

    """

    def __init__(
        self,
        allocator: IdentityAllocator,
        provenance: Provenance,
        on_created: Callable[[int, str, int | None], None],
    ) -> None:
        self._allocator = allocator
        self._provenance = provenance
        self._on_created = on_created
        self._ids = _HandleTable()
        self._internal = _HandleTable()
        self._resolving: set[int] = set()
        self._lock = threading.RLock()

    def identity_of(self, handle: object) -> int | None:
        """Return the handle's stage id without assigning one."""
        with self._lock:
            return self._ids.get(handle)

    def mark_internal(self, handle: object) -> None:
        """Exclude a handle, and everything downstream of it, from tracing."""
        with self._lock:
            self._internal.set(handle, 1)

    def is_internal(self, handle: object) -> bool:
        """True if the handle or any transitive parent is marked internal."""
        with self._lock:
            current: object | None = handle
            seen: set[int] = set()
            while current is not None and id(current) not in seen:
                if current in self._internal:
                    return True
                if len(seen) >= _MAX_PARENT_DEPTH:
                    return False
                seen.add(id(current))
                current = self._provenance.describe(current).parent
            return False

    def record_first_seen(self, handle: StageHandle) -> int | None:
        """Return the handle's stage id, assigning one on first sight.

        Idempotent: only the first call for a handle allocates an id and
        reports a creation.  Internal handles get no id (returns None).

        """
        with self._lock:
            existing = self._ids.get(handle)
            if existing is not None:
                return existing
            if self.is_internal(handle):
                return None
            if id(handle) in self._resolving:
                # Cyclic provenance: the stage is already being registered
                # further down the stack.
                return None

            self._resolving.add(id(handle))
            try:
                info = self._provenance.describe(handle)
                parent_id = None
                if info.parent is not None and info.parent is not handle:
                    parent_id = self.record_first_seen(info.parent)
            finally:
                self._resolving.discard(id(handle))

            stage_id = self._allocator.next_stage_id()
            self._ids.set(handle, stage_id)
            self._on_created(stage_id, info.label or UNKNOWN_LABEL, parent_id)
            return stage_id

    def reset(self) -> None:
        """Forget all handle identities.  Internal marks and ids stay retired."""
        with self._lock:
            self._ids.clear()
