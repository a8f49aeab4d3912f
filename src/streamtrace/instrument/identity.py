"""Identity allocator — dense, monotonic ids for stages and subscriptions.

Thread Safety:
    Both counters are guarded by one ``threading.Lock``.

"""

import threading


class IdentityAllocator:
    """Hands out strictly increasing stage and subscription ids starting at 1.

    Ids are never reused.  The allocator has no reset: reinstalling the
    instrumentation forgets which handle owns which id, but keeps counting
    from where it left off.

    """

    __slots__ = ("_lock", "_next_stage", "_next_subscription")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_stage = 1
        self._next_subscription = 1

    def next_stage_id(self) -> int:
        """Allocate a new stage id."""
        with self._lock:
            value = self._next_stage
            self._next_stage += 1
            return value

    def next_subscription_id(self) -> int:
        """Allocate a new subscription id."""
        with self._lock:
            value = self._next_subscription
            self._next_subscription += 1
            return value

    def peek(self) -> tuple[int, int]:
        """Return the next (stage id, subscription id) without allocating."""
        with self._lock:
            return self._next_stage, self._next_subscription
