from __future__ import annotations

# Bounded FIFO waiting area.
#
# Classic bounded-buffer protocol:
#   enqueue: free.acquire -> guard -> append -> guard release -> filled.release
#   dequeue: filled.acquire -> guard -> popleft -> guard release -> free.release
#
# The signal on the *other* counter always happens after the sequence has been
# updated, so a woken consumer always finds an item (and a woken producer
# always finds a free slot).

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from .errors import InvalidCapacity, QueueInvariantViolation
from .semaphore import CountingResource

logger = logging.getLogger(__name__)

T = TypeVar("T")

ViolationHandler = Callable[[QueueInvariantViolation], None]


@dataclass(frozen=True)
class QueueCounters:
    """Permit counts and queue length read together under the queue guard."""

    free_slots: int
    filled_slots: int
    length: int


class BoundedWorkQueue(Generic[T]):
    """Thread-safe FIFO with a fixed capacity."""

    def __init__(self, capacity: int, *, on_violation: ViolationHandler | None = None) -> None:
        if capacity < 1:
            raise InvalidCapacity(f"queue capacity must be >= 1 (got {capacity})")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._free = CountingResource(capacity, name="free_slots")
        self._filled = CountingResource(0, name="filled_slots")
        self._guard = threading.Lock()
        self._on_violation = on_violation
        self.invariant_violations = 0

    def enqueue(self, item: T, *, cancel: threading.Event | None = None) -> None:
        """Append `item` at the tail, blocking while the queue is full.

        Raises `Cancelled` (queue untouched) if `cancel` is set while blocked.
        """
        self._free.acquire(cancel=cancel)
        with self._guard:
            self._items.append(item)
        self._filled.release()

    def dequeue(self, *, cancel: threading.Event | None = None) -> T | None:
        """Remove and return the head item, blocking while the queue is empty.

        Returns None only when a filled-slot permit was granted but the body
        was empty. That is reported as a `QueueInvariantViolation` and no
        free slot is handed back for the phantom item.
        """
        self._filled.acquire(cancel=cancel)
        with self._guard:
            if not self._items:
                violation = QueueInvariantViolation("dequeue: filled-slot permit granted but queue is empty")
                self.invariant_violations += 1
            else:
                violation = None
                item = self._items.popleft()

        if violation is not None:
            logger.warning("%s (total=%d)", violation, self.invariant_violations)
            if self._on_violation is not None:
                self._on_violation(violation)
            return None

        self._free.release()
        return item

    def size(self) -> int:
        """Current length. Advisory only."""
        with self._guard:
            return len(self._items)

    def free_slots(self) -> int:
        return self._free.available_permits()

    def filled_slots(self) -> int:
        return self._filled.available_permits()

    def counters(self) -> QueueCounters:
        """Read both counters and the length while holding the guard.

        Only meaningful while no enqueue/dequeue is in flight: the permits
        are signalled after the guard is released.
        """
        with self._guard:
            return QueueCounters(
                free_slots=self._free.available_permits(),
                filled_slots=self._filled.available_permits(),
                length=len(self._items),
            )

    def snapshot(self) -> list[T]:
        """Copy of the waiting items in FIFO order."""
        with self._guard:
            return list(self._items)
