from __future__ import annotations

# Counting semaphores.
#
# `CountingResource` is the only blocking primitive in the station: the
# waiting queue is built from two of them and the service bays are one.
#
# Implementation notes:
# - one `threading.Condition` protects the counter and the waiter list, so
#   acquire/release/available_permits are atomic with respect to each other
# - waiters are granted strictly in arrival order (FIFO tickets), so nobody
#   starves while releases keep happening
# - cancellation is cooperative: callers pass a `threading.Event`; a blocked
#   acquire re-checks it every `CANCEL_POLL_SECONDS`

import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Iterator

from .errors import Cancelled, InvalidCapacity

CANCEL_POLL_SECONDS = 0.05


class CountingResource:
    """Blocking counter with acquire/release over `capacity` permits."""

    def __init__(self, capacity: int, *, name: str = "resource") -> None:
        if capacity < 0:
            raise InvalidCapacity(f"{name}: initial permits cannot be negative ({capacity})")
        self.name = name
        self.capacity = capacity
        self._value = capacity
        self._cond = threading.Condition(threading.Lock())
        # FIFO tickets of blocked (or about to block) callers.
        self._waiters: deque[object] = deque()

    def acquire(self, *, cancel: threading.Event | None = None, timeout: float | None = None) -> bool:
        """Take one permit, blocking while none is available.

        Args:
            cancel: if set while we are blocked, give up and raise `Cancelled`.
            timeout: seconds to wait at most; `None` waits forever.

        Returns:
            True once a permit was granted, False if `timeout` expired first.

        A cancelled or timed-out call never touches the counter.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        ticket = object()
        with self._cond:
            self._waiters.append(ticket)
            try:
                while self._waiters[0] is not ticket or self._value <= 0:
                    if cancel is not None and cancel.is_set():
                        raise Cancelled(f"{self.name}: acquire cancelled")

                    wait_for = None
                    if deadline is not None:
                        wait_for = deadline - time.monotonic()
                        if wait_for <= 0:
                            return False
                    if cancel is not None:
                        wait_for = CANCEL_POLL_SECONDS if wait_for is None else min(wait_for, CANCEL_POLL_SECONDS)
                    self._cond.wait(wait_for)

                self._value -= 1
                return True
            finally:
                # Granted or not, the ticket leaves the line and the next
                # waiter gets a chance to check its turn.
                self._waiters.remove(ticket)
                self._cond.notify_all()

    def release(self) -> None:
        """Give one permit back. Never blocks."""
        with self._cond:
            self._value += 1
            self._cond.notify_all()

    def available_permits(self) -> int:
        """Snapshot of the counter. Advisory only: it may be stale immediately."""
        with self._cond:
            return self._value

    def in_use(self) -> int:
        """Permits currently granted and not yet released (advisory)."""
        return self.capacity - self.available_permits()

    def waiting(self) -> int:
        with self._cond:
            return len(self._waiters)

    @contextmanager
    def hold(self, *, cancel: threading.Event | None = None) -> Iterator[None]:
        """Scoped acquisition: the permit is released however the block exits."""
        self.acquire(cancel=cancel)
        try:
            yield
        finally:
            self.release()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, available={self.available_permits()}/{self.capacity})"


class BayPool(CountingResource):
    """Service bays. A pump holds one permit while it services a car."""

    def __init__(self, bay_count: int) -> None:
        if bay_count < 1:
            raise InvalidCapacity(f"bay_count must be >= 1 (got {bay_count})")
        super().__init__(bay_count, name="bays")
