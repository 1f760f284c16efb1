from __future__ import annotations

# Pump (consumer).
#
# Each pump is a long-lived thread that repeatedly:
# - takes the next car from the waiting queue (blocks while it is empty)
# - waits for a free service bay (blocks while all bays are busy)
# - services the car for a random amount of time
# - frees the bay
#
# The bay is requested only after `dequeue()` has returned, i.e. after the
# queue guard has been released. A pump waiting for a bay therefore never
# stops other pumps from draining the queue.
#
# Stopping is cooperative: `stop()` sets an event that every blocking call of
# the loop watches. A bay held at that moment is released before the thread
# exits.

import logging
import threading
from typing import Any, Callable

from .car import Car
from .errors import Cancelled, ErrorResponse
from .semaphore import BayPool
from .work_queue import BoundedWorkQueue

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], None]

IDLE = "idle"
AWAITING_ITEM = "awaiting_item"
AWAITING_BAY = "awaiting_bay"
SERVICING = "servicing"
STOPPED = "stopped"


class Pump(threading.Thread):
    def __init__(
        self,
        pump_id: int,
        queue: BoundedWorkQueue[Car],
        bays: BayPool,
        *,
        service_seconds: Callable[[], float],
        on_event: EventHandler | None = None,
    ) -> None:
        super().__init__(name=f"pump-{pump_id}", daemon=True)
        self.pump_id = pump_id
        self.queue = queue
        self.bays = bays
        self._service_seconds = service_seconds
        self._on_event = on_event

        self._stop_event = threading.Event()

        self.state = IDLE
        self.current_car: Car | None = None
        self.served_count = 0

    def stop(self) -> None:
        """Ask the pump to finish. Call `join()` to wait for the exit."""
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        try:
            while not self._stop_event.is_set():
                if not self._serve_next():
                    break
        finally:
            self.current_car = None
            self.state = STOPPED
            self._emit({"type": "pump_stopped", "served_count": self.served_count})

    def _serve_next(self) -> bool:
        """One iteration of the loop. Returns False when the pump must exit."""
        self.state = AWAITING_ITEM
        try:
            car = self.queue.dequeue(cancel=self._stop_event)
        except Cancelled:
            return False

        if car is None:
            self.state = IDLE
            self._emit(
                ErrorResponse("queue_invariant_violation", "expected a car but found none").to_message(
                    pump_id=self.pump_id
                )
            )
            return True

        self.current_car = car
        self.state = AWAITING_BAY
        self._emit({"type": "car_dequeued", "car": car.name, "queue_len": self.queue.size()})

        duration = self._service_seconds()
        finished = False
        try:
            with self.bays.hold(cancel=self._stop_event):
                self.state = SERVICING
                self._emit({"type": "service_started", "car": car.name, "bays_free": self.bays.available_permits()})
                # wait() returns True only if the stop event fired mid-service.
                finished = not self._stop_event.wait(duration)
        except Cancelled:
            self._emit({"type": "service_abandoned", "car": car.name})
            return False

        self.current_car = None
        if not finished:
            self._emit({"type": "service_interrupted", "car": car.name})
            return False

        self.served_count += 1
        self.state = IDLE
        self._emit(
            {
                "type": "service_finished",
                "car": car.name,
                "service_seconds": round(duration, 3),
                "served_count": self.served_count,
            }
        )
        return True

    def _emit(self, event: dict[str, Any]) -> None:
        if self._on_event is None:
            return
        event.setdefault("pump_id", self.pump_id)
        try:
            self._on_event(event)
        except Exception:
            # A broken observer must not end the pump loop.
            logger.exception("pump %d: event handler failed for %s", self.pump_id, event.get("type"))
