from __future__ import annotations

# The service station coordinator.
#
# `ServiceStation` owns the waiting queue, the bay pool and the pumps for the
# whole run and hands explicit references to every car and pump (no module
# globals). It has no synchronization logic of its own beyond bookkeeping:
# - it counts finished services so callers can wait for a full drain
# - it forwards every event to an optional `on_event` callback (console
#   printer, MQTT publisher, tests)

import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from .arrival import sample_exponential_interarrival, sample_uniform_interarrival
from .car import Car, start_car
from .errors import InvalidCapacity
from .pump import Pump
from .semaphore import BayPool
from .service_time import sample_service_seconds
from .work_queue import BoundedWorkQueue

EventHandler = Callable[[dict[str, Any]], None]

MAX_QUEUE_SIZE = 10


@dataclass(frozen=True)
class StationConfig:
    queue_size: int
    pumps: int
    bays: int | None = None  # defaults to one bay per pump
    max_cars: int | None = None  # None or 0 = keep generating cars

    min_service_seconds: float = 2.0
    max_service_seconds: float = 6.0

    # Arrival gaps: uniform in [min, max] unless a Poisson rate is given.
    min_arrival_seconds: float = 1.0
    max_arrival_seconds: float = 2.0
    arrival_rate: float | None = None

    seed: int | None = None

    @property
    def bay_count(self) -> int:
        return self.pumps if self.bays is None else self.bays

    @property
    def continuous(self) -> bool:
        return not self.max_cars

    def validate(self) -> None:
        if not 1 <= self.queue_size <= MAX_QUEUE_SIZE:
            raise InvalidCapacity(f"queue_size must be between 1 and {MAX_QUEUE_SIZE}")
        if self.pumps < 1:
            raise InvalidCapacity("pumps must be >= 1")
        if self.bay_count < 1:
            raise InvalidCapacity("bays must be >= 1")
        if self.max_cars is not None and self.max_cars < 0:
            raise ValueError("max_cars must be >= 0")
        if self.min_service_seconds < 0 or self.max_service_seconds < self.min_service_seconds:
            raise ValueError("service time range must satisfy 0 <= min <= max")
        if self.min_arrival_seconds < 0 or self.max_arrival_seconds < self.min_arrival_seconds:
            raise ValueError("arrival gap range must satisfy 0 <= min <= max")
        if self.arrival_rate is not None and self.arrival_rate <= 0:
            raise ValueError("arrival_rate must be > 0")


class ServiceStation:
    def __init__(self, config: StationConfig, *, on_event: EventHandler | None = None) -> None:
        config.validate()
        self.config = config
        self._on_event = on_event

        # One RNG for the whole run so `seed` makes it reproducible. Pumps
        # draw from it concurrently, hence the lock.
        self._rng = random.Random(config.seed)
        self._rng_lock = threading.Lock()

        self.queue: BoundedWorkQueue[Car] = BoundedWorkQueue(config.queue_size)
        self.bays = BayPool(config.bay_count)
        self.pumps = [
            Pump(
                i,
                self.queue,
                self.bays,
                service_seconds=self._next_service_seconds,
                on_event=self._handle_event,
            )
            for i in range(1, config.pumps + 1)
        ]

        self._stop_event = threading.Event()
        self._done = threading.Condition()
        self._served = 0
        self._lost = 0  # interrupted or abandoned during shutdown
        self._next_car_id = 1
        self._started = False

    # -------------------- lifecycle --------------------

    def start(self) -> None:
        """Start all pump threads."""
        if self._started:
            return
        for p in self.pumps:
            p.start()
        self._started = True

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop cars still waiting for room and all pumps, then join the pumps."""
        self._stop_event.set()
        for p in self.pumps:
            p.stop()
        if not self._started:
            return
        deadline = None if timeout is None else time.monotonic() + timeout
        for p in self.pumps:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            p.join(remaining)

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    # -------------------- producers --------------------

    def arrive(self, car: Car | None = None) -> threading.Thread:
        """Start a car thread that queues `car` (or the next numbered car)."""
        if car is None:
            car = Car.numbered(self._take_car_id())
        return start_car(car, self.queue, cancel=self._stop_event, on_event=self._handle_event)

    def generate(self, max_cars: int | None = None, *, stop: threading.Event | None = None) -> int:
        """Send cars in at the configured arrival rate.

        Args:
            max_cars: stop after this many cars; None or 0 means until `stop`
                (or `shutdown()`) fires.
            stop: optional extra stop signal.

        Returns:
            Number of cars that were sent.
        """
        sent = 0
        while not self._stop_event.is_set() and not (stop is not None and stop.is_set()):
            if max_cars and sent >= max_cars:
                break
            self.arrive()
            sent += 1
            if max_cars and sent >= max_cars:
                break
            gap = self._next_arrival_gap()
            if stop is not None:
                if stop.wait(gap):
                    break
            elif self._stop_event.wait(gap):
                break
        return sent

    # -------------------- drain detection --------------------

    def is_drained(self) -> bool:
        """Polling check: queue empty and every bay free. Advisory only."""
        return self.queue.size() == 0 and self.bays.available_permits() == self.bays.capacity

    def wait_for_drain(self, expected_cars: int, timeout: float | None = None) -> bool:
        """Block until `expected_cars` services have finished (or were lost).

        Returns False on timeout.
        """
        with self._done:
            return self._done.wait_for(lambda: self._served + self._lost >= expected_cars, timeout)

    @property
    def served_count(self) -> int:
        with self._done:
            return self._served

    def status(self) -> dict[str, Any]:
        """Snapshot for observers (dashboard, MQTT)."""
        return {
            "type": "station_status",
            "queue_len": self.queue.size(),
            "queue_capacity": self.queue.capacity,
            "bays_free": self.bays.available_permits(),
            "bays_total": self.bays.capacity,
            "served": self.served_count,
            "invariant_violations": self.queue.invariant_violations,
            "pumps": {
                str(p.pump_id): {
                    "state": p.state,
                    "car": p.current_car.name if p.current_car else None,
                    "served_count": p.served_count,
                }
                for p in self.pumps
            },
            "ts": time.time(),
        }

    # -------------------- internals --------------------

    def _take_car_id(self) -> int:
        with self._done:
            car_id = self._next_car_id
            self._next_car_id += 1
            return car_id

    def _next_service_seconds(self) -> float:
        with self._rng_lock:
            return sample_service_seconds(
                min_seconds=self.config.min_service_seconds,
                max_seconds=self.config.max_service_seconds,
                rng=self._rng,
            )

    def _next_arrival_gap(self) -> float:
        with self._rng_lock:
            if self.config.arrival_rate is not None:
                return sample_exponential_interarrival(rate_per_sec=self.config.arrival_rate, rng=self._rng)
            return sample_uniform_interarrival(
                min_seconds=self.config.min_arrival_seconds,
                max_seconds=self.config.max_arrival_seconds,
                rng=self._rng,
            )

    def _handle_event(self, event: dict[str, Any]) -> None:
        mtype = event.get("type")
        if mtype == "service_finished":
            with self._done:
                self._served += 1
                self._done.notify_all()
        elif mtype in ("service_interrupted", "service_abandoned"):
            with self._done:
                self._lost += 1
                self._done.notify_all()

        if self._on_event is not None:
            self._on_event(event)
