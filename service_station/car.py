from __future__ import annotations

# Car (producer).
#
# A car is a short-lived unit of work:
# - it arrives
# - it puts itself into the waiting queue (blocking while the queue is full)
# - that's it: from then on the pumps own it

import threading
from dataclasses import dataclass
from typing import Any, Callable

from .errors import Cancelled
from .work_queue import BoundedWorkQueue

EventHandler = Callable[[dict[str, Any]], None]


@dataclass(frozen=True)
class Car:
    name: str
    car_id: int

    @classmethod
    def numbered(cls, car_id: int, prefix: str = "Car") -> Car:
        return cls(name=f"{prefix} {car_id}", car_id=car_id)


def submit_car(
    car: Car,
    queue: BoundedWorkQueue[Car],
    *,
    cancel: threading.Event | None = None,
    on_event: EventHandler | None = None,
) -> bool:
    """Enqueue `car`. Returns False if `cancel` fired while waiting for room."""
    emit = on_event or _ignore
    emit({"type": "car_arrived", "car": car.name, "car_id": car.car_id})
    try:
        queue.enqueue(car, cancel=cancel)
    except Cancelled:
        emit({"type": "car_turned_away", "car": car.name, "car_id": car.car_id})
        return False
    emit({"type": "car_enqueued", "car": car.name, "car_id": car.car_id, "queue_len": queue.size()})
    return True


def start_car(
    car: Car,
    queue: BoundedWorkQueue[Car],
    *,
    cancel: threading.Event | None = None,
    on_event: EventHandler | None = None,
) -> threading.Thread:
    """Run `submit_car` in its own daemon thread (fire-and-forget)."""
    t = threading.Thread(
        target=submit_car,
        args=(car, queue),
        kwargs={"cancel": cancel, "on_event": on_event},
        name=f"car-{car.car_id}",
        daemon=True,
    )
    t.start()
    return t


def _ignore(event: dict[str, Any]) -> None:
    pass
