"""Service station simulation (cars, pumps and service bays).

Cars arrive and wait in a bounded FIFO queue; a fixed set of pumps takes
cars off the queue and services each one in a bay:
- `CountingResource` / `BayPool`: counting semaphores
- `BoundedWorkQueue`: the waiting area (free/filled permits + exclusive guard)
- `Pump`: long-lived consumer thread
- `ServiceStation`: wires everything together for the CLI and the dashboard

See `python -m service_station.app -h` for how to run.
"""

from .car import Car
from .errors import Cancelled, InvalidCapacity, QueueInvariantViolation
from .pump import Pump
from .semaphore import BayPool, CountingResource
from .station import ServiceStation, StationConfig
from .work_queue import BoundedWorkQueue

__all__ = [
    "BayPool",
    "BoundedWorkQueue",
    "Cancelled",
    "Car",
    "CountingResource",
    "InvalidCapacity",
    "Pump",
    "QueueInvariantViolation",
    "ServiceStation",
    "StationConfig",
]
