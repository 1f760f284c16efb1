"""Error types shared by the station core, plus the error envelope used on MQTT.

- `InvalidCapacity`: bad construction parameters (surfaced to the caller).
- `QueueInvariantViolation`: a dequeue found nothing after a filled-slot grant.
  Reported, never raised into a pump loop.
- `Cancelled`: a blocking acquire observed its cancel event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class InvalidCapacity(ValueError):
    """A counter, queue or bay pool was built with an unusable capacity."""


class QueueInvariantViolation(RuntimeError):
    """A filled-slot permit was granted but the queue body was empty."""


class Cancelled(Exception):
    """A blocked acquire gave up because its cancel event was set."""


@dataclass(frozen=True)
class ErrorResponse:
    code: str
    message: str

    def to_message(self, *, pump_id: int | None = None) -> dict[str, Any]:
        msg: dict[str, Any] = {"type": "error", "code": self.code, "message": self.message}
        if pump_id is not None:
            msg["pump_id"] = pump_id
        return msg
