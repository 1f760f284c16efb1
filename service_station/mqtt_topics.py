"""MQTT topic helpers.

We keep topic construction in one place so the publisher and the dashboard
agree on naming.

Topic layout under a configurable namespace (default: `station/v0`):

- `<ns>/status/updates`
    Periodic station snapshots (queue occupancy, bays, per-pump state).
- `<ns>/events`
    Every event raised by cars and pumps, as it happens.
- `<ns>/pumps/status/<pump_id>`
    The events of a single pump.

Several stations can share a broker by changing the namespace
(e.g. `--namespace demo/alice`).
"""

from __future__ import annotations

DEFAULT_NAMESPACE = "station/v0"


def status_updates(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/status/updates"


def station_events(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/events"


def pump_status(pump_id: int | str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}/pumps/status/{pump_id}"
