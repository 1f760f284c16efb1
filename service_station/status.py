from __future__ import annotations

# MQTT status broadcast for a running station.
#
# Two streams:
# - a background thread publishes `station.status()` snapshots every few
#   seconds on `<ns>/status/updates`
# - `handle_event()` forwards each car/pump event as it happens to
#   `<ns>/events` (and pump events also to `<ns>/pumps/status/<id>`)
#
# The publisher only needs an object with `publish(topic, dict)`, so tests can
# pass a fake instead of a real `MqttClient`.

import threading
from typing import Any, Protocol, TYPE_CHECKING

from .mqtt_topics import DEFAULT_NAMESPACE, pump_status, station_events, status_updates

if TYPE_CHECKING:
    from .station import ServiceStation


class Publisher(Protocol):
    def publish(self, topic: str, message: dict[str, Any]) -> None: ...


class MqttStatusPublisher:
    def __init__(self, *, mqtt: Publisher, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.mqtt = mqtt
        self.namespace = namespace
        self.station: ServiceStation | None = None

        # Background publisher thread control.
        self._stop_event = threading.Event()
        self._status_thread: threading.Thread | None = None

    def attach(self, station: ServiceStation) -> None:
        self.station = station

    def start(self, *, publish_status_every: float = 2.0) -> None:
        if self.station is None:
            raise RuntimeError("attach() a station before start()")
        self._status_thread = threading.Thread(
            target=self._status_publisher_loop,
            args=(publish_status_every,),
            name="status-publisher",
            daemon=True,
        )
        self._status_thread.start()

    def stop(self) -> None:
        """Stop the background thread and publish one final snapshot."""
        self._stop_event.set()
        t = self._status_thread
        if t and t.is_alive():
            t.join(timeout=1.0)
        self.publish_status()

    def publish_status(self) -> None:
        if self.station is not None:
            self.mqtt.publish(status_updates(self.namespace), self.station.status())

    def handle_event(self, event: dict[str, Any]) -> None:
        """Forward one event. Safe to call from any car or pump thread."""
        self.mqtt.publish(station_events(self.namespace), event)
        pump_id = event.get("pump_id")
        if pump_id is not None:
            self.mqtt.publish(pump_status(pump_id, self.namespace), event)

    def _status_publisher_loop(self, interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.publish_status()
            except Exception:
                # Keep publishing even if an occasional error occurs.
                pass
            self._stop_event.wait(interval)
