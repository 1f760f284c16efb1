import time

import pytest

from service_station.station import ServiceStation, StationConfig
from service_station.status import MqttStatusPublisher


class FakeMqtt:
    def __init__(self):
        self.published = []

    def publish(self, topic, message):
        self.published.append((topic, message))


def _station():
    return ServiceStation(StationConfig(queue_size=2, pumps=1))


def test_publish_status_snapshot():
    mqtt = FakeMqtt()
    pub = MqttStatusPublisher(mqtt=mqtt, namespace="demo/v0")
    pub.attach(_station())
    pub.publish_status()

    topic, msg = mqtt.published[0]
    assert topic == "demo/v0/status/updates"
    assert msg["type"] == "station_status"


def test_pump_events_go_to_pump_topic_too():
    mqtt = FakeMqtt()
    pub = MqttStatusPublisher(mqtt=mqtt, namespace="demo/v0")

    pub.handle_event({"type": "service_finished", "pump_id": 2, "car": "Car 1"})
    pub.handle_event({"type": "car_arrived", "car": "Car 2"})

    assert [t for t, _ in mqtt.published] == [
        "demo/v0/events",
        "demo/v0/pumps/status/2",
        "demo/v0/events",
    ]


def test_start_requires_a_station():
    pub = MqttStatusPublisher(mqtt=FakeMqtt())
    with pytest.raises(RuntimeError):
        pub.start()


def test_background_loop_publishes_and_stops():
    mqtt = FakeMqtt()
    pub = MqttStatusPublisher(mqtt=mqtt)
    pub.attach(_station())
    pub.start(publish_status_every=0.01)
    time.sleep(0.05)
    pub.stop()

    assert len(mqtt.published) >= 2  # at least one loop pass plus the final snapshot
    assert all(t == "station/v0/status/updates" for t, _ in mqtt.published)
