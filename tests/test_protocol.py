from service_station.mqtt_client import decode_payload
from service_station.mqtt_topics import pump_status, station_events, status_updates


def test_topic_helpers():
    ns = "demo/v0"
    assert status_updates(ns) == "demo/v0/status/updates"
    assert station_events(ns) == "demo/v0/events"
    assert pump_status(3, ns) == "demo/v0/pumps/status/3"


def test_default_namespace():
    assert status_updates() == "station/v0/status/updates"


def test_decode_payload():
    assert decode_payload(b'{"type":"station_status"}') == {"type": "station_status"}
    assert decode_payload('{"a":1}') == {"a": 1}
    assert decode_payload(b"[1, 2]") is None
    assert decode_payload(b"not json") is None
    assert decode_payload(b"\xff\xfe") is None


def test_every_topic_helper_is_a_concrete_topic():
    import service_station.mqtt_topics as topics

    helpers = [v for k, v in vars(topics).items() if callable(v) and not k.startswith("_")]
    for helper in helpers:
        name = helper(1, "demo") if helper is pump_status else helper("demo")
        assert "+" not in name and "#" not in name
