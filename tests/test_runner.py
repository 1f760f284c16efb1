import argparse

import pytest

from service_station.runner import add_station_args, config_from_args, format_event, prompt_int, run_station
from service_station.station import StationConfig


def _answers(*values):
    it = iter(values)
    return lambda prompt: next(it)


def test_prompt_int_retries_until_valid():
    assert prompt_int("size: ", minimum=1, maximum=10, input_fn=_answers("abc", "0", "11", "4")) == 4


def test_config_from_args_prompts_for_missing_sizes():
    parser = argparse.ArgumentParser()
    add_station_args(parser)
    args = parser.parse_args(["--bays", "1"])

    cfg = config_from_args(args, input_fn=_answers("3", "2", "0"))
    assert cfg.queue_size == 3
    assert cfg.pumps == 2
    assert cfg.bay_count == 1
    assert cfg.continuous


def test_config_from_args_uses_flags():
    parser = argparse.ArgumentParser()
    add_station_args(parser)
    args = parser.parse_args(["--queue-size", "5", "--pumps", "3", "--cars", "10", "--seed", "9"])

    cfg = config_from_args(args, input_fn=_answers())
    assert (cfg.queue_size, cfg.pumps, cfg.max_cars, cfg.seed) == (5, 3, 10, 9)


def test_format_event():
    assert format_event({"type": "car_arrived", "car": "Car 1"}) == "Car 1 arrived"
    assert (
        format_event({"type": "car_dequeued", "car": "Car 1", "pump_id": 2, "queue_len": 0})
        == "Pump 2: Car 1 taken from queue. (Queue size: 0)"
    )
    assert "queue_invariant_violation" in format_event(
        {"type": "error", "code": "queue_invariant_violation", "message": "x", "pump_id": 1}
    )


def test_run_station_finite(capsys):
    events = []
    cfg = StationConfig(
        queue_size=2,
        pumps=2,
        bays=1,
        max_cars=4,
        min_service_seconds=0.01,
        max_service_seconds=0.02,
        min_arrival_seconds=0.0,
        max_arrival_seconds=0.01,
        seed=3,
    )
    station = run_station(cfg, on_event=events.append)

    assert station.served_count == 4
    assert not any(p.is_alive() for p in station.pumps)
    out = capsys.readouterr().out
    assert "All cars serviced. Shutting down pumps." in out
    assert [e["type"] for e in events].count("pump_stopped") == 2


def test_prompt_int_exits_cleanly_when_input_runs_out():
    def closed_stdin(prompt):
        raise EOFError

    with pytest.raises(SystemExit) as excinfo:
        prompt_int("Enter number of pumps: ", minimum=1, input_fn=closed_stdin)
    assert "Enter number of pumps:" in str(excinfo.value)
