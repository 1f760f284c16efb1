from __future__ import annotations

# Single-process runner.
#
# Builds a `ServiceStation`, starts the pumps and feeds cars in:
# - with a finite number of cars it waits until they have all been serviced,
#   then shuts the pumps down
# - with 0 cars it keeps generating cars until Ctrl+C
#
# Sizes that are not given on the command line are asked for interactively.
# Optionally the run is broadcast over MQTT (`--mqtt-host`) and the Tkinter
# dashboard can be opened in this process (`--gui`, needs a broker).

import argparse
import threading
import time
from typing import Any, Callable

from .mqtt_topics import DEFAULT_NAMESPACE
from .station import MAX_QUEUE_SIZE, ServiceStation, StationConfig

InputFn = Callable[[str], str]


def format_event(event: dict[str, Any]) -> str:
    """One console line per event."""
    mtype = event.get("type")
    car = event.get("car")
    pump = f"Pump {event.get('pump_id')}"

    if mtype == "car_arrived":
        return f"{car} arrived"
    if mtype == "car_enqueued":
        return f"{car} entered the waiting queue. (Queue size: {event.get('queue_len')})"
    if mtype == "car_turned_away":
        return f"{car} left without joining the queue (station closing)"
    if mtype == "car_dequeued":
        return f"{pump}: {car} taken from queue. (Queue size: {event.get('queue_len')})"
    if mtype == "service_started":
        return f"{pump}: {car} begins service (free bays: {event.get('bays_free')})"
    if mtype == "service_finished":
        return f"{pump}: {car} finishes service, bay is now free"
    if mtype == "service_interrupted":
        return f"{pump}: service of {car} interrupted, bay released"
    if mtype == "service_abandoned":
        return f"{pump}: stopped while {car} was waiting for a bay"
    if mtype == "pump_stopped":
        return f"{pump} stopped (served {event.get('served_count', 0)} cars)"
    if mtype == "error":
        return f"{pump}: error {event.get('code')}: {event.get('message')}"
    return str(event)


def print_event(event: dict[str, Any]) -> None:
    print(f"[station] {format_event(event)}", flush=True)


def prompt_int(
    prompt: str,
    *,
    minimum: int,
    maximum: int | None = None,
    input_fn: InputFn = input,
) -> int:
    """Ask until the answer is an integer in [minimum, maximum].

    Exits with a message if input runs out (closed or empty stdin).
    """
    while True:
        try:
            raw = input_fn(prompt).strip()
        except EOFError:
            raise SystemExit(f"\nno answer for {prompt.strip()!r}: pass it on the command line instead") from None
        try:
            value = int(raw)
        except ValueError:
            continue
        if value < minimum or (maximum is not None and value > maximum):
            continue
        return value


def run_station(
    config: StationConfig,
    *,
    mqtt_host: str | None = None,
    mqtt_port: int = 1883,
    namespace: str = DEFAULT_NAMESPACE,
    show_gui: bool = False,
    publish_status_every: float = 1.0,
    on_event: Callable[[dict[str, Any]], None] = print_event,
) -> ServiceStation:
    """Run a full simulation. Returns the (shut down) station."""
    publisher = None
    mqtt = None
    handler = on_event

    if mqtt_host:
        # Import MQTT dependencies only when broadcasting.
        from .mqtt_client import MqttClient
        from .status import MqttStatusPublisher

        mqtt = MqttClient(client_id=f"station-{int(time.time())}", host=mqtt_host, port=mqtt_port)
        mqtt.start()
        publisher = MqttStatusPublisher(mqtt=mqtt, namespace=namespace)

        def broadcast(event: dict[str, Any], publisher: MqttStatusPublisher = publisher) -> None:
            on_event(event)
            publisher.handle_event(event)

        handler = broadcast

    station = ServiceStation(config, on_event=handler)
    if publisher is not None:
        publisher.attach(station)
        publisher.start(publish_status_every=publish_status_every)

    station.start()
    print(
        f"[station] {config.pumps} pumps, {config.bay_count} bays, waiting area of {config.queue_size}"
        + (f", broadcasting on {mqtt_host}:{mqtt_port} namespace={namespace}" if mqtt_host else ""),
        flush=True,
    )

    try:
        if show_gui:
            _run_with_gui(station, mqtt_host=mqtt_host or "127.0.0.1", mqtt_port=mqtt_port, namespace=namespace)
        else:
            _run_cars(station)
    except KeyboardInterrupt:
        pass
    finally:
        station.shutdown(timeout=5.0)
        if publisher is not None:
            publisher.stop()
        if mqtt is not None:
            mqtt.stop()

    print("[station] ServiceStation finished.", flush=True)
    return station


def _run_cars(station: ServiceStation) -> None:
    config = station.config
    if config.continuous:
        station.generate()
        return

    sent = station.generate(config.max_cars)
    station.wait_for_drain(sent)
    # Completion count reached; confirm with the polling check before closing.
    while not station.is_drained():
        time.sleep(0.05)
    print("[station] All cars serviced. Shutting down pumps.", flush=True)


def _run_with_gui(station: ServiceStation, *, mqtt_host: str, mqtt_port: int, namespace: str) -> None:
    from .gui import DashboardApp

    # Cars come from a background thread; Tkinter owns the main thread.
    feeder = threading.Thread(target=_run_cars, args=(station,), name="car-feeder", daemon=True)
    feeder.start()
    app = DashboardApp(mqtt_host=mqtt_host, mqtt_port=mqtt_port, namespace=namespace)
    app.start()


def add_station_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--queue-size", type=int, default=None, help=f"waiting area size (1 - {MAX_QUEUE_SIZE})")
    parser.add_argument("--pumps", type=int, default=None, help="number of pumps")
    parser.add_argument("--bays", type=int, default=None, help="number of service bays (default: one per pump)")
    parser.add_argument("--cars", type=int, default=None, help="total number of cars to generate (0 = continuous)")
    parser.add_argument("--min-service-seconds", type=float, default=2.0)
    parser.add_argument("--max-service-seconds", type=float, default=6.0)
    parser.add_argument("--min-arrival-seconds", type=float, default=1.0)
    parser.add_argument("--max-arrival-seconds", type=float, default=2.0)
    parser.add_argument("--arrival-rate", type=float, default=None, help="Poisson arrivals, λ cars/second")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--mqtt-host", default=None, help="broadcast status/events to this MQTT broker")
    parser.add_argument("--mqtt-port", type=int, default=1883)
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    parser.add_argument("--gui", action="store_true", help="open Tkinter dashboard (requires --mqtt-host)")


def config_from_args(args: argparse.Namespace, *, input_fn: InputFn = input) -> StationConfig:
    """Build the config, asking for whatever was not given on the command line."""
    queue_size = args.queue_size
    if queue_size is None:
        queue_size = prompt_int(
            f"Enter waiting area size (1 - {MAX_QUEUE_SIZE}): ", minimum=1, maximum=MAX_QUEUE_SIZE, input_fn=input_fn
        )
    pumps = args.pumps
    if pumps is None:
        pumps = prompt_int("Enter number of pumps: ", minimum=1, input_fn=input_fn)
    cars = args.cars
    if cars is None:
        cars = prompt_int("Enter total number of cars to generate (0 = continuous): ", minimum=0, input_fn=input_fn)

    return StationConfig(
        queue_size=queue_size,
        pumps=pumps,
        bays=args.bays,
        max_cars=cars,
        min_service_seconds=args.min_service_seconds,
        max_service_seconds=args.max_service_seconds,
        min_arrival_seconds=args.min_arrival_seconds,
        max_arrival_seconds=args.max_arrival_seconds,
        arrival_rate=args.arrival_rate,
        seed=args.seed,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the service station simulation")
    add_station_args(parser)
    args = parser.parse_args()

    if args.gui and not args.mqtt_host:
        parser.error("--gui requires --mqtt-host")

    config = config_from_args(args)
    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    run_station(
        config,
        mqtt_host=args.mqtt_host,
        mqtt_port=args.mqtt_port,
        namespace=args.namespace,
        show_gui=args.gui,
    )


if __name__ == "__main__":
    main()
