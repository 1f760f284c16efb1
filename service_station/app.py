from __future__ import annotations

# Single-entrypoint runner.
#
# Primary way to run the project:
#     python -m service_station.app run --queue-size N --pumps N --cars N [--bays N]
#
# Missing sizes are asked for interactively. The `dashboard` subcommand opens
# the Tkinter GUI against a station that broadcasts over MQTT.

import argparse

from .mqtt_topics import DEFAULT_NAMESPACE
from .runner import add_station_args


def main() -> None:
    parser = argparse.ArgumentParser(description="Service Station (cars, pumps, bays) - main entrypoint")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Start the pumps and feed cars in")
    add_station_args(p_run)

    p_gui = sub.add_parser("dashboard", help="Open the Tkinter dashboard for a broadcasting station")
    p_gui.add_argument("--mqtt-host", default="127.0.0.1")
    p_gui.add_argument("--mqtt-port", type=int, default=1883)
    p_gui.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    p_gui.add_argument("--refresh-ms", type=int, default=250)

    args = parser.parse_args()

    if args.cmd == "run":
        from .runner import main as run

        _dispatch_to_module_main(run, _argv_after(args.cmd))
        return

    if args.cmd == "dashboard":
        from .gui import main as run

        _dispatch_to_module_main(run, _argv_after(args.cmd))
        return


def _argv_after(cmd: str) -> list[str]:
    import sys

    argv = sys.argv[1:]
    return argv[argv.index(cmd) + 1 :]


def _dispatch_to_module_main(module_main, argv: list[str]) -> None:
    import sys

    old_argv = sys.argv[:]
    try:
        sys.argv = [old_argv[0], *argv]
        module_main()
    finally:
        sys.argv = old_argv


if __name__ == "__main__":
    main()
