from __future__ import annotations

# Simple GUI dashboard (Tkinter).
#
# Shows what the console prints, but live: waiting-queue occupancy, free bays,
# served cars and one row per pump, plus a tail of recent events.
#
# Architecture:
# - MQTT callbacks run on a background thread managed by paho-mqtt.
# - Tkinter must be updated from the main UI thread.
# - We therefore push incoming messages into a Queue and poll it via
#   `root.after(...)`.

import argparse
import queue
import time
import tkinter as tk
from tkinter import ttk
from typing import Any, cast

from .mqtt_client import MqttClient
from .mqtt_topics import DEFAULT_NAMESPACE, station_events, status_updates
from .runner import format_event

MAX_EVENT_LINES = 200


class DashboardApp:
    def __init__(self, *, mqtt_host: str, mqtt_port: int, namespace: str, refresh_ms: int = 250) -> None:
        self.mqtt_host = mqtt_host
        self.mqtt_port = mqtt_port
        self.namespace = namespace
        self.refresh_ms = refresh_ms

        self.root = tk.Tk()
        self.root.title("Service Station Dashboard")
        self.root.geometry("720x520")

        # Top info bar
        self.info_var = tk.StringVar(value="Connecting...")
        ttk.Label(self.root, textvariable=self.info_var).pack(fill=cast(Any, tk.X), padx=10, pady=(10, 0))
        self.totals_var = tk.StringVar(value="queue -/- | bays -/- free | served 0")
        ttk.Label(self.root, textvariable=self.totals_var).pack(fill=cast(Any, tk.X), padx=10, pady=(2, 5))

        # Table of pumps
        cols = ("pump_id", "state", "car", "served_count")
        self.tree = ttk.Treeview(self.root, columns=cols, show="headings", height=8)
        self.tree.heading("pump_id", text="Pump")
        self.tree.heading("state", text="State")
        self.tree.heading("car", text="Car")
        self.tree.heading("served_count", text="Served cars")

        self.tree.column("pump_id", width=80, anchor=cast(Any, tk.W))
        self.tree.column("state", width=160, anchor=cast(Any, tk.W))
        self.tree.column("car", width=140, anchor=cast(Any, tk.W))
        self.tree.column("served_count", width=120, anchor=cast(Any, tk.E))

        self.tree.pack(fill=cast(Any, tk.BOTH), expand=True, padx=10, pady=5)

        # Recent events
        self.events = tk.Listbox(self.root, height=10)
        self.events.pack(fill=cast(Any, tk.BOTH), expand=True, padx=10, pady=5)

        help_text = "Live updates from MQTT topics: " + status_updates(namespace) + ", " + station_events(namespace)
        ttk.Label(self.root, text=help_text).pack(fill=cast(Any, tk.X), padx=10, pady=(0, 10))

        # Incoming messages from the MQTT thread
        self._inbox: "queue.Queue[dict[str, Any]]" = queue.Queue(maxsize=500)

        self._mqtt = MqttClient(client_id=f"dashboard-{int(time.time())}", host=mqtt_host, port=mqtt_port)

        # Track whether we actually received any status snapshots.
        self._last_snapshot_ts: float | None = None

        self.root.protocol("WM_DELETE_WINDOW", self.close)

    def start(self) -> None:
        # Connect to MQTT. If broker isn't reachable, keep UI alive and show error.
        try:
            self._mqtt.start()
            self._mqtt.subscribe(status_updates(self.namespace))
            self._mqtt.subscribe(station_events(self.namespace))
            self._mqtt.add_handler(self._on_mqtt_message)
            self.info_var.set(
                f"Connected to MQTT {self.mqtt_host}:{self.mqtt_port} | namespace={self.namespace} | waiting for updates..."
            )
        except OSError as e:
            self.info_var.set(f"MQTT connection failed: {e}")

        self.root.after(cast(Any, self.refresh_ms), self._drain_inbox)
        self.root.mainloop()

    def close(self) -> None:
        try:
            self._mqtt.stop()
        finally:
            self.root.destroy()

    # -------------------- MQTT thread callback --------------------

    def _on_mqtt_message(self, topic: str, msg: dict[str, Any]) -> None:
        try:
            self._inbox.put_nowait(msg)
        except queue.Full:
            # Drop updates if the UI is slow; the next snapshot catches up.
            pass

    # -------------------- UI thread polling --------------------

    def _drain_inbox(self) -> None:
        latest: dict[str, Any] | None = None
        while True:
            try:
                msg = self._inbox.get_nowait()
            except queue.Empty:
                break
            if msg.get("type") == "station_status":
                latest = msg
            else:
                self._append_event(msg)

        if latest is not None:
            self._last_snapshot_ts = time.time()
            self._render_status(latest)
        elif self._last_snapshot_ts is not None:
            age = max(0.0, time.time() - self._last_snapshot_ts)
            self.info_var.set(
                f"Connected to MQTT {self.mqtt_host}:{self.mqtt_port} | namespace={self.namespace} | last update {age:0.1f}s ago"
            )

        self.root.after(cast(Any, self.refresh_ms), self._drain_inbox)

    def _append_event(self, msg: dict[str, Any]) -> None:
        self.events.insert(cast(Any, tk.END), format_event(msg))
        if self.events.size() > MAX_EVENT_LINES:
            self.events.delete(0)
        self.events.see(cast(Any, tk.END))

    def _render_status(self, status_msg: dict[str, Any]) -> None:
        self.info_var.set(
            f"Connected to MQTT {self.mqtt_host}:{self.mqtt_port} | namespace={self.namespace} | live"
        )
        self.totals_var.set(
            f"queue {status_msg.get('queue_len', '?')}/{status_msg.get('queue_capacity', '?')} | "
            f"bays {status_msg.get('bays_free', '?')}/{status_msg.get('bays_total', '?')} free | "
            f"served {status_msg.get('served', 0)}"
        )

        for item in self.tree.get_children():
            self.tree.delete(item)

        pumps = status_msg.get("pumps")
        if not isinstance(pumps, dict) or not pumps:
            self.tree.insert("", cast(Any, tk.END), values=("(none)", "-", "-", "0"))
            return

        for pid in sorted(pumps.keys(), key=lambda k: int(k) if str(k).isdigit() else 0):
            info = pumps.get(pid, {})
            if not isinstance(info, dict):
                continue
            self.tree.insert(
                "",
                cast(Any, tk.END),
                values=(str(pid), str(info.get("state", "?")), info.get("car") or "-", str(info.get("served_count", 0))),
            )


def main() -> None:
    parser = argparse.ArgumentParser(description="GUI dashboard (Tkinter + MQTT)")
    parser.add_argument("--mqtt-host", default="127.0.0.1")
    parser.add_argument("--mqtt-port", type=int, default=1883)
    parser.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    parser.add_argument("--refresh-ms", type=int, default=250)
    args = parser.parse_args()

    app = DashboardApp(
        mqtt_host=args.mqtt_host,
        mqtt_port=args.mqtt_port,
        namespace=args.namespace,
        refresh_ms=args.refresh_ms,
    )
    app.start()


if __name__ == "__main__":
    main()
