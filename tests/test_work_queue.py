import logging
import threading
import time

import pytest

from service_station.errors import Cancelled, InvalidCapacity, QueueInvariantViolation
from service_station.work_queue import BoundedWorkQueue, QueueCounters


def test_capacity_must_be_positive():
    with pytest.raises(InvalidCapacity):
        BoundedWorkQueue(0)


def test_fifo_with_single_consumer():
    q = BoundedWorkQueue(3)
    for name in ("a", "b", "c"):
        q.enqueue(name)
    assert q.snapshot() == ["a", "b", "c"]
    assert [q.dequeue(), q.dequeue(), q.dequeue()] == ["a", "b", "c"]
    assert q.size() == 0


def test_counters_add_up_to_capacity():
    q = BoundedWorkQueue(3)
    assert q.counters() == QueueCounters(free_slots=3, filled_slots=0, length=0)

    q.enqueue(1)
    q.enqueue(2)
    assert q.counters() == QueueCounters(free_slots=1, filled_slots=2, length=2)

    q.dequeue()
    c = q.counters()
    assert c.free_slots + c.length == q.capacity
    assert c.filled_slots == c.length == 1


def test_enqueue_blocks_while_full():
    q = BoundedWorkQueue(1)
    q.enqueue("first")
    done = threading.Event()

    def producer():
        q.enqueue("second")
        done.set()

    t = threading.Thread(target=producer, daemon=True)
    t.start()
    assert not done.wait(0.1)
    assert q.size() == 1

    assert q.dequeue() == "first"
    assert done.wait(2.0)
    assert q.dequeue() == "second"


def test_cancelled_enqueue_leaves_queue_untouched():
    q = BoundedWorkQueue(1)
    q.enqueue("first")
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(Cancelled):
        q.enqueue("second", cancel=cancel)
    assert q.counters() == QueueCounters(free_slots=0, filled_slots=1, length=1)


def test_dequeue_blocks_while_empty_and_can_be_cancelled():
    q = BoundedWorkQueue(2)
    cancel = threading.Event()
    outcome = []

    def consumer():
        try:
            outcome.append(q.dequeue(cancel=cancel))
        except Cancelled:
            outcome.append("cancelled")

    t = threading.Thread(target=consumer, daemon=True)
    t.start()
    time.sleep(0.1)
    assert outcome == []
    cancel.set()
    t.join(2.0)

    assert outcome == ["cancelled"]
    assert q.counters() == QueueCounters(free_slots=2, filled_slots=0, length=0)


def test_no_lost_or_duplicated_items_with_many_producers_and_consumers():
    q = BoundedWorkQueue(3)
    producers = 4
    per_producer = 50
    total = producers * per_producer
    stop = threading.Event()
    taken = []
    taken_lock = threading.Lock()
    out_of_bounds = []

    def produce(p):
        for i in range(per_producer):
            q.enqueue((p, i))

    def consume():
        while True:
            try:
                item = q.dequeue(cancel=stop)
            except Cancelled:
                return
            with taken_lock:
                taken.append(item)

    def watch():
        while not stop.is_set():
            n = q.size()
            if not 0 <= n <= q.capacity:
                out_of_bounds.append(n)
            time.sleep(0.001)

    consumers = [threading.Thread(target=consume, daemon=True) for _ in range(3)]
    watcher = threading.Thread(target=watch, daemon=True)
    prods = [threading.Thread(target=produce, args=(p,), daemon=True) for p in range(producers)]
    for t in consumers + [watcher] + prods:
        t.start()
    for t in prods:
        t.join(10.0)

    deadline = time.monotonic() + 10.0
    while len(taken) < total and time.monotonic() < deadline:
        time.sleep(0.01)
    stop.set()
    for t in consumers + [watcher]:
        t.join(2.0)

    assert len(taken) == total
    assert sorted(taken) == sorted((p, i) for p in range(producers) for i in range(per_producer))
    assert not out_of_bounds
    assert q.counters() == QueueCounters(free_slots=3, filled_slots=0, length=0)


def test_per_producer_order_is_preserved():
    q = BoundedWorkQueue(2)
    received = []

    def consume():
        for _ in range(20):
            received.append(q.dequeue())

    t = threading.Thread(target=consume, daemon=True)
    t.start()
    for i in range(20):
        q.enqueue(i)
    t.join(5.0)
    assert received == list(range(20))


def test_empty_body_after_filled_grant_is_reported(caplog):
    seen = []
    q = BoundedWorkQueue(2, on_violation=seen.append)

    # Simulate a stray filled-slot signal with nothing behind it.
    q._filled.release()
    with caplog.at_level(logging.WARNING, logger="service_station.work_queue"):
        assert q.dequeue() is None

    assert q.invariant_violations == 1
    assert len(seen) == 1
    assert isinstance(seen[0], QueueInvariantViolation)
    assert "queue is empty" in caplog.text

    # No free slot was handed back for the phantom item.
    assert q.counters() == QueueCounters(free_slots=2, filled_slots=0, length=0)

    q.enqueue("car")
    assert q.dequeue() == "car"
