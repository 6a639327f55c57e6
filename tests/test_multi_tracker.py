from __future__ import annotations

import random
import threading

from conftest import Greeter, RecordingListener

from servicekit.registry import (
    MultiServiceListener,
    MultiServiceTracker,
    ServiceEvent,
    ServiceEventType,
)


def _started(source, listener=None) -> MultiServiceTracker:
    tracker = MultiServiceTracker(Greeter)
    if listener is not None:
        tracker.add_listener(listener)
    tracker.start(source)
    return tracker


def test_snapshot_tracks_added_and_removed_services(source, recorder) -> None:
    tracker = _started(source, recorder)
    a, b, c = Greeter("a"), Greeter("b"), Greeter("c")

    reg_a = source.publish(Greeter, a)
    source.publish(Greeter, b)
    source.withdraw(reg_a)
    source.publish(Greeter, c)

    snapshot = tracker.get_services()
    assert set(snapshot) == {b, c}
    assert recorder.events == [("added", a), ("added", b), ("removed", a), ("added", c)]

    # detached: later changes do not show up in an earlier snapshot
    source.publish(Greeter, Greeter("d"))
    assert len(snapshot) == 2
    assert len(tracker.get_services()) == 3


def test_live_references_match_resolved_services(source) -> None:
    tracker = _started(source)
    regs = [source.publish(Greeter, Greeter(str(i))) for i in range(5)]
    source.withdraw(regs[1])
    source.withdraw(regs[3])

    assert set(tracker.references()) == set(tracker._services)
    assert len(tracker.get_services()) == 3


def test_final_snapshot_reflects_last_event_per_reference(source) -> None:
    tracker = _started(source)
    registrations = [source.publish(Greeter, Greeter(str(i))) for i in range(6)]
    for reg in registrations:
        tracker.on_event(ServiceEvent(ServiceEventType.UNREGISTERING, reg.reference))
    assert tracker.get_services() == []

    rng = random.Random(1234)
    present = set()
    for _ in range(300):
        reg = rng.choice(registrations)
        if rng.random() < 0.55:
            tracker.on_event(ServiceEvent(ServiceEventType.REGISTERED, reg.reference))
            present.add(reg.reference)
        else:
            tracker.on_event(ServiceEvent(ServiceEventType.UNREGISTERING, reg.reference))
            present.discard(reg.reference)

    expected = {source.resolve(ref) for ref in present}
    assert set(tracker.get_services()) == expected
    assert set(tracker.references()) == present


def test_unresolvable_service_is_not_added(flaky_source, recorder) -> None:
    tracker = _started(flaky_source, recorder)
    flaky_source.misses.add(1)

    flaky_source.publish(Greeter, Greeter("gone"))

    assert recorder.events == []
    assert tracker.get_services() == []
    assert tracker.references() == []


def test_stop_emits_removal_for_every_service(source, recorder) -> None:
    services = [Greeter(str(i)) for i in range(3)]
    registrations = [source.publish(Greeter, s) for s in services]
    tracker = _started(source, recorder)
    recorder.events.clear()

    tracker.stop()

    assert sorted(e[1].name for e in recorder.events if e[0] == "removed") == ["0", "1", "2"]
    assert all(source.use_count(reg.reference) == 0 for reg in registrations)


def test_listener_added_during_dispatch_waits_for_next_event(source) -> None:
    late = RecordingListener()

    class Adder(MultiServiceListener):
        def service_added(self, service) -> None:
            tracker.add_listener(late)

    tracker = _started(source, Adder())
    others = [RecordingListener() for _ in range(3)]
    for listener in others:
        tracker.add_listener(listener)

    a, b = Greeter("a"), Greeter("b")
    source.publish(Greeter, a)
    assert late.events == []
    assert all(listener.events == [("added", a)] for listener in others)

    source.publish(Greeter, b)
    assert late.events == [("added", b)]


def test_concurrent_publish_and_withdraw(source) -> None:
    tracker = _started(source)
    kept = []
    kept_lock = threading.Lock()

    def worker(n: int) -> None:
        for i in range(50):
            reg = source.publish(Greeter, Greeter(f"{n}-{i}"))
            if i % 2:
                source.withdraw(reg)
            else:
                with kept_lock:
                    kept.append(reg)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(tracker.get_services()) == len(kept)
    assert set(tracker.references()) == {reg.reference for reg in kept}
