import threading
import time

from modules.admission import AdmissionGate


def test_acquire_reject_release():
    gate = AdmissionGate()
    t1 = gate.try_acquire()
    assert t1 == 1
    assert gate.busy
    assert gate.current == 1
    assert gate.try_acquire() is None
    assert gate.rejected == 1
    assert gate.release(t1) is True
    assert not gate.busy
    assert gate.current is None
    assert gate.try_acquire() == 2
    assert gate.admitted == 2


def test_stale_ticket_cannot_clear_newer_frame():
    gate = AdmissionGate()
    old = gate.try_acquire()
    assert gate.force_release() == old
    new = gate.try_acquire()
    assert gate.release(old) is False
    assert gate.busy
    assert gate.is_current(new)
    assert not gate.is_current(old)
    assert gate.release(new) is True


def test_force_release_respects_age():
    gate = AdmissionGate()
    ticket = gate.try_acquire()
    now = time.monotonic()
    assert gate.force_release(older_than=5.0, now=now) is None
    assert gate.busy
    assert gate.busy_for(now + 6) >= 6
    assert gate.force_release(older_than=5.0, now=now + 6) == ticket
    assert gate.forced == 1
    assert gate.busy_for() == 0.0


def test_wait_idle_wakes_on_release():
    gate = AdmissionGate()
    ticket = gate.try_acquire()
    assert gate.wait_idle(timeout=0.01) is False
    timer = threading.Timer(0.05, gate.release, args=(ticket,))
    timer.start()
    assert gate.wait_idle(timeout=2) is True
    timer.join()


def test_only_one_thread_admitted():
    gate = AdmissionGate()
    barrier = threading.Barrier(16)
    tickets = []

    def worker():
        barrier.wait()
        tickets.append(gate.try_acquire())

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len([t for t in tickets if t is not None]) == 1
    assert gate.stats()["rejected"] == 15
