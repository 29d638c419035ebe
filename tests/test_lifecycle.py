import gc

from core import lifecycle


class _StubAnalyser:
    def __init__(self, stalled):
        self.stalled = stalled
        self.checks = []

    def check_stalled(self, now):
        self.checks.append(now)
        return self.stalled


class _Broken:
    def check_stalled(self, now):
        raise RuntimeError("boom")


def test_check_once_counts_resets(monkeypatch):
    a, b, c = _StubAnalyser(True), _StubAnalyser(False), _Broken()
    for x in (a, b, c):
        monkeypatch.setitem(lifecycle._analysers, id(x), x)
    wd = lifecycle.Watchdog(interval=60)
    assert wd.check_once(now=123.0) == 1
    assert a.checks == [123.0]
    assert b.checks == [123.0]
    lifecycle.unregister_analyser(a)
    assert a not in lifecycle.registered_analysers()


def test_stoppable_thread_stop():
    t = lifecycle.StoppableThread(target=lambda: None)
    assert t.running
    t.stop()
    assert not t.running


def test_watchdog_thread_resets_real_analyser(dispatcher, frame_image, wait_until):
    from conftest import Collector, FakeDetector, FakeEmbedder

    from core.models import PipelineConfig
    from modules.frame import Frame
    from modules.frame_analyser import FrameAnalyser

    cfg = PipelineConfig(watchdog_timeout=0.05, watchdog_interval=0.01)
    det = FakeDetector([], hold_calls={1})
    fa = FrameAnalyser(det, FakeEmbedder(), Collector(), dispatcher=dispatcher, config=cfg)
    try:
        assert fa in lifecycle.registered_analysers()
        fa.submit(Frame(frame_image))
        assert wait_until(lambda: fa.stats()["watchdog_resets"] == 1)
        assert not fa.busy
    finally:
        det.hold.set()
        fa.close()
    assert fa not in lifecycle.registered_analysers()


def test_unclosed_analyser_leaves_registry_when_collected():
    stub = _StubAnalyser(False)
    key = id(stub)
    with lifecycle._registry_lock:
        lifecycle._analysers[key] = stub
    assert stub in lifecycle.registered_analysers()
    del stub
    gc.collect()
    assert key not in lifecycle._analysers
    assert lifecycle.Watchdog(interval=60).check_once(now=1.0) == 0
