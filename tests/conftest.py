"""Shared pytest fixtures for analyser testing."""

import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from core.models import PipelineConfig, Region  # noqa: E402
from modules.dispatch import MainThreadDispatcher  # noqa: E402
from utils import logx  # noqa: E402


class FakeDetector:
    """Return fixed regions; optionally block or raise on selected calls."""

    def __init__(self, regions, *, hold_calls=(), fail_calls=(), error=None):
        self.regions = list(regions)
        self.hold_calls = set(hold_calls)
        self.fail_calls = set(fail_calls)
        self.error = error or RuntimeError("detector exploded")
        self.hold = threading.Event()
        self.started = threading.Event()
        self.calls = 0
        self.images = []
        self._lock = threading.Lock()

    def detect(self, image):
        with self._lock:
            self.calls += 1
            call = self.calls
        self.images.append(image)
        self.started.set()
        if call in self.hold_calls:
            self.hold.wait(5)
        if call in self.fail_calls:
            raise self.error
        return list(self.regions)


class FakeEmbedder:
    embedding_dim = 4

    def __init__(self, fail_calls=()):
        self.fail_calls = set(fail_calls)
        self.calls = 0
        self._lock = threading.Lock()

    def infer(self, crop):
        with self._lock:
            self.calls += 1
            call = self.calls
        if call in self.fail_calls:
            raise ValueError("embedding failed")
        return np.full(self.embedding_dim, float(crop.mean()) + 1.0, dtype=np.float32)


class FakeMaskClassifier:
    def __init__(self, label="with_mask"):
        self.label = label
        self.calls = 0

    def infer(self, crop):
        self.calls += 1
        return self.label


class Collector:
    """Result consumer recording every delivery."""

    def __init__(self):
        self.results = []
        self.threads = []
        self.delivered = threading.Event()

    def on_result(self, crops):
        self.results.append(list(crops))
        self.threads.append(threading.current_thread())
        self.delivered.set()


def regions(*boxes):
    return [Region(x=x, y=y, width=w, height=h) for x, y, w, h in boxes]


@pytest.fixture
def cfg():
    return PipelineConfig(watchdog_timeout=0, detection_workers=2)


@pytest.fixture
def dispatcher():
    d = MainThreadDispatcher(name="test-dispatch")
    d.start()
    yield d
    d.stop()


@pytest.fixture
def frame_image():
    """100x100 RGB image with a distinct value per column band."""
    img = np.zeros((100, 100, 3), dtype=np.uint8)
    for i in range(5):
        img[:, i * 20:(i + 1) * 20] = (i + 1) * 40
    return img


@pytest.fixture
def wait_until():
    def _wait(predicate, timeout: float = 2.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()

    return _wait


@pytest.fixture(autouse=True)
def _reset_logx():
    logx.clear_history()
    logx._last_times.clear()
    logx._last_values.clear()
    yield
    logx.clear_history()
