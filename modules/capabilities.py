"""Interfaces of the external collaborators used by the analysers.

Detection and inference models are opaque to the pipeline; anything with the
matching method satisfies these protocols.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence, Union, runtime_checkable

import numpy as np

from core.models import Region
from modules.frame import Crop


@runtime_checkable
class Detector(Protocol):
    """Face detector returning regions in frame pixel space."""

    def detect(self, image: np.ndarray) -> Sequence[Region]: ...


@runtime_checkable
class EmbeddingModel(Protocol):
    """Produces a fixed-length identity vector for a face crop."""

    def infer(self, crop: np.ndarray) -> np.ndarray: ...


@runtime_checkable
class MaskClassifier(Protocol):
    def infer(self, crop: np.ndarray) -> str: ...


@runtime_checkable
class ResultConsumer(Protocol):
    def on_result(self, crops: List[Crop]) -> None: ...


ResultCallback = Union[ResultConsumer, Callable[[List[Crop]], None]]


def as_callback(consumer: ResultCallback) -> Callable[[List[Crop]], None]:
    """Return a plain callable for ``consumer``."""
    on_result = getattr(consumer, "on_result", None)
    if callable(on_result):
        return on_result
    if callable(consumer):
        return consumer
    raise TypeError(f"{consumer!r} is neither callable nor a ResultConsumer")


__all__ = [
    "Detector",
    "EmbeddingModel",
    "MaskClassifier",
    "ResultConsumer",
    "ResultCallback",
    "as_callback",
]
