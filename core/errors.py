"""Exception hierarchy for the frame pipeline.

Only input errors raised before a frame is admitted escape to callers.
Failures after admission are contained by the analyser and converted into
fewer results.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(PipelineError):
    """Configuration file could not be read or validated."""


class ImageDecodeError(PipelineError):
    """Input image could not be decoded."""


class EmptyCropError(PipelineError):
    """Region does not overlap the frame."""


class DispatcherStopped(PipelineError):
    """Task posted to a dispatcher that is not running."""


class DetectionFailed(PipelineError):
    """Detector raised for an admitted frame."""

    def __init__(self, seq: int, cause: BaseException) -> None:
        super().__init__(f"detection failed for frame {seq}: {cause}")
        self.seq = seq
        self.cause = cause


class RegionProcessingFailed(PipelineError):
    """Cropping or inference failed for a single region."""

    def __init__(self, index: int, stage: str, cause: BaseException) -> None:
        super().__init__(f"region {index} failed during {stage}: {cause}")
        self.index = index
        self.stage = stage
        self.cause = cause


__all__ = [
    "PipelineError",
    "ConfigError",
    "ImageDecodeError",
    "EmptyCropError",
    "DispatcherStopped",
    "DetectionFailed",
    "RegionProcessingFailed",
]
