from __future__ import annotations

"""Core data models shared by the analysers and the overlay."""

from enum import Enum
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LensFacing(str, Enum):
    FRONT = "front"
    BACK = "back"


class Region(BaseModel):
    """Axis-aligned face bounding box in frame pixel space."""

    x: int
    y: int
    width: int
    height: int

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_ltrb(cls, x1: float, y1: float, x2: float, y2: float) -> "Region":
        return cls(x=int(x1), y=int(y1), width=int(x2 - x1), height=int(y2 - y1))

    def ltrb(self) -> tuple[int, int, int, int]:
        """Return the box as ``(left, top, right, bottom)``."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    def clamp(self, width: int, height: int) -> "Region":
        """Return the part of this region inside a ``width`` x ``height`` frame."""
        x1, y1, x2, y2 = self.ltrb()
        x1 = max(0, min(x1, width))
        y1 = max(0, min(y1, height))
        x2 = max(0, min(x2, width))
        y2 = max(0, min(y2, height))
        return Region(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def mirrored(self, frame_width: int) -> "Region":
        """Return the region flipped around the vertical axis of the frame."""
        return Region(
            x=frame_width - self.x - self.width,
            y=self.y,
            width=self.width,
            height=self.height,
        )


class Prediction(BaseModel):
    region: Region
    label: str = ""
    mask_label: str = ""
    embedding: Optional[np.ndarray] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class RegionFailure(BaseModel):
    """Diagnostic for a region skipped during processing."""

    index: int
    region: Region
    stage: str
    error: str


class FrameResult(BaseModel):
    seq: int
    predictions: list[Prediction] = Field(default_factory=list)
    crop_count: int = 0
    failures: list[RegionFailure] = Field(default_factory=list)
    detect_ms: int = 0
    total_ms: int = 0


class PipelineConfig(BaseModel):
    """Recognised pipeline options."""

    mask_detection_enabled: bool = True
    target_resolution: tuple[int, int] = (480, 640)
    lens_facing: LensFacing = LensFacing.FRONT
    detection_workers: int = Field(default=2, ge=1)
    region_workers: int = Field(default=1, ge=1)
    watchdog_timeout: float = Field(default=5.0, ge=0.0)
    watchdog_interval: float = Field(default=0.5, gt=0.0)
    crop_margin: float = Field(default=0.0, ge=0.0)
    min_face_size: int = Field(default=0, ge=0)
    similarity_thresh: float = 0.6

    @field_validator("target_resolution")
    @classmethod
    def _positive_resolution(cls, v: tuple[int, int]) -> tuple[int, int]:
        w, h = v
        if w <= 0 or h <= 0:
            raise ValueError("target_resolution must be positive")
        return v


__all__ = [
    "LensFacing",
    "Region",
    "Prediction",
    "RegionFailure",
    "FrameResult",
    "PipelineConfig",
]
