from __future__ import annotations

"""Frame and crop containers passed through the analysers."""

import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from core.models import Region

VALID_ROTATIONS = (0, 90, 180, 270)


class Frame:
    """Read-only image handed to an analyser exactly once.

    ``on_release`` is invoked the first time :meth:`close` runs, mirroring a
    camera buffer being returned to its pool. After release the owner may
    overwrite the pixels, so anything read later must come from a copy.
    """

    def __init__(
        self,
        image: np.ndarray,
        rotation: int = 0,
        on_release: Optional[Callable[[], None]] = None,
    ) -> None:
        if rotation % 360 not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be a multiple of 90, got {rotation}")
        view = image.view()
        view.flags.writeable = False
        self._image = view
        self.rotation = rotation % 360
        self._on_release = on_release
        self._closed = False
        self._lock = threading.Lock()

    @property
    def image(self) -> np.ndarray:
        return self._image

    @property
    def width(self) -> int:
        return int(self._image.shape[1])

    @property
    def height(self) -> int:
        return int(self._image.shape[0])

    @property
    def closed(self) -> bool:
        return self._closed

    def upright(self) -> np.ndarray:
        """Return pixels rotated clockwise by :attr:`rotation`."""
        from modules.imaging import rotate

        return rotate(self._image, self.rotation)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            hook, self._on_release = self._on_release, None
        if hook is not None:
            hook()

    def __enter__(self) -> "Frame":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"Frame(width={self.width}, height={self.height}, "
            f"rotation={self.rotation}, closed={self._closed})"
        )


@dataclass
class Crop:
    """Sub-image extracted at ``region``; ``index`` is the detector order."""

    region: Region
    image: np.ndarray = field(repr=False)
    index: int = 0

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.image.shape)


__all__ = ["Frame", "Crop", "VALID_ROTATIONS"]
