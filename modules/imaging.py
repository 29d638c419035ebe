from __future__ import annotations

"""Image helpers for rotating, cropping and decoding frames."""

from pathlib import Path
from typing import Callable, Optional, Union

import cv2
import numpy as np

from core.errors import EmptyCropError, ImageDecodeError
from core.models import Region
from modules.frame import Frame

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

ImageSource = Union[str, Path, bytes, bytearray, np.ndarray]


def rotate(image: np.ndarray, degrees: int) -> np.ndarray:
    """Return ``image`` rotated clockwise by ``degrees`` (multiple of 90)."""
    degrees = int(degrees) % 360
    if degrees == 0:
        return image
    code = _ROTATE_CODES.get(degrees)
    if code is None:
        raise ValueError(f"unsupported rotation: {degrees}")
    return cv2.rotate(image, code)


def crop_region(image: np.ndarray, region: Region, margin: float = 0.0) -> np.ndarray:
    """Return a copy of ``image`` inside ``region`` grown by ``margin``.

    The box is clamped to image bounds. :class:`EmptyCropError` is raised
    when nothing of the region lies inside the image.
    """
    h, w = image.shape[:2]
    x1, y1, x2, y2 = region.ltrb()
    dw = int(region.width * margin)
    dh = int(region.height * margin)
    x1 = max(0, x1 - dw)
    y1 = max(0, y1 - dh)
    x2 = min(w, x2 + dw)
    y2 = min(h, y2 + dh)
    if x2 <= x1 or y2 <= y1:
        raise EmptyCropError(f"region {region.ltrb()} outside {w}x{h} image")
    return image[y1:y2, x1:x2].copy()


def decode_image(source: ImageSource) -> np.ndarray:
    """Decode ``source`` into an RGB ``uint8`` array.

    Paths are read with :func:`numpy.fromfile` so non-ASCII file names work
    on every platform. Arrays are treated as already decoded RGB images.
    """
    if isinstance(source, np.ndarray) and source.ndim >= 2:
        return source
    try:
        if isinstance(source, (str, Path)):
            buf = np.fromfile(str(source), dtype=np.uint8)
        elif isinstance(source, np.ndarray):
            buf = source.astype(np.uint8, copy=False)
        else:
            buf = np.frombuffer(bytes(source), dtype=np.uint8)
    except OSError as exc:
        raise ImageDecodeError(f"cannot read image {source!s}: {exc}") from exc
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if bgr is None:
        raise ImageDecodeError("image data could not be decoded")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def frame_from_array(
    image: np.ndarray,
    rotation: int = 0,
    on_release: Optional[Callable[[], None]] = None,
) -> Frame:
    return Frame(image, rotation=rotation, on_release=on_release)


__all__ = ["rotate", "crop_region", "decode_image", "frame_from_array", "ImageSource"]
