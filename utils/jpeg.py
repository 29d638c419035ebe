from __future__ import annotations

from os import getenv

import cv2
import numpy as np

DEFAULT_JPEG_QUALITY = int(getenv("FACECROP_JPEG_QUALITY", "80"))


def encode_jpeg(np_rgb: np.ndarray, quality: int | None = None) -> bytes:
    """Encode an RGB array as JPEG, returning ``b""`` when encoding fails."""
    q = int(quality if quality is not None else DEFAULT_JPEG_QUALITY)
    bgr = cv2.cvtColor(np_rgb, cv2.COLOR_RGB2BGR) if np_rgb.ndim == 3 else np_rgb
    ok, buf = cv2.imencode(".jpg", bgr, [int(cv2.IMWRITE_JPEG_QUALITY), q])
    return buf.tobytes() if ok else b""


__all__ = ["encode_jpeg"]
