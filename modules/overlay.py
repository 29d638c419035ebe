"""Bounding box overlay state and drawing routines."""

from __future__ import annotations

import threading
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from core.models import LensFacing, Prediction
from utils.jpeg import encode_jpeg

BOX_COLOR = (0, 200, 0)
MASK_COLORS = {
    "with_mask": (0, 200, 0),
    "without_mask": (220, 30, 30),
}


def _load_font():
    try:
        return ImageFont.load_default()
    except Exception:  # pragma: no cover - font load errors
        return None


class BoundingBoxOverlay:
    """Boxes drawn over the preview for the most recent analysed frame.

    Predictions are replaced as a whole by the analyser on its dispatch
    thread; renderers on other threads read a consistent snapshot.
    """

    def __init__(
        self,
        target_resolution: Tuple[int, int] = (480, 640),
        lens_facing: LensFacing | str = LensFacing.FRONT,
        draw_mask_label: bool = True,
    ) -> None:
        self.frame_width, self.frame_height = target_resolution
        self.lens_facing = LensFacing(lens_facing)
        self.draw_mask_label = draw_mask_label
        self.dims_initialised = False
        self.revision = 0
        self._predictions: List[Prediction] = []
        self._lock = threading.Lock()

    def ensure_dims(self, width: int, height: int) -> bool:
        """Adopt the first frame's size for the frame-to-view transform."""
        with self._lock:
            if self.dims_initialised:
                return False
            self.frame_width = width
            self.frame_height = height
            self.dims_initialised = True
            return True

    def replace(self, predictions: List[Prediction]) -> None:
        with self._lock:
            self._predictions = list(predictions)
            self.revision += 1

    def snapshot(self) -> List[Prediction]:
        with self._lock:
            return list(self._predictions)

    def clear(self) -> None:
        self.replace([])

    def _label(self, pred: Prediction) -> str:
        parts = [pred.label] if pred.label else []
        if self.draw_mask_label and pred.mask_label:
            parts.append(pred.mask_label)
        return " ".join(parts)

    def render(self, image: np.ndarray) -> np.ndarray:
        """Return a copy of ``image`` with the current boxes drawn on it.

        Boxes are scaled from frame space to the image size and mirrored for
        a front facing lens, matching the mirrored preview.
        """
        preds = self.snapshot()
        img = Image.fromarray(image).copy()
        draw = ImageDraw.Draw(img)
        font = _load_font()
        scale_x = img.width / max(1, self.frame_width)
        scale_y = img.height / max(1, self.frame_height)
        for pred in preds:
            region = pred.region
            if self.lens_facing is LensFacing.FRONT:
                region = region.mirrored(self.frame_width)
            x1, y1, x2, y2 = region.ltrb()
            xi1 = int(x1 * scale_x)
            yi1 = int(y1 * scale_y)
            xi2 = int(x2 * scale_x)
            yi2 = int(y2 * scale_y)
            color = MASK_COLORS.get(pred.mask_label, BOX_COLOR) if self.draw_mask_label else BOX_COLOR
            draw.rectangle([xi1, yi1, xi2, yi2], outline=color, width=2)
            label = self._label(pred)
            if label:
                tw = draw.textlength(label, font=font)
                th = (getattr(font, "size", 10) if font else 10) + 4
                draw.rectangle(
                    [xi1, max(0, yi1 - th), xi1 + int(tw) + 6, yi1],
                    fill=color,
                )
                draw.text(
                    (xi1 + 3, max(0, yi1 - th) + 2),
                    label,
                    fill=(0, 0, 0),
                    font=font,
                )
        return np.asarray(img)

    def render_jpeg(self, image: np.ndarray, quality: Optional[int] = None) -> bytes:
        return encode_jpeg(self.render(image), quality)


__all__ = ["BoundingBoxOverlay", "MASK_COLORS"]
