from __future__ import annotations

"""Single image analysis for user-selected gallery pictures."""

from typing import Optional

from core.models import PipelineConfig
from modules.capabilities import Detector, EmbeddingModel, MaskClassifier, ResultCallback
from modules.dispatch import MainThreadDispatcher
from modules.frame import Frame
from modules.frame_analyser import FrameAnalyser
from modules.identity import IdentityIndex
from modules.imaging import ImageSource, decode_image
from modules.overlay import BoundingBoxOverlay


class GalleryAnalyser(FrameAnalyser):
    """Crop every face of a decoded image and hand the crops to ``on_result``.

    Uses the same admission contract as the camera analyser: a second image
    submitted while one is still in flight is rejected. Embedding and mask
    inference are optional; without them only crops are produced.
    """

    def __init__(
        self,
        detector: Detector,
        on_result: ResultCallback,
        *,
        embedder: Optional[EmbeddingModel] = None,
        mask_classifier: Optional[MaskClassifier] = None,
        overlay: Optional[BoundingBoxOverlay] = None,
        dispatcher: Optional[MainThreadDispatcher] = None,
        identity: Optional[IdentityIndex] = None,
        config: Optional[PipelineConfig] = None,
        watchdog: bool = True,
    ) -> None:
        super().__init__(
            detector,
            embedder,
            on_result,
            mask_classifier=mask_classifier,
            overlay=overlay,
            dispatcher=dispatcher,
            identity=identity,
            config=config,
            watchdog=watchdog,
        )

    def process_image(self, source: ImageSource) -> bool:
        """Decode ``source`` once and submit it; ``False`` if rejected.

        Raises :class:`~core.errors.ImageDecodeError` when the image cannot
        be decoded. Nothing is admitted in that case.
        """
        image = decode_image(source)
        return self.submit(Frame(image, rotation=0))


__all__ = ["GalleryAnalyser"]
