from __future__ import annotations

"""Drop-on-busy frame analyser.

Frames from a camera callback are admitted one at a time. While a frame is
in flight every new frame is closed and dropped. An admitted frame flows
through::

    submit -> detector (worker pool) -> per-region crop/embed/mask
           -> on_result(crops) -> overlay update + release (dispatch thread)

Failures never escape :meth:`FrameAnalyser.submit`. A detector error drops
the frame, a region error skips that region, and the admission flag is
always cleared afterwards so the analyser cannot stall.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from config import pipeline_config
from core import events
from core.errors import DetectionFailed, DispatcherStopped, RegionProcessingFailed
from core.lifecycle import register_analyser, unregister_analyser
from core.models import FrameResult, PipelineConfig, Prediction, Region, RegionFailure
from modules.admission import AdmissionGate
from modules.capabilities import (
    Detector,
    EmbeddingModel,
    MaskClassifier,
    ResultCallback,
    as_callback,
)
from modules.dispatch import MainThreadDispatcher
from modules.frame import Crop, Frame
from modules.identity import IdentityIndex
from modules.imaging import crop_region
from modules.overlay import BoundingBoxOverlay
from utils import logx

RegionOutcome = Union[Tuple[Crop, Prediction], RegionFailure, None]


class FrameAnalyser:
    """Analyse camera frames with at most one frame in flight."""

    def __init__(
        self,
        detector: Detector,
        embedder: Optional[EmbeddingModel],
        on_result: ResultCallback,
        *,
        mask_classifier: Optional[MaskClassifier] = None,
        overlay: Optional[BoundingBoxOverlay] = None,
        dispatcher: Optional[MainThreadDispatcher] = None,
        identity: Optional[IdentityIndex] = None,
        config: Optional[PipelineConfig] = None,
        watchdog: bool = True,
    ) -> None:
        self.cfg = config or pipeline_config()
        self.detector = detector
        self.embedder = embedder
        self.mask_classifier = mask_classifier
        self.mask_enabled = bool(self.cfg.mask_detection_enabled and mask_classifier is not None)
        self.overlay = overlay
        if overlay is not None:
            overlay.draw_mask_label = self.mask_enabled
        self.identity = identity
        self._on_result = as_callback(on_result)

        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher or MainThreadDispatcher()
        if self._owns_dispatcher:
            self.dispatcher.start()

        self.gate = AdmissionGate()
        self._pool = ThreadPoolExecutor(
            max_workers=self.cfg.detection_workers, thread_name_prefix="analyser"
        )
        self._region_pool: Optional[ThreadPoolExecutor] = None
        if self.cfg.region_workers > 1:
            self._region_pool = ThreadPoolExecutor(
                max_workers=self.cfg.region_workers, thread_name_prefix="region"
            )

        self._stats_lock = threading.Lock()
        self.detection_failures = 0
        self.region_failures = 0
        self.consumer_failures = 0
        self.watchdog_resets = 0
        self.stale_results = 0
        self.last_result: Optional[FrameResult] = None
        self.last_detection_error: Optional[DetectionFailed] = None
        self._closed = False

        self._watched = watchdog and self.cfg.watchdog_timeout > 0
        if self._watched:
            register_analyser(self, interval=self.cfg.watchdog_interval)

    # ------------------------------------------------------------------
    @property
    def busy(self) -> bool:
        return self.gate.busy

    def submit(self, frame: Frame) -> bool:
        """Admit ``frame`` for analysis or drop it when busy.

        Returns ``True`` if the frame was admitted. A dropped frame is closed
        immediately.
        """
        if self._closed:
            frame.close()
            return False
        ticket = self.gate.try_acquire()
        if ticket is None:
            frame.close()
            if logx.every(1.0, f"drop:{id(self)}"):
                logx.debug(events.FRAME_DROPPED, rejected=self.gate.rejected)
            return False

        logx.debug(events.FRAME_ADMITTED, seq=ticket)
        started = time.monotonic()
        try:
            image = frame.upright()
            # the frame buffer is handed back after detection
            if np.may_share_memory(image, frame.image):
                image = image.copy()
            if self.overlay is not None:
                self.overlay.ensure_dims(image.shape[1], image.shape[0])
            fut = self._pool.submit(self.detector.detect, image)
        except Exception as exc:
            frame.close()
            self._detection_failed(DetectionFailed(ticket, exc))
            return True
        fut.add_done_callback(partial(self._on_detected, ticket, frame, image, started))
        return True

    # ------------------------------------------------------------------
    def _on_detected(
        self,
        ticket: int,
        frame: Frame,
        image: np.ndarray,
        started: float,
        fut: Future,
    ) -> None:
        frame.close()
        detect_ms = int((time.monotonic() - started) * 1000)
        try:
            regions = list(fut.result())
        except Exception as exc:
            self._detection_failed(DetectionFailed(ticket, exc))
            return
        try:
            self._pool.submit(self._run_model, ticket, image, regions, started, detect_ms)
        except RuntimeError:
            logger.warning("analyser pool shut down; dropping frame {}", ticket)
            self._release(ticket)

    def _detection_failed(self, failure: DetectionFailed) -> None:
        self._count("detection_failures")
        self.last_detection_error = failure
        logger.warning("{}", failure)
        logx.warn(events.DETECTION_FAILED, seq=failure.seq, error=str(failure.cause))
        self._release(failure.seq)

    def _run_model(
        self,
        ticket: int,
        image: np.ndarray,
        regions: Sequence[Region],
        started: float,
        detect_ms: int,
    ) -> None:
        handed_off = False
        try:
            outcomes = self._process_regions(ticket, image, regions)
            crops: List[Crop] = []
            predictions: List[Prediction] = []
            failures: List[RegionFailure] = []
            for outcome in outcomes:
                if outcome is None:
                    continue
                if isinstance(outcome, RegionFailure):
                    failures.append(outcome)
                    continue
                crop, pred = outcome
                crops.append(crop)
                predictions.append(pred)
            if failures:
                self._count("region_failures", len(failures))

            if not self.gate.is_current(ticket):
                self._stale(ticket, delivered=False)
                return

            self._deliver(ticket, crops)
            # a watchdog reset during delivery leaves the overlay untouched
            if not self.gate.is_current(ticket):
                self._stale(ticket, delivered=True)
                return
            result = FrameResult(
                seq=ticket,
                predictions=predictions,
                crop_count=len(crops),
                failures=failures,
                detect_ms=detect_ms,
                total_ms=int((time.monotonic() - started) * 1000),
            )
            handed_off = self._post_ui(ticket, predictions, result)
        except Exception:
            logger.exception("frame {} processing failed", ticket)
        finally:
            if not handed_off:
                self._release(ticket)

    def _process_regions(
        self, ticket: int, image: np.ndarray, regions: Sequence[Region]
    ) -> List[RegionOutcome]:
        items = list(enumerate(regions))
        if self._region_pool is not None and len(items) > 1:
            return list(
                self._region_pool.map(
                    lambda item: self._process_region(ticket, image, *item), items
                )
            )
        return [self._process_region(ticket, image, i, r) for i, r in items]

    def _process_region(
        self, ticket: int, image: np.ndarray, index: int, region: Region
    ) -> RegionOutcome:
        min_size = self.cfg.min_face_size
        if min_size and (region.width < min_size or region.height < min_size):
            return None
        try:
            return self._infer_region(image, index, region)
        except RegionProcessingFailed as exc:
            logx.warn(
                events.REGION_FAILED,
                seq=ticket,
                index=index,
                stage=exc.stage,
                error=str(exc.cause),
            )
            return RegionFailure(
                index=index, region=region, stage=exc.stage, error=str(exc.cause)
            )

    def _infer_region(
        self, image: np.ndarray, index: int, region: Region
    ) -> Tuple[Crop, Prediction]:
        stage = "crop"
        try:
            crop_img = crop_region(image, region, self.cfg.crop_margin)
            embedding = None
            label = ""
            if self.embedder is not None:
                stage = "embedding"
                embedding = np.asarray(self.embedder.infer(crop_img), dtype=np.float32).ravel()
                dim = getattr(self.embedder, "embedding_dim", None)
                if dim is not None and embedding.shape[0] != dim:
                    raise ValueError(f"expected {dim} values, got {embedding.shape[0]}")
                if self.identity is not None:
                    stage = "identity"
                    label, _ = self.identity.match(embedding)
            mask_label = ""
            if self.mask_enabled:
                stage = "mask"
                mask_label = str(self.mask_classifier.infer(crop_img))
        except Exception as exc:
            raise RegionProcessingFailed(index, stage, exc) from exc
        crop = Crop(region=region, image=crop_img, index=index)
        pred = Prediction(
            region=region, label=label, mask_label=mask_label, embedding=embedding
        )
        return crop, pred

    # ------------------------------------------------------------------
    def _deliver(self, ticket: int, crops: List[Crop]) -> None:
        try:
            self._on_result(crops)
        except Exception as exc:
            self._count("consumer_failures")
            logger.exception("result consumer failed for frame {}", ticket)
            logx.error(events.CONSUMER_FAILED, seq=ticket, error=str(exc))
        else:
            logx.debug(events.RESULT_DELIVERED, seq=ticket, crops=len(crops))

    def _post_ui(
        self, ticket: int, predictions: List[Prediction], result: FrameResult
    ) -> bool:
        """Queue the overlay update and release; ``False`` if not queued."""
        try:
            fut = self.dispatcher.post(self._apply, ticket, predictions, result)
        except DispatcherStopped:
            logger.warning("dispatcher stopped; releasing frame {} without UI update", ticket)
            return False
        fut.add_done_callback(
            lambda f: self._release(ticket) if f.cancelled() else None
        )
        return True

    def _apply(
        self, ticket: int, predictions: List[Prediction], result: FrameResult
    ) -> None:
        # runs on the dispatch thread; release only after the overlay swap
        try:
            if self.gate.is_current(ticket):
                if self.overlay is not None:
                    self.overlay.replace(predictions)
                self.last_result = result
        finally:
            self._release(ticket)

    def _stale(self, ticket: int, *, delivered: bool) -> None:
        logx.warn(events.STALE_RESULT, seq=ticket, delivered=delivered)
        self._count("stale_results")

    def _release(self, ticket: int) -> None:
        self.gate.release(ticket)

    def _count(self, name: str, n: int = 1) -> None:
        with self._stats_lock:
            setattr(self, name, getattr(self, name) + n)

    # ------------------------------------------------------------------
    def check_stalled(self, now: Optional[float] = None) -> bool:
        """Force-release a frame in flight longer than ``watchdog_timeout``."""
        timeout = self.cfg.watchdog_timeout
        if timeout <= 0:
            return False
        busy_s = self.gate.busy_for(now)
        ticket = self.gate.force_release(older_than=timeout, now=now)
        if ticket is None:
            return False
        self._count("watchdog_resets")
        logx.warn(events.WATCHDOG_RESET, seq=ticket, busy_s=round(busy_s, 3))
        return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        return self.gate.wait_idle(timeout)

    def stats(self) -> Dict[str, Any]:
        gate = self.gate.stats()
        last = self.last_result
        with self._stats_lock:
            return {
                **gate,
                "detection_failures": self.detection_failures,
                "region_failures": self.region_failures,
                "consumer_failures": self.consumer_failures,
                "watchdog_resets": self.watchdog_resets,
                "stale_results": self.stale_results,
                "last_detect_ms": last.detect_ms if last else None,
                "last_total_ms": last.total_ms if last else None,
            }

    def close(self) -> None:
        """Stop the watchdog registration and worker pools."""
        if self._closed:
            return
        self._closed = True
        if self._watched:
            unregister_analyser(self)
        self._pool.shutdown(wait=True)
        if self._region_pool is not None:
            self._region_pool.shutdown(wait=True)
        if self._owns_dispatcher:
            self.dispatcher.stop(drain=True)

    def __enter__(self) -> "FrameAnalyser":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


__all__ = ["FrameAnalyser"]
