from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..errors import FrameError, InferenceError, LabelCountMismatchError
from ..inference.engine import InferenceEngine
from .channels import LatestSlot, SlotClosed
from .interfaces import ResultSink
from .stages import LabelScorer, PixelConverter, TensorPreparer
from .types import ClassificationResult, RawFrame

log = logging.getLogger("pipeline.coordinator")


class PipelineState(str, Enum):
    STOPPED = "stopped"
    IDLE = "idle"
    PROCESSING = "processing"


@dataclass
class PipelineStats:
    submitted: int = 0
    dropped: int = 0
    processed: int = 0
    failed: int = 0
    no_image: int = 0
    last_latency_s: float = 0.0


class FramePipeline:
    """convert -> prepare -> infer -> score for one frame at a time on a single worker.

    Frames from the camera thread go through a LatestSlot: a frame that arrives while
    another is in flight replaces (and releases) whatever is still pending.
    """

    def __init__(self, converter: PixelConverter, preparer: TensorPreparer,
                 engine: InferenceEngine, scorer: LabelScorer, results: ResultSink):
        self.converter = converter
        self.preparer = preparer
        self.engine = engine
        self.scorer = scorer
        self.results = results

        self.last_error: Optional[BaseException] = None
        self._state = PipelineState.STOPPED
        self._stats = PipelineStats()
        self._stats_lock = threading.Lock()
        self._slot = LatestSlot()
        self._thread: Optional[threading.Thread] = None

    # ---------- Per-frame flow ----------
    def process(self, frame: Optional[RawFrame]) -> ClassificationResult:
        if frame is None:
            return ClassificationResult.no_image()
        try:
            image = self.converter.convert(frame)
        finally:
            frame.release()
        tensor = self.preparer.prepare(image)
        output = self.engine.infer(tensor)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("top: %s", ", ".join(f"{s.label}={s.confidence:.2f}" for s in self.scorer.top_k(output)))
        return self.scorer.score(output)

    # ---------- Lifecycle ----------
    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stats(self) -> PipelineStats:
        with self._stats_lock:
            return replace(self._stats)

    def start(self):
        if self._thread is not None:
            return
        self._state = PipelineState.IDLE
        self._thread = threading.Thread(target=self._loop, name="frame-pipeline", daemon=True)
        self._thread.start()
        log.info("Frame pipeline started")

    def stop(self):
        """Refuse new frames, let the in-flight one finish, then join the worker."""
        self._close_slot()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join()
        self._thread = None
        self._state = PipelineState.STOPPED
        log.info("Frame pipeline stopped: %s", self.stats())

    # ---------- Producer side (camera thread) ----------
    def submit(self, frame: Optional[RawFrame]) -> bool:
        try:
            displaced, old = self._slot.put(frame)
        except SlotClosed:
            if frame is not None:
                frame.release()
            return False
        with self._stats_lock:
            self._stats.submitted += 1
            if displaced:
                self._stats.dropped += 1
        if displaced and old is not None:
            old.release()
            log.debug("Dropped pending frame (worker busy)")
        return True

    # ---------- Worker ----------
    def _close_slot(self):
        had, pending = self._slot.close()
        if had and pending is not None:
            pending.release()

    def _loop(self):
        while True:
            try:
                frame = self._slot.take()
            except SlotClosed:
                break
            if not self._handle(frame):
                self._close_slot()
                break
        self._state = PipelineState.STOPPED

    def _handle(self, frame: Optional[RawFrame]) -> bool:
        self._state = PipelineState.PROCESSING
        t0 = time.perf_counter()
        try:
            result = self.process(frame)
        except FrameError as e:
            log.warning("Dropping frame: %s", e)
            result = ClassificationResult.no_image()
            with self._stats_lock:
                self._stats.failed += 1
        except (InferenceError, LabelCountMismatchError) as e:
            log.error("Inference failed, stopping pipeline: %s", e)
            self.last_error = e
            return False
        except Exception as e:
            log.exception("Unexpected error while processing frame: %s", e)
            result = ClassificationResult.no_image()
            with self._stats_lock:
                self._stats.failed += 1
        finally:
            self._state = PipelineState.IDLE

        with self._stats_lock:
            self._stats.processed += 1
            if frame is None:
                self._stats.no_image += 1
            self._stats.last_latency_s = time.perf_counter() - t0
        self.results.publish(result)
        return True
