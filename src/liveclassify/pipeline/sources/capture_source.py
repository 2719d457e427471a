#!/usr/bin/env python3
# capture_source.py
from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from ..interfaces import FrameSink, FrameSource
from ..types import Plane, RawFrame

log = logging.getLogger("pipeline.sources.capture")


def bgr_to_raw_frame(frame_bgr: np.ndarray, timestamp: float = 0.0) -> RawFrame:
    """Repackage an OpenCV BGR frame as planar I420, the layout a phone camera hands out.
    OpenCV's I420 encoder needs even sizes, so an odd last row/column is cropped."""
    h, w = frame_bgr.shape[:2]
    h, w = h - (h % 2), w - (w % 2)
    if h <= 0 or w <= 0:
        raise ValueError(f"frame too small for I420: {frame_bgr.shape}")
    i420 = cv2.cvtColor(np.ascontiguousarray(frame_bgr[:h, :w]), cv2.COLOR_BGR2YUV_I420).reshape(-1)
    ysz, csz = w * h, (w // 2) * (h // 2)
    return RawFrame(
        width=w, height=h,
        y=Plane(i420[:ysz].tobytes()),
        u=Plane(i420[ysz:ysz + csz].tobytes()),
        v=Plane(i420[ysz + csz:ysz + 2 * csz].tobytes()),
        timestamp=timestamp,
    )


class CaptureSource(FrameSource):
    """Camera index or video file through cv2.VideoCapture, AVFoundation first for cameras."""

    def __init__(self, device: int = 0, width: int = 640, height: int = 480, fps: int = 30,
                 video_path: Optional[str] = None):
        self.device, self._w, self._h, self._fps = device, width, height, fps
        self.video_path = video_path
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_file(self) -> bool:
        return bool(self.video_path)

    def open(self) -> None:
        if self.is_file:
            cap = cv2.VideoCapture(self.video_path)
            if not cap.isOpened():
                raise RuntimeError(f"Cannot open video file: {self.video_path}")
            self._cap = cap
            log.info("Video opened: %s @ %.3f fps, frames=%d", self.video_path,
                     cap.get(cv2.CAP_PROP_FPS) or 0.0, int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0))
            return

        cap = cv2.VideoCapture(self.device, cv2.CAP_AVFOUNDATION)
        if not cap.isOpened():
            cap = cv2.VideoCapture(self.device)
        if not cap.isOpened():
            raise RuntimeError(f"Cannot open camera {self.device}")
        if self._w > 0: cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._w)
        if self._h > 0: cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._h)
        if self._fps > 0: cap.set(cv2.CAP_PROP_FPS, self._fps)
        self._cap = cap
        log.info("Camera opened: dev=%d size=%dx%d fps~%.1f", self.device,
                 int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                 cap.get(cv2.CAP_PROP_FPS) or 0.0)

    def read_bgr(self) -> Tuple[bool, Optional[np.ndarray]]:
        if self._cap is None:
            return False, None
        return self._cap.read()

    def read(self) -> Tuple[bool, Optional[RawFrame]]:
        ok, bgr = self.read_bgr()
        if not ok or bgr is None:
            return ok, None
        return True, bgr_to_raw_frame(bgr, time.perf_counter())

    def fps(self) -> float:
        if self._cap is None:
            return float(self._fps or 30.0)
        v = self._cap.get(cv2.CAP_PROP_FPS) or 0.0
        return float(v if v > 0 else (self._fps or 30.0))

    def close(self) -> None:
        if self._cap is not None:
            try:
                self._cap.release()
            finally:
                self._cap = None


class CaptureThread(threading.Thread):
    """Camera-side delivery thread: read -> (preview) -> sink.submit().

    A failed camera read is delivered as None ("no image"); end of a video file stops
    the thread. Files are paced to their native fps.
    """

    def __init__(self, source: CaptureSource, sink: FrameSink,
                 on_preview: Optional[Callable[[np.ndarray], None]] = None,
                 on_finished: Optional[Callable[[], None]] = None):
        super().__init__(name="capture", daemon=True)
        self.source = source
        self.sink = sink
        self.on_preview = on_preview
        self.on_finished = on_finished
        self._stop_evt = threading.Event()

    def run(self):
        period = 1.0 / max(1e-6, self.source.fps())
        t0 = time.perf_counter()
        idx = 0
        try:
            while not self._stop_evt.is_set():
                ok, bgr = self.source.read_bgr()
                if not ok or bgr is None:
                    if self.source.is_file:
                        log.info("End of video after %d frames", idx)
                        break
                    self.sink.submit(None)
                    self._stop_evt.wait(0.05)
                    continue

                idx += 1
                if self.on_preview is not None:
                    self.on_preview(bgr)
                self.sink.submit(bgr_to_raw_frame(bgr, time.perf_counter()))

                if self.source.is_file:
                    delay = idx * period - (time.perf_counter() - t0)
                    if delay > 0:
                        self._stop_evt.wait(delay)
        finally:
            self.source.close()
            if self.on_finished is not None:
                self.on_finished()

    def stop(self, timeout: Optional[float] = 2.0):
        self._stop_evt.set()
        if self.is_alive() and self is not threading.current_thread():
            self.join(timeout)
