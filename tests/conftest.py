import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

import numpy as np
import pytest

from liveclassify.pipeline.sources import bgr_to_raw_frame
from liveclassify.pipeline.types import Plane, RawFrame


class FakeModel:
    """Stands in for a loaded quantized classifier: fixed output, call log, optional gate."""

    def __init__(self, input_shape: Tuple[int, ...] = (1, 8, 8, 3), output=None,
                 fn: Optional[Callable[[np.ndarray], np.ndarray]] = None):
        self.input_shape = tuple(input_shape)
        self.output = np.asarray(output if output is not None else [128, 255, 0], dtype=np.uint8)
        self.output_size = int(self.output.size)
        self.fn = fn
        self.calls: List[np.ndarray] = []
        self.entered = threading.Event()
        self.gate: Optional[threading.Event] = None
        self.closed = False
        self.events: List[str] = []

    @property
    def is_loaded(self) -> bool:
        return not self.closed

    def run(self, data: np.ndarray) -> np.ndarray:
        self.calls.append(data.copy())
        self.events.append("run-start")
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        self.events.append("run-end")
        if self.fn is not None:
            return self.fn(data)
        return self.output.reshape(1, -1).copy()

    def close(self) -> None:
        self.closed = True
        self.events.append("close")


def solid_bgr(w: int, h: int, bgr=(50, 100, 200)) -> np.ndarray:
    img = np.empty((h, w, 3), np.uint8)
    img[:] = bgr
    return img


def gray_frame(w: int, h: int, luma: int = 128) -> RawFrame:
    """Hand-built planar frame, works for odd sizes too."""
    cw, ch = (w + 1) // 2, (h + 1) // 2
    return RawFrame(
        width=w, height=h,
        y=Plane(bytes([luma]) * (w * h)),
        u=Plane(bytes([128]) * (cw * ch)),
        v=Plane(bytes([128]) * (cw * ch)),
    )


class ReleaseCounter:
    def __init__(self):
        self.count = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.count += 1


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def make_frame():
    def _make(w: int = 32, h: int = 24, bgr=(50, 100, 200), counter: Optional[ReleaseCounter] = None) -> RawFrame:
        f = bgr_to_raw_frame(solid_bgr(w, h, bgr))
        if counter is not None:
            f = replace(f, on_release=counter)
        return f
    return _make
