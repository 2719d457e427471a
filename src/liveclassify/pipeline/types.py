from __future__ import annotations
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Tuple
import numpy as np

from ..config import NO_CONFIDENT_TEXT, NO_IMAGE_TEXT


@dataclass
class Plane:
    """One pixel plane. row_stride=None means tightly packed rows."""
    data: bytes
    row_stride: Optional[int] = None
    pixel_stride: int = 1

    def __len__(self) -> int:
        return len(self.data)


@dataclass(eq=False, frozen=True)
class RawFrame:
    """One planar YUV 4:2:0 camera sample (Y, U, V). Consumed once, then released.

    Frozen: derive variants with dataclasses.replace(). Only the release flag changes.
    """
    width: int
    height: int
    y: Plane
    u: Plane
    v: Plane
    timestamp: float = 0.0
    on_release: Optional[Callable[[], None]] = field(default=None, repr=False)
    _released: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def chroma_size(self) -> Tuple[int, int]:
        return (self.width + 1) // 2, (self.height + 1) // 2

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            object.__setattr__(self, "_released", True)
        if self.on_release is not None:
            self.on_release()


@dataclass
class InterleavedImage:
    width: int
    height: int
    pixels: np.ndarray  # (H, W, C) uint8, RGB or RGBA

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])


@dataclass
class InputTensor:
    data: np.ndarray  # (1, H, W, C) uint8

    @property
    def nbytes(self) -> int:
        return int(self.data.nbytes)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.data.shape)


@dataclass
class OutputTensor:
    values: np.ndarray  # flat uint8, one score per class
    range_max: int = 255

    def __len__(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True)
class LabelScore:
    label: str
    confidence: float  # [0.0, 1.0]


class ResultKind(str, Enum):
    LABEL = "label"
    NO_CONFIDENT = "no_confident"
    NO_IMAGE = "no_image"


@dataclass(frozen=True)
class ClassificationResult:
    kind: ResultKind
    label: Optional[str] = None
    confidence: float = 0.0  # percentage, [0, 100]

    @classmethod
    def of(cls, label: str, percentage: float) -> "ClassificationResult":
        return cls(ResultKind.LABEL, label, min(100.0, max(0.0, float(percentage))))

    @classmethod
    def no_confident(cls) -> "ClassificationResult":
        return cls(ResultKind.NO_CONFIDENT)

    @classmethod
    def no_image(cls) -> "ClassificationResult":
        return cls(ResultKind.NO_IMAGE)

    @property
    def is_sentinel(self) -> bool:
        return self.kind is not ResultKind.LABEL

    @property
    def text(self) -> str:
        if self.kind is ResultKind.NO_IMAGE:
            return NO_IMAGE_TEXT
        if self.kind is ResultKind.NO_CONFIDENT:
            return NO_CONFIDENT_TEXT
        return f"{self.label} ({self.confidence:.1f}%)"

    def __str__(self) -> str:
        return self.text
