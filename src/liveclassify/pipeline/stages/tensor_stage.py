from __future__ import annotations
from typing import Tuple
import cv2
import numpy as np

from ...errors import ConfigError, MalformedFrameError
from ..types import InputTensor, InterleavedImage


class TensorPreparer:
    """Bilinear resize to the model resolution, then uint8 quantization.

    q = clip(round(x / scale + zero_point), 0, 255); the default (1.0, 0) keeps the
    raw 0..255 pixel values.
    """

    def __init__(self, target_size: Tuple[int, int] = (224, 224), channels: int = 3,
                 scale: float = 1.0, zero_point: int = 0):
        tw, th = int(target_size[0]), int(target_size[1])
        if tw <= 0 or th <= 0:
            raise ConfigError(f"target size must be positive, got {tw}x{th}")
        if channels not in (1, 3, 4):
            raise ConfigError(f"unsupported channel count {channels}")
        if scale <= 0:
            raise ConfigError(f"quantization scale must be > 0, got {scale}")
        if not 0 <= int(zero_point) <= 255:
            raise ConfigError(f"zero point must be within [0, 255], got {zero_point}")
        self.target_size = (tw, th)
        self.channels = channels
        self.scale = float(scale)
        self.zero_point = int(zero_point)

    @property
    def expected_shape(self) -> Tuple[int, int, int, int]:
        tw, th = self.target_size
        return 1, th, tw, self.channels

    @property
    def expected_nbytes(self) -> int:
        tw, th = self.target_size
        return tw * th * self.channels

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0 and self.zero_point == 0

    def prepare(self, image: InterleavedImage) -> InputTensor:
        px = image.pixels
        if px is None or px.size == 0 or px.ndim not in (2, 3):
            raise MalformedFrameError("empty or non-image pixel buffer")
        if px.dtype != np.uint8:
            px = np.clip(px, 0, 255).astype(np.uint8)

        px = self._match_channels(px)
        resized = cv2.resize(px, self.target_size, interpolation=cv2.INTER_LINEAR)
        if resized.ndim == 2:
            resized = resized[:, :, None]

        if self.is_identity:
            q = resized
        else:
            q = np.clip(np.rint(resized.astype(np.float32) / self.scale + self.zero_point), 0, 255)
        data = np.ascontiguousarray(q, dtype=np.uint8)[None, ...]
        return InputTensor(data=data)

    def _match_channels(self, px: np.ndarray) -> np.ndarray:
        have = 1 if px.ndim == 2 else px.shape[2]
        if have == self.channels:
            return px
        if have == 4 and self.channels == 3:
            return cv2.cvtColor(px, cv2.COLOR_RGBA2RGB)
        if have == 1 and self.channels == 3:
            return cv2.cvtColor(px.reshape(px.shape[:2]), cv2.COLOR_GRAY2RGB)
        if have == 3 and self.channels == 1:
            return cv2.cvtColor(px, cv2.COLOR_RGB2GRAY)
        if have == 3 and self.channels == 4:
            return cv2.cvtColor(px, cv2.COLOR_RGB2RGBA)
        raise MalformedFrameError(f"cannot map {have}-channel image to {self.channels} channels")
