from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

ENV_PREFIX = "LIVECLASSIFY_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

NO_IMAGE_TEXT = "No image available"
NO_CONFIDENT_TEXT = "No confident predictions"


def _parse_bool(raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


@dataclass
class Settings:
    model_path: str = "models/mobilenet_v1.tflite"
    labels_path: str = "models/labels_mobilenet.txt"
    input_width: int = 224
    input_height: int = 224
    channels: int = 3
    conf_threshold: float = 0.5
    # (1.0, 0) copies raw 0..255 pixels straight into the uint8 tensor
    input_scale: float = 1.0
    input_zero_point: int = 0
    camera_device: int = 0
    camera_width: int = 640
    camera_height: int = 480
    camera_fps: int = 30
    video_path: Optional[str] = None
    headless: bool = False

    @property
    def target_size(self) -> Tuple[int, int]:
        return self.input_width, self.input_height

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(name: str):
            v = env.get(ENV_PREFIX + name)
            return v if v not in (None, "") else None

        def conv(name: str, fn, default):
            raw = get(name)
            if raw is None:
                return default
            try:
                return fn(raw)
            except ValueError as e:
                raise ConfigError(f"{ENV_PREFIX}{name}={raw!r}: {e}") from e

        d = cls()
        s = cls(
            model_path=get("MODEL_PATH") or d.model_path,
            labels_path=get("LABELS_PATH") or d.labels_path,
            input_width=conv("INPUT_WIDTH", int, d.input_width),
            input_height=conv("INPUT_HEIGHT", int, d.input_height),
            channels=conv("CHANNELS", int, d.channels),
            conf_threshold=conv("CONF_THRESHOLD", float, d.conf_threshold),
            input_scale=conv("INPUT_SCALE", float, d.input_scale),
            input_zero_point=conv("INPUT_ZERO_POINT", int, d.input_zero_point),
            camera_device=conv("CAMERA_DEVICE", int, d.camera_device),
            camera_width=conv("CAMERA_WIDTH", int, d.camera_width),
            camera_height=conv("CAMERA_HEIGHT", int, d.camera_height),
            camera_fps=conv("CAMERA_FPS", int, d.camera_fps),
            video_path=get("VIDEO_PATH"),
            headless=conv("HEADLESS", _parse_bool, d.headless),
        )
        s.validate()
        return s

    def validate(self) -> None:
        if self.input_width <= 0 or self.input_height <= 0:
            raise ConfigError(f"input size must be positive, got {self.input_width}x{self.input_height}")
        if self.channels not in (1, 3, 4):
            raise ConfigError(f"unsupported channel count {self.channels}")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigError(f"confidence threshold must be within [0, 1], got {self.conf_threshold}")
        if self.input_scale <= 0:
            raise ConfigError(f"input scale must be > 0, got {self.input_scale}")
        if not 0 <= self.input_zero_point <= 255:
            raise ConfigError(f"input zero point must be within [0, 255], got {self.input_zero_point}")
