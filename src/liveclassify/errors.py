from __future__ import annotations


class LiveClassifyError(Exception):
    """Base class for everything this package raises on purpose."""


# ---------- Fatal / startup ----------
class ConfigError(LiveClassifyError):
    pass

class ModelLoadError(LiveClassifyError):
    pass

class InferenceError(LiveClassifyError):
    pass

class LabelCountMismatchError(LiveClassifyError):
    def __init__(self, label_count: int, score_count: int):
        super().__init__(f"label count {label_count} != output tensor length {score_count}")
        self.label_count = label_count
        self.score_count = score_count


# ---------- Per-frame (recoverable) ----------
class FrameError(LiveClassifyError):
    """Raised for a single frame; the stream keeps going."""

class MalformedFrameError(FrameError):
    pass

class FrameDecodeError(MalformedFrameError):
    pass
