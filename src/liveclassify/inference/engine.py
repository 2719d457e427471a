#!/usr/bin/env python3
# inference/engine.py
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np

from ..errors import InferenceError, LabelCountMismatchError
from ..pipeline.types import InputTensor, OutputTensor

log = logging.getLogger("inference.engine")


class ModelHandle(Protocol):
    """What the model-loading side hands us: a loaded, quantized classifier."""
    input_shape: Tuple[int, ...]
    output_size: int

    @property
    def is_loaded(self) -> bool: ...

    def run(self, data: np.ndarray) -> np.ndarray: ...

    def close(self) -> None: ...


class InferenceEngine:
    def __init__(self, model: Optional[ModelHandle]):
        self.model = model

    @property
    def input_nbytes(self) -> int:
        self._require_model()
        return int(np.prod(self.model.input_shape))

    @property
    def output_size(self) -> int:
        self._require_model()
        return int(self.model.output_size)

    def _require_model(self):
        if self.model is None or not self.model.is_loaded:
            raise InferenceError("model is not loaded")

    # ---------- Startup checks ----------
    def validate(self, expected_input_shape: Sequence[int], labels: Sequence[str]) -> None:
        """Fatal configuration checks, run once before any frame is accepted."""
        expected = int(np.prod(expected_input_shape))
        if expected != self.input_nbytes:
            raise InferenceError(
                f"prepared input is {expected} bytes {tuple(expected_input_shape)}, "
                f"model expects {self.input_nbytes} bytes {tuple(self.model.input_shape)}")
        if len(labels) != self.output_size:
            raise LabelCountMismatchError(len(labels), self.output_size)
        log.info("Model validated: input=%s output=%d classes", tuple(self.model.input_shape), self.output_size)

    def warmup(self) -> OutputTensor:
        """One blank pass; surfaces a broken interpreter before the camera starts."""
        self._require_model()
        blank = np.zeros(self.model.input_shape, dtype=np.uint8)
        return self.infer(InputTensor(data=blank))

    # ---------- Main API ----------
    def infer(self, tensor: InputTensor) -> OutputTensor:
        self._require_model()
        if tensor.nbytes != self.input_nbytes:
            raise InferenceError(f"input tensor is {tensor.nbytes} bytes, model expects {self.input_nbytes}")
        data = tensor.data.reshape(self.model.input_shape)
        out = np.asarray(self.model.run(data))
        if out.dtype != np.uint8:
            raise InferenceError(f"expected a uint8 quantized output, got {out.dtype}")
        values = out.reshape(-1)
        if values.size != self.output_size:
            raise InferenceError(f"model returned {values.size} scores, declared {self.output_size}")
        return OutputTensor(values=values, range_max=int(np.iinfo(np.uint8).max))

    def close(self) -> None:
        if self.model is not None:
            try:
                self.model.close()
            finally:
                self.model = None
