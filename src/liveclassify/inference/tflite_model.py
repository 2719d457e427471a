#!/usr/bin/env python3
# inference/tflite_model.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..errors import InferenceError, ModelLoadError

log = logging.getLogger("inference.tflite")


class TFLiteModel:
    """Quantized (uint8) TFLite classifier. The interpreter mmaps the flatbuffer itself
    when given a path, so the weights are never copied onto the Python heap."""

    def __init__(self, interpreter, model_path: str):
        self.model_path = model_path
        self._interp = interpreter
        inp = interpreter.get_input_details()[0]
        out = interpreter.get_output_details()[0]
        self._in_index = inp["index"]
        self._out_index = out["index"]
        self.input_shape: Tuple[int, ...] = tuple(int(x) for x in inp["shape"])
        self.output_size: int = int(np.prod(out["shape"]))
        self.input_dtype = np.dtype(inp["dtype"])
        self.output_dtype = np.dtype(out["dtype"])
        scale, zero_point = inp.get("quantization", (0.0, 0))
        # (0.0, 0) is how TFLite reports "not quantized"
        self.input_quantization: Optional[Tuple[float, int]] = (
            (float(scale), int(zero_point)) if scale else None)

    @classmethod
    def load(cls, model_path: Union[str, Path], num_threads: Optional[int] = None) -> "TFLiteModel":
        path = Path(model_path)
        if not path.is_file():
            raise ModelLoadError(f"model file not found: {path}")
        try:
            from tflite_runtime.interpreter import Interpreter  # type: ignore
        except ImportError as e:
            raise ModelLoadError("tflite-runtime is not installed (pip install 'liveclassify[tflite]')") from e
        try:
            interp = Interpreter(model_path=str(path), num_threads=num_threads)
            interp.allocate_tensors()
        except (ValueError, RuntimeError) as e:
            raise ModelLoadError(f"failed to load {path}: {e}") from e

        model = cls(interp, str(path))
        if model.input_dtype != np.uint8 or model.output_dtype != np.uint8:
            model.close()
            raise ModelLoadError(
                f"{path} is not a uint8 quantized model (input {model.input_dtype}, output {model.output_dtype})")
        log.info("TFLite model loaded: %s input=%s output=%d quant=%s",
                 path, model.input_shape, model.output_size, model.input_quantization)
        return model

    @property
    def is_loaded(self) -> bool:
        return self._interp is not None

    def run(self, data: np.ndarray) -> np.ndarray:
        if self._interp is None:
            raise InferenceError("interpreter already closed")
        self._interp.set_tensor(self._in_index, data)
        self._interp.invoke()
        # get_tensor returns a copy; the internal buffer is reused by the next invoke
        return self._interp.get_tensor(self._out_index)

    def close(self) -> None:
        self._interp = None
