from __future__ import annotations
import logging
from typing import Optional, Sequence

from ..config import Settings
from ..inference.engine import InferenceEngine, ModelHandle
from ..inference.tflite_model import TFLiteModel
from .channels import ResultChannel
from .coordinator import FramePipeline, PipelineStats
from .labels import load_labels
from .stages import LabelScorer, PixelConverter, TensorPreparer
from .types import RawFrame

log = logging.getLogger("pipeline.context")


class ClassifierContext:
    """Owns the model, the labels and the worker. start() either reaches a running
    pipeline or raises; shutdown() drains the worker before the model goes away."""

    def __init__(self, settings: Settings, model: Optional[ModelHandle] = None,
                 labels: Optional[Sequence[str]] = None, results: Optional[ResultChannel] = None):
        self.settings = settings
        self.results = results or ResultChannel()
        self._model = model
        self._labels = list(labels) if labels is not None else None
        self.engine: Optional[InferenceEngine] = None
        self.pipeline: Optional[FramePipeline] = None

    @property
    def labels(self) -> Optional[Sequence[str]]:
        return self._labels

    @property
    def running(self) -> bool:
        return self.pipeline is not None and self.pipeline.running

    def start(self) -> "ClassifierContext":
        if self.pipeline is not None:
            return self
        s = self.settings
        s.validate()
        model = self._model if self._model is not None else TFLiteModel.load(s.model_path)
        engine = InferenceEngine(model)
        try:
            labels = self._labels if self._labels is not None else load_labels(s.labels_path)
            preparer = TensorPreparer(s.target_size, s.channels, s.input_scale, s.input_zero_point)
            engine.validate(preparer.expected_shape, labels)
            engine.warmup()
        except Exception:
            engine.close()
            raise

        self._labels = list(labels)
        self.engine = engine
        self.pipeline = FramePipeline(
            converter=PixelConverter(),
            preparer=preparer,
            engine=engine,
            scorer=LabelScorer(self._labels, s.conf_threshold),
            results=self.results,
        )
        self.pipeline.start()
        log.info("Classifier running: %d labels, input %dx%dx%d, threshold %.2f, quant=(%g, %d)",
                 len(self._labels), s.input_width, s.input_height, s.channels,
                 s.conf_threshold, s.input_scale, s.input_zero_point)
        return self

    def submit(self, frame: Optional[RawFrame]) -> bool:
        # shutdown() may clear self.pipeline from another thread; read it once
        pipe = self.pipeline
        if pipe is None:
            if frame is not None:
                frame.release()
            return False
        return pipe.submit(frame)

    def stats(self) -> PipelineStats:
        pipe = self.pipeline
        return pipe.stats() if pipe is not None else PipelineStats()

    def shutdown(self) -> None:
        if self.pipeline is not None:
            try:
                self.pipeline.stop()
            finally:
                self.pipeline = None
        if self.engine is not None:
            self.engine.close()
            self.engine = None
            self._model = None
            log.info("Classifier shut down")

    def __enter__(self) -> "ClassifierContext":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.shutdown()
