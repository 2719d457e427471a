from __future__ import annotations
from typing import List, Sequence
import numpy as np

from ...errors import ConfigError, LabelCountMismatchError
from ..types import ClassificationResult, LabelScore, OutputTensor


def confidences(output: OutputTensor) -> np.ndarray:
    if output.range_max <= 0:
        raise ConfigError(f"quantization range max must be > 0, got {output.range_max}")
    return np.asarray(output.values, dtype=np.float64).reshape(-1) / float(output.range_max)


def label_scores(output: OutputTensor, labels: Sequence[str]) -> List[LabelScore]:
    if len(labels) != len(output):
        raise LabelCountMismatchError(len(labels), len(output))
    conf = confidences(output)
    return [LabelScore(lbl, float(c)) for lbl, c in zip(labels, conf)]


def top_k(output: OutputTensor, labels: Sequence[str], k: int = 3) -> List[LabelScore]:
    scores = label_scores(output, labels)
    # sorted() is stable, so equal confidences keep label order
    return sorted(scores, key=lambda s: s.confidence, reverse=True)[:max(0, k)]


class LabelScorer:
    def __init__(self, labels: Sequence[str], threshold: float = 0.5):
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"confidence threshold must be within [0, 1], got {threshold}")
        self.labels = list(labels)
        self.threshold = float(threshold)

    def score(self, output: OutputTensor) -> ClassificationResult:
        return score(output, self.labels, self.threshold)

    def top_k(self, output: OutputTensor, k: int = 3) -> List[LabelScore]:
        return top_k(output, self.labels, k)


def score(output: OutputTensor, labels: Sequence[str], threshold: float = 0.5) -> ClassificationResult:
    best = None
    for s in label_scores(output, labels):
        if s.confidence < threshold:
            continue
        # strict '>' keeps the first of equal maxima
        if best is None or s.confidence > best.confidence:
            best = s
    if best is None:
        return ClassificationResult.no_confident()
    return ClassificationResult.of(best.label, best.confidence * 100.0)
