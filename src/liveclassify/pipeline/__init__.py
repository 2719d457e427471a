from .types import (
    ClassificationResult, InputTensor, InterleavedImage, LabelScore,
    OutputTensor, Plane, RawFrame, ResultKind,
)

__all__ = [
    "ClassificationResult", "InputTensor", "InterleavedImage", "LabelScore",
    "OutputTensor", "Plane", "RawFrame", "ResultKind",
]
