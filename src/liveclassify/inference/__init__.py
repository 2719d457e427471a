from .engine import InferenceEngine, ModelHandle
from .tflite_model import TFLiteModel

__all__ = ["InferenceEngine", "ModelHandle", "TFLiteModel"]
