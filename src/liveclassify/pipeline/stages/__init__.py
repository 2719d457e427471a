from .convert_stage import PixelConverter
from .tensor_stage import TensorPreparer
from .score_stage import LabelScorer, label_scores, score, top_k

__all__ = ["PixelConverter", "TensorPreparer", "LabelScorer", "label_scores", "score", "top_k"]
