import numpy as np
import pytest

from liveclassify.errors import InferenceError, LabelCountMismatchError
from liveclassify.inference.engine import InferenceEngine
from liveclassify.pipeline.types import InputTensor

from conftest import FakeModel


def _tensor(shape=(1, 8, 8, 3)):
    return InputTensor(data=np.zeros(shape, np.uint8))


def test_infer_returns_flat_uint8_scores(fake_model):
    out = InferenceEngine(fake_model).infer(_tensor())
    assert out.values.tolist() == [128, 255, 0]
    assert out.range_max == 255
    assert len(out) == 3


def test_infer_accepts_same_bytes_in_another_shape(fake_model):
    InferenceEngine(fake_model).infer(InputTensor(data=np.zeros((8, 8, 3), np.uint8)))
    assert fake_model.calls[0].shape == (1, 8, 8, 3)


def test_wrong_input_size(fake_model):
    with pytest.raises(InferenceError, match="192"):
        InferenceEngine(fake_model).infer(_tensor((1, 4, 4, 3)))


def test_no_model():
    with pytest.raises(InferenceError, match="not loaded"):
        InferenceEngine(None).infer(_tensor())


def test_closed_engine(fake_model):
    eng = InferenceEngine(fake_model)
    eng.close()
    assert fake_model.closed
    with pytest.raises(InferenceError):
        eng.infer(_tensor())


def test_float_output_is_rejected():
    model = FakeModel(fn=lambda d: np.array([[0.1, 0.9, 0.0]], np.float32))
    with pytest.raises(InferenceError, match="uint8"):
        InferenceEngine(model).infer(_tensor())


def test_output_length_must_match_declared_size():
    model = FakeModel(fn=lambda d: np.array([[1, 2]], np.uint8))
    with pytest.raises(InferenceError, match="declared"):
        InferenceEngine(model).infer(_tensor())


def test_validate(fake_model):
    eng = InferenceEngine(fake_model)
    eng.validate((1, 8, 8, 3), ["a", "b", "c"])
    with pytest.raises(InferenceError):
        eng.validate((1, 224, 224, 3), ["a", "b", "c"])
    with pytest.raises(LabelCountMismatchError):
        eng.validate((1, 8, 8, 3), ["a", "b"])


def test_warmup_runs_blank_tensor(fake_model):
    InferenceEngine(fake_model).warmup()
    assert len(fake_model.calls) == 1
    assert not fake_model.calls[0].any()
