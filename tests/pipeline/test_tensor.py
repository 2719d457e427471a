import numpy as np
import pytest

from liveclassify.errors import ConfigError, MalformedFrameError
from liveclassify.pipeline.stages import PixelConverter, TensorPreparer
from liveclassify.pipeline.types import InterleavedImage

from conftest import gray_frame


def _image(w, h, channels=3, value=(200, 100, 50)):
    px = np.empty((h, w, channels), np.uint8)
    px[:] = value[:channels] if channels > 1 else value[0]
    return InterleavedImage(w, h, px)


def test_prepare_resizes_to_target_and_keeps_raw_values():
    t = TensorPreparer((224, 224)).prepare(_image(640, 480))
    assert t.shape == (1, 224, 224, 3)
    assert t.data.dtype == np.uint8
    assert t.nbytes == 224 * 224 * 3
    assert t.data[0, 100, 100].tolist() == [200, 100, 50]


def test_prepare_applies_scale_and_zero_point():
    prep = TensorPreparer((4, 4), scale=2.0, zero_point=10)
    t = prep.prepare(_image(8, 8, value=(100, 0, 255)))
    assert t.data[0, 0, 0].tolist() == [60, 10, 138]


def test_prepare_clips_quantized_values():
    prep = TensorPreparer((2, 2), scale=0.5, zero_point=0)
    t = prep.prepare(_image(2, 2, value=(200, 10, 0)))
    assert t.data[0, 0, 0].tolist() == [255, 20, 0]


def test_rgba_input_drops_alpha():
    t = TensorPreparer((16, 16)).prepare(_image(32, 32, channels=4, value=(1, 2, 3, 4)))
    assert t.shape == (1, 16, 16, 3)
    assert t.data[0, 0, 0].tolist() == [1, 2, 3]


def test_single_channel_target():
    t = TensorPreparer((10, 6), channels=1).prepare(_image(20, 12))
    assert t.shape == (1, 6, 10, 1)
    assert t.nbytes == 60


def test_empty_image_is_malformed():
    with pytest.raises(MalformedFrameError):
        TensorPreparer().prepare(InterleavedImage(0, 0, np.zeros((0, 0, 3), np.uint8)))


@pytest.mark.parametrize("kwargs", [
    {"target_size": (0, 224)},
    {"channels": 2},
    {"scale": 0.0},
    {"zero_point": 300},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ConfigError):
        TensorPreparer(**kwargs)


@pytest.mark.parametrize("w,h", [(224, 224), (640, 480), (33, 17), (1, 1), (2, 5)])
def test_convert_then_prepare_always_matches_target_bytes(w, h):
    prep = TensorPreparer((224, 224), channels=3)
    t = prep.prepare(PixelConverter().convert(gray_frame(w, h)))
    assert t.nbytes == 224 * 224 * 3 == prep.expected_nbytes
    assert t.shape == prep.expected_shape
