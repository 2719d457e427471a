import threading

import pytest

from liveclassify.config import Settings
from liveclassify.errors import InferenceError, LabelCountMismatchError, ModelLoadError
from liveclassify.pipeline.context import ClassifierContext
from liveclassify.pipeline.types import ResultKind

from conftest import FakeModel, ReleaseCounter

LABELS = ["cat", "dog", "bird"]


def _settings(**kw):
    base = dict(input_width=8, input_height=8, conf_threshold=0.5)
    base.update(kw)
    return Settings(**base)


def test_start_submit_shutdown(make_frame):
    model = FakeModel()
    ctx = ClassifierContext(_settings(), model=model, labels=LABELS).start()
    try:
        assert ctx.running
        # warmup ran once on a blank tensor
        assert len(model.calls) == 1 and not model.calls[0].any()
        assert ctx.submit(make_frame())
        assert ctx.results.get(timeout=2).text == "dog (100.0%)"
        ctx.submit(None)
        assert ctx.results.get(timeout=2).kind is ResultKind.NO_IMAGE
    finally:
        ctx.shutdown()
    assert model.closed
    assert not ctx.running
    assert ctx.engine is None

    late = ReleaseCounter()
    assert ctx.submit(make_frame(counter=late)) is False
    assert late.count == 1


def test_context_manager(make_frame):
    model = FakeModel()
    with ClassifierContext(_settings(), model=model, labels=LABELS) as ctx:
        ctx.submit(make_frame())
        assert ctx.results.get(timeout=2).label == "dog"
    assert model.closed


def test_label_count_mismatch_aborts_startup():
    model = FakeModel()
    ctx = ClassifierContext(_settings(), model=model, labels=["cat", "dog"])
    with pytest.raises(LabelCountMismatchError):
        ctx.start()
    assert model.closed
    assert ctx.pipeline is None and not ctx.running


def test_input_size_mismatch_aborts_startup():
    model = FakeModel(input_shape=(1, 224, 224, 3))
    ctx = ClassifierContext(_settings(), model=model, labels=LABELS)
    with pytest.raises(InferenceError, match="model expects"):
        ctx.start()
    assert model.calls == []
    assert ctx.pipeline is None


def test_missing_model_file_aborts_startup(tmp_path):
    ctx = ClassifierContext(_settings(model_path=str(tmp_path / "missing.tflite")), labels=LABELS)
    with pytest.raises(ModelLoadError):
        ctx.start()
    assert not ctx.running


def test_labels_loaded_from_file(tmp_path):
    p = tmp_path / "labels.txt"
    p.write_text("cat\ndog\nbird\n", encoding="utf-8")
    with ClassifierContext(_settings(labels_path=str(p)), model=FakeModel()) as ctx:
        assert list(ctx.labels) == LABELS


def test_shutdown_waits_for_in_flight_frame_before_closing_model(make_frame):
    model = FakeModel()
    ctx = ClassifierContext(_settings(), model=model, labels=LABELS).start()
    model.entered.clear()
    model.gate = threading.Event()
    ctx.submit(make_frame())
    assert model.entered.wait(2)

    t = threading.Thread(target=ctx.shutdown)
    t.start()
    t.join(0.2)
    assert t.is_alive()
    assert not model.closed

    model.gate.set()
    t.join(2)
    assert not t.is_alive()
    assert model.events[-1] == "close"
    assert model.events[-2] == "run-end"


class _RecordingPipeline:
    def __init__(self):
        self.frames = []

    def submit(self, frame):
        self.frames.append(frame)
        return True


class _ClearedAfterFirstRead(ClassifierContext):
    """pipeline reads as None after its first read, as if shutdown() ran in between."""

    @property
    def pipeline(self):
        pipe, self._pipe = self._pipe, None
        return pipe

    @pipeline.setter
    def pipeline(self, value):
        self._pipe = value


def test_submit_racing_shutdown_uses_a_single_pipeline_read(make_frame):
    ctx = _ClearedAfterFirstRead(_settings(), model=FakeModel(), labels=LABELS)
    pipe = _RecordingPipeline()
    ctx.pipeline = pipe
    frame = make_frame()
    assert ctx.submit(frame) is True
    assert pipe.frames == [frame]

    late = ReleaseCounter()
    assert ctx.submit(make_frame(counter=late)) is False
    assert late.count == 1
