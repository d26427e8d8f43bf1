import threading

import joblib
import numpy as np
import pytest

from src.api.errors import ModelInferenceError, ModelLoadError
from src.api.services.model_gateway import ModelGateway, ModelSpec, load_gateway

from .conftest import BrokenHandle, FakeHandle, make_image


class ShapeRecorder:
    def __init__(self):
        self.shape = None
        self.dtype = None

    def predict(self, batch):
        self.shape = batch.shape
        self.dtype = batch.dtype
        return np.array([[0.25, 0.75]])


class NonReentrantHandle:
    """Fails if two predictions overlap."""
    def __init__(self):
        self.busy = threading.Lock()

    def predict(self, batch):
        if not self.busy.acquire(blocking=False):
            raise RuntimeError("concurrent call")
        try:
            threading.Event().wait(0.01)
            return np.array([0.4])
        finally:
            self.busy.release()


def test_predict_returns_percentage():
    gw = ModelGateway(FakeHandle(score=0.8))
    assert gw.predict(make_image()) == pytest.approx(80.0)


def test_input_is_resized_batch_of_rgb_floats():
    handle = ShapeRecorder()
    score = ModelGateway(handle).predict(make_image(size=(500, 300), fmt="JPEG"))
    assert handle.shape == (1, 224, 224, 3)
    assert handle.dtype == np.float32
    assert score == pytest.approx(75.0)


def test_undecodable_image_raises_inference_error():
    handle = FakeHandle()
    with pytest.raises(ModelInferenceError):
        ModelGateway(handle).predict(b"definitely not an image")
    assert handle.calls == 0


def test_runtime_failure_raises_inference_error():
    with pytest.raises(ModelInferenceError):
        ModelGateway(BrokenHandle()).predict(make_image())


def test_concurrent_calls_are_serialized():
    gw = ModelGateway(NonReentrantHandle())
    image = make_image()
    errors = []

    def worker():
        try:
            gw.predict(image)
        except ModelInferenceError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []


def test_load_gateway_from_joblib(tmp_path):
    path = tmp_path / "model.joblib"
    joblib.dump(FakeHandle(score=0.3), path)
    gw = load_gateway(ModelSpec(model_path=path))
    assert gw.predict(make_image()) == pytest.approx(30.0)


def test_load_gateway_missing_artifact(tmp_path):
    with pytest.raises(ModelLoadError):
        load_gateway(ModelSpec(model_path=tmp_path / "missing.joblib"))
