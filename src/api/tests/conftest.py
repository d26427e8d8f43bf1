from io import BytesIO

import numpy as np
import pytest
from PIL import Image
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src.api.app import create_app
from src.api.errors import StorageReadError, StorageWriteError
from src.api.services.model_gateway import ModelGateway
from src.api.services.persistence import PredictionStore
from src.db.base import Base
from src.db.session import make_engine
import src.db.models  # noqa: F401


class FakeHandle:
    """Stands in for the loaded model: always returns `score` (0..1)."""
    def __init__(self, score: float = 0.9):
        self.score = score
        self.calls = 0

    def predict(self, batch):
        self.calls += 1
        return np.array([[self.score]], dtype=np.float32)


class BrokenHandle:
    def predict(self, batch):
        raise RuntimeError("bad input shape")


class MemoryStore:
    def __init__(self, fail_save: bool = False, fail_read: bool = False):
        self.docs = {}
        self.fail_save = fail_save
        self.fail_read = fail_read
        self.save_calls = 0

    def save(self, record):
        self.save_calls += 1
        if self.fail_save:
            raise StorageWriteError("backend unavailable")
        self.docs[record.id] = record

    def list_all(self):
        if self.fail_read:
            raise StorageReadError("backend unavailable")
        return list(self.docs.items())


def make_image(size=(32, 32), fmt="PNG") -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=(200, 120, 90)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return make_image()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'predictions.db'}")
    Base.metadata.create_all(bind=engine)
    yield PredictionStore(sessionmaker(bind=engine))
    engine.dispose()


@pytest.fixture
def make_client():
    clients = []

    def _make(handle=None, store=None, **kwargs):
        gateway = ModelGateway(handle if handle is not None else FakeHandle())
        client = TestClient(
            create_app(gateway=gateway, store=store if store is not None else MemoryStore(), **kwargs)
        )
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.__exit__(None, None, None)
