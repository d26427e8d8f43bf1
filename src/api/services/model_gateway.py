from __future__ import annotations
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Tuple
import threading

import joblib
import numpy as np
from PIL import Image

from ..errors import ModelInferenceError, ModelLoadError


@dataclass(frozen=True)
class ModelSpec:
    model_path: Path                          # joblib artifact
    input_size: Tuple[int, int] = (224, 224)  # width, height


class ModelGateway:
    """
    Wraps the loaded model handle behind a single inference call.

    The handle is shared by every request and treated as read-only. Calls are
    serialized with a lock because the runtime behind the handle is not
    assumed to be safe for concurrent use.
    """
    def __init__(self, handle: Any, input_size: Tuple[int, int] = (224, 224)):
        self.handle = handle
        self.input_size = input_size
        self._lock = threading.Lock()

    def preprocess(self, image_bytes: bytes) -> np.ndarray:
        # decode -> RGB -> nearest-neighbour resize -> float batch (1, H, W, 3)
        img = Image.open(BytesIO(image_bytes)).convert("RGB")
        img = img.resize(self.input_size, Image.NEAREST)
        arr = np.asarray(img, dtype=np.float32)
        return np.expand_dims(arr, 0)

    def predict(self, image_bytes: bytes) -> float:
        """Return the model confidence for `image_bytes` as a percentage."""
        try:
            batch = self.preprocess(image_bytes)
        except Exception as e:
            raise ModelInferenceError(f"Could not decode image: {e}") from e

        try:
            with self._lock:
                output = self.handle.predict(batch)
            scores = np.asarray(output, dtype=np.float64).ravel()
        except Exception as e:
            raise ModelInferenceError(f"Model execution failed: {e}") from e

        if scores.size == 0:
            raise ModelInferenceError("Model returned an empty output")
        return float(scores.max()) * 100.0


def load_gateway(spec: ModelSpec) -> ModelGateway:
    try:
        handle = joblib.load(spec.model_path)
    except Exception as e:
        raise ModelLoadError(f"Model loading failed: {spec.model_path}") from e
    return ModelGateway(handle, input_size=spec.input_size)
