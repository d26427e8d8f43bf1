"""
Error taxonomy and response envelopes.

Components below the pipeline raise their own exceptions (model, storage).
The pipeline re-classifies them into ApiError subclasses and returns an
Outcome; `render` is the single place an Outcome becomes an HTTP response.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi.responses import JSONResponse


# ---- component-level errors ----
class ModelLoadError(RuntimeError):
    pass


class ModelInferenceError(RuntimeError):
    pass


class StorageWriteError(RuntimeError):
    pass


class StorageReadError(RuntimeError):
    pass


# ---- classified errors (what the caller sees) ----
class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class PayloadTooLarge(ApiError):
    status_code = 413

    def __init__(self, limit: int):
        super().__init__(f"Payload content length exceeds maximum allowed: {limit}")


class PredictionFailure(ApiError):
    status_code = 400
    message = "Terjadi kesalahan dalam melakukan prediksi"


class HistoryRetrievalFailure(ApiError):
    status_code = 500
    message = "Error occurred while fetching history"


class UnclassifiedTransportError(ApiError):
    pass


@dataclass(frozen=True)
class Outcome:
    status_code: int
    message: str
    data: Any = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, message: str, data: Any, status_code: int = 200) -> "Outcome":
        return cls(status_code=status_code, message=message, data=data)

    @classmethod
    def failure(cls, error: ApiError) -> "Outcome":
        return cls(status_code=error.status_code, message=error.message, error=error)


def success_envelope(message: str, data: Any) -> dict:
    return {"status": "success", "message": message, "data": data}


def failure_envelope(message: str) -> dict:
    return {"status": "fail", "message": message}


def render(outcome: Outcome) -> JSONResponse:
    if outcome.ok:
        content = success_envelope(outcome.message, outcome.data)
    else:
        content = failure_envelope(outcome.message)
    return JSONResponse(status_code=outcome.status_code, content=content)


def render_error(error: ApiError) -> JSONResponse:
    return render(Outcome.failure(error))
