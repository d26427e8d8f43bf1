"""
Request pipeline for prediction and history retrieval.

`predict` runs admission -> inference -> record construction -> persistence
and stops at the first failing stage. Neither operation raises: every result,
good or bad, comes back as an Outcome for the route to render.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List
import logging
import time
import uuid

from ..errors import (
    HistoryRetrievalFailure,
    Outcome,
    PayloadTooLarge,
    PredictionFailure,
)
from ..schemas import HistoryEntry, PredictionOut
from .classifier import classify
from .model_gateway import ModelGateway
from .persistence import PredictionRecord, PredictionStore

logger = logging.getLogger("prediction-api")

PREDICT_MESSAGE = "Model is predicted successfully"
HISTORIES_MESSAGE = "Histories retrieved successfully"


def new_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    # e.g. 2024-05-01T10:11:12.345Z
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PredictionPipeline:
    def __init__(
        self,
        gateway: ModelGateway,
        store: PredictionStore,
        max_image_bytes: int = 1_000_000,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.gateway = gateway
        self.store = store
        self.max_image_bytes = max_image_bytes
        self.id_factory = id_factory
        self.clock = clock

    def predict(self, image_bytes: bytes) -> Outcome:
        size = len(image_bytes)
        logger.info("predict received payload_bytes=%d", size)
        if size > self.max_image_bytes:
            logger.warning("predict rejected payload_bytes=%d limit=%d", size, self.max_image_bytes)
            return Outcome.failure(PayloadTooLarge(self.max_image_bytes))

        start = time.time()
        try:
            score = self.gateway.predict(image_bytes)
            label, suggestion = classify(score)
        except Exception:
            logger.exception("predict failed stage=inference payload_bytes=%d", size)
            return Outcome.failure(PredictionFailure())

        try:
            record = PredictionRecord(
                id=self.id_factory(),
                result=label,
                suggestion=suggestion,
                created_at=self.clock(),
            )
            data = PredictionOut(**record.to_dict()).model_dump()
        except Exception:
            logger.exception("predict failed stage=record result=%s", label)
            return Outcome.failure(PredictionFailure())

        try:
            self.store.save(record)
        except Exception:
            logger.exception("predict failed stage=persistence id=%s", record.id)
            return Outcome.failure(PredictionFailure())

        elapsed_ms = (time.time() - start) * 1000.0
        logger.info(
            "predict id=%s result=%s score=%.2f latency_ms=%.1f",
            record.id,
            label,
            score,
            elapsed_ms,
        )

        return Outcome.success(PREDICT_MESSAGE, data, status_code=201)

    def histories(self) -> Outcome:
        # no pagination: every stored record is returned
        try:
            entries: List[dict] = [
                HistoryEntry(id=doc_id, history=record.to_dict()).model_dump()
                for doc_id, record in self.store.list_all()
            ]
        except Exception:
            logger.exception("histories failed stage=read")
            return Outcome.failure(HistoryRetrievalFailure())

        logger.info("histories count=%d", len(entries))
        return Outcome.success(HISTORIES_MESSAGE, entries, status_code=200)
