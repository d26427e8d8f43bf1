from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.db.models import Prediction
from ..errors import StorageReadError, StorageWriteError


@dataclass(frozen=True)
class PredictionRecord:
    id: str
    result: str
    suggestion: str
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "result": self.result,
            "suggestion": self.suggestion,
            "createdAt": self.created_at,
        }


class PredictionStore:
    """Write-once store of prediction records, addressed by record id."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, record: PredictionRecord) -> None:
        row = Prediction(
            id=record.id,
            result=record.result,
            suggestion=record.suggestion,
            created_at=record.created_at,
        )
        try:
            with self.session_factory() as db:
                db.add(row)
                db.commit()
        except SQLAlchemyError as e:
            raise StorageWriteError(f"Data storage failed for id={record.id}") from e

    def list_all(self) -> List[Tuple[str, PredictionRecord]]:
        try:
            with self.session_factory() as db:
                rows = db.query(Prediction).all()
                return [(row.id, _row_to_record(row)) for row in rows]
        except SQLAlchemyError as e:
            raise StorageReadError("Reading predictions failed") from e


def _row_to_record(row: Prediction) -> PredictionRecord:
    return PredictionRecord(
        id=row.id,
        result=row.result,
        suggestion=row.suggestion,
        created_at=row.created_at,
    )
