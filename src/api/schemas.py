from __future__ import annotations
from typing import Literal, List
from pydantic import BaseModel


Label = Literal["Cancer", "Non-cancer"]


class PredictionOut(BaseModel):
    id: str
    result: Label
    suggestion: str
    createdAt: str  # ISO-8601, UTC, millisecond precision


class HistoryItem(BaseModel):
    result: Label
    createdAt: str
    suggestion: str
    id: str


class HistoryEntry(BaseModel):
    id: str
    history: HistoryItem


class HealthOut(BaseModel):
    ready: bool


class PredictEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: str
    data: PredictionOut


class HistoriesEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: str
    data: List[HistoryEntry]


class HealthEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: str
    data: HealthOut


class FailEnvelope(BaseModel):
    status: Literal["fail"] = "fail"
    message: str
