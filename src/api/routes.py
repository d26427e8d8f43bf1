from __future__ import annotations

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from .deps import get_pipeline
from .errors import Outcome, render
from .schemas import FailEnvelope, HealthEnvelope, HistoriesEnvelope, PredictEnvelope
from .services.pipeline import PredictionPipeline

router = APIRouter(tags=["predict"])

FAIL = {"model": FailEnvelope}


@router.get("/health", response_model=HealthEnvelope)
def health(request: Request):
    ready = getattr(request.app.state, "pipeline", None) is not None
    return render(Outcome.success("Service is healthy", {"ready": ready}))


@router.post(
    "/predict",
    status_code=201,
    response_model=PredictEnvelope,
    responses={400: FAIL, 413: FAIL},
)
async def predict(
    image: UploadFile = File(...),
    pipeline: PredictionPipeline = Depends(get_pipeline),
):
    payload = await image.read()
    outcome = await run_in_threadpool(pipeline.predict, payload)
    return render(outcome)


@router.get(
    "/predict/histories",
    response_model=HistoriesEnvelope,
    responses={500: FAIL},
)
async def histories(pipeline: PredictionPipeline = Depends(get_pipeline)):
    outcome = await run_in_threadpool(pipeline.histories)
    return render(outcome)
