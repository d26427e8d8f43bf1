from fastapi import Request

from .services.pipeline import PredictionPipeline


def get_pipeline(request: Request) -> PredictionPipeline:
    # built once per process by the app lifespan
    return request.app.state.pipeline
