from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.config.settings import (
    CORS_ORIGINS,
    HOST,
    LOG_LEVEL,
    MAX_IMAGE_BYTES,
    MODEL_PATH,
    PORT,
)
from src.db.base import Base
from src.db.session import SessionLocal, engine
import src.db.models  # noqa: F401  registers tables
from .errors import ApiError, PayloadTooLarge, UnclassifiedTransportError, render_error
from .routes import router
from .services.model_gateway import ModelGateway, ModelSpec, load_gateway
from .services.persistence import PredictionStore
from .services.pipeline import PredictionPipeline

# Ensure .env is loaded before we read settings/environment-dependent behavior
load_dotenv()

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("prediction-api")


def create_store() -> PredictionStore:
    Base.metadata.create_all(bind=engine)
    return PredictionStore(SessionLocal)


class MaxBodySizeMiddleware:
    """
    Caps the request body at `max_body_bytes`.

    A declared Content-Length over the cap is answered with 413 before the
    body is touched. Without one (chunked uploads) the bytes are counted as
    they arrive and reading stops once the cap is passed.
    """
    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cl = Headers(scope=scope).get("content-length")
        if cl is not None:
            try:
                declared = int(cl)
            except ValueError:
                declared = None
            if declared is not None and declared > self.max_body_bytes:
                logger.warning("request rejected content_length=%d limit=%d", declared, self.max_body_bytes)
                response = render_error(PayloadTooLarge(self.max_body_bytes))
                await response(scope, receive, send)
                return

        received = 0
        started = False

        async def tracked_send(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning("request rejected streamed_bytes=%d limit=%d", received, self.max_body_bytes)
                    # rendered as the 413 envelope by the HTTPException handler
                    raise HTTPException(status_code=413, detail=PayloadTooLarge(self.max_body_bytes).message)
            return message

        try:
            await self.app(scope, limited_receive, tracked_send)
        except HTTPException as exc:
            if exc.status_code != 413 or started:
                raise
            await render_error(PayloadTooLarge(self.max_body_bytes))(scope, receive, send)


def create_app(
    gateway: Optional[ModelGateway] = None,
    store: Optional[PredictionStore] = None,
    max_image_bytes: int = MAX_IMAGE_BYTES,
) -> FastAPI:
    """
    Build the API. Collaborators that are not passed in are created at
    startup: the model is loaded from MODEL_PATH and the store opens
    DATABASE_URL.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gw = gateway
        if gw is None:
            gw = load_gateway(ModelSpec(model_path=Path(MODEL_PATH)))
            logger.info("model loaded path=%s", MODEL_PATH)
        st = store if store is not None else create_store()
        app.state.pipeline = PredictionPipeline(gw, st, max_image_bytes=max_image_bytes)
        yield
        app.state.pipeline = None

    app = FastAPI(title="Cancer Prediction API", version="1.0.0", lifespan=lifespan)

    # Optional safety: limit request body sizes
    app.add_middleware(MaxBodySizeMiddleware, max_body_bytes=max_image_bytes)

    # ---- CORS (outermost middleware) ----
    origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---- Consistent error responses ----
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.info("transport error status=%d path=%s detail=%s", exc.status_code, request.url.path, exc.detail)
        return render_error(UnclassifiedTransportError(str(exc.detail), exc.status_code))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("invalid request path=%s errors=%s", request.url.path, exc.errors())
        return render_error(UnclassifiedTransportError("Invalid request", 422))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error path=%s", request.url.path)
        return render_error(ApiError())

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
