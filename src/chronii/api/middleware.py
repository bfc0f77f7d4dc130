"""CORS, request logging and the ``ChroniiError`` → HTTP status mapping."""

import logging
import time
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response, status  # type: ignore[import-untyped]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from chronii.api.models import ErrorResponse
from chronii.core.config import ConfigManager
from chronii.core.errors import ChroniiError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "validation_error"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "not_found"),
    StorageError: (status.HTTP_503_SERVICE_UNAVAILABLE, "storage_error"),
}


def setup_cors(app: FastAPI, config: ConfigManager) -> None:
    """Allow the origins in ``api.cors.origins`` unless ``api.cors.enabled`` is false."""
    if not config.get("api.cors.enabled", True):
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get("api.cors.origins", []),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


async def chronii_error_handler(request: Request, exc: ChroniiError) -> JSONResponse:
    """Map core errors to HTTP status codes."""
    status_code, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, "error"
    for error_type, mapped in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code, error_code = mapped
            break

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    body = ErrorResponse(detail=str(exc), error_code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def setup_middleware(app: FastAPI, config: ConfigManager) -> None:
    """Install middleware and error handlers on ``app``."""
    setup_cors(app, config)
    app.middleware("http")(log_requests)
    app.add_exception_handler(ChroniiError, chronii_error_handler)
