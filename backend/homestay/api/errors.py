"""Translate service-layer errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from homestay.services.errors import BookingEngineError

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers so routers can let service errors propagate.

    The body matches FastAPI's own ``{"detail": ...}`` shape.
    """

    @app.exception_handler(BookingEngineError)
    async def booking_engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
        logger.info(
            "%s %s -> %d %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            type(exc).__name__,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
