"""
HTTP middleware and the catch-all exception handler.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from careadmin.core.config import get_settings
from careadmin.core.logging import request_id_var

REQUEST_ID_HEADER = "X-Request-Id"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"
SLOW_REQUEST_THRESHOLD_MS = 1000

logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate or mint a request id and log one access line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, "").strip() or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers[RESPONSE_TIME_HEADER] = str(int(elapsed_ms))
        logger.info(
            "HTTP %s %s responded %s in %.4f ms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={"request_id": request_id},
        )
        if elapsed_ms >= SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "Slow request detected: %s %s took %.0f ms",
                request.method,
                request.url.path,
                elapsed_ms,
                extra={"request_id": request_id},
            )
        return response


async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    """Render any escaped exception as problem JSON without leaking internals in production."""
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    logger.error(
        "Unhandled exception occurred. RequestId: %s, Path: %s, Method: %s",
        request_id,
        request.url.path,
        request.method,
        exc_info=exc,
        extra={"request_id": request_id},
    )

    body = {
        "type": "https://tools.ietf.org/html/rfc7231#section-6.6.1",
        "title": "An unexpected error occurred",
        "status": HTTPStatus.INTERNAL_SERVER_ERROR.value,
        "instance": request.url.path,
        "requestId": request_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if get_settings().is_development:
        body["detail"] = str(exc)
        body["exceptionType"] = f"{type(exc).__module__}.{type(exc).__qualname__}"
    else:
        body["detail"] = "An internal server error occurred. Please try again later."

    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content=body,
        media_type="application/problem+json",
        headers={REQUEST_ID_HEADER: request_id},
    )


__all__ = [
    "REQUEST_ID_HEADER",
    "RESPONSE_TIME_HEADER",
    "RequestIdMiddleware",
    "handle_unhandled_exception",
]
