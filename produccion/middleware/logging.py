"""
Produccion API — Access Log Middleware
======================================

What:  One log line per HTTP request: method, path, status, duration, and
       the batch (Consecutivo) the request concerned, when there is one.
How:   Logger "produccion.access". Level follows the status class:
       5xx → ERROR, 4xx → WARNING, everything else → INFO.
       GET /health is polled by the stations and is not logged.

The batch comes from the `consecutivo` query parameter (detallelote, estado)
or from request.state.consecutivo, which body-driven routes such as /peso set.
Request bodies themselves are never logged (weights, photos and passwords
travel there).
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from produccion.middleware.request_id import request_id_var

logger = logging.getLogger("produccion.access")

QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def batch_for(request: Request) -> Optional[str]:
    """Consecutivo named by the request, if any."""
    consecutivo = getattr(request.state, "consecutivo", None)
    if consecutivo is not None:
        return str(consecutivo)
    return request.query_params.get("consecutivo") or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("")
        status = response.status_code
        lote = batch_for(request)
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s]%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            f" lote={lote}" if lote else "",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "consecutivo": lote,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response
