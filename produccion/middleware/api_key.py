"""
Produccion API — API Key Gate
=============================

What:  Optional shared-secret check on every request.
How:   When API_KEY is configured, requests must send the same value in the
       `x-api-key` header. Missing or different key → 401 in the standard
       error body. /health and the OpenAPI docs stay open so probes and
       developers can reach them. With no API_KEY configured the gate is
       not installed at all (see main.create_app).
"""

import hmac
import logging
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from produccion.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
DEFAULT_EXEMPT_PATHS = ("/health", "/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json")


class APIKeyMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        api_key: str,
        exempt_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self._api_key = api_key.encode("utf-8")
        self._exempt = frozenset(exempt_paths or DEFAULT_EXEMPT_PATHS)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # CORS preflight carries no custom headers
        if request.method == "OPTIONS" or request.url.path in self._exempt:
            return await call_next(request)

        supplied = request.headers.get(API_KEY_HEADER, "")
        if not hmac.compare_digest(supplied.encode("utf-8"), self._api_key):
            rid = request_id_var.get("")
            logger.warning(
                "[%s] Rejected %s %s: %s API key",
                rid,
                request.method,
                request.url.path,
                "missing" if not supplied else "invalid",
            )
            return JSONResponse(
                status_code=401,
                content={
                    "error": "unauthorized",
                    "message": "API key inválida o ausente",
                    "request_id": rid,
                },
            )

        return await call_next(request)
