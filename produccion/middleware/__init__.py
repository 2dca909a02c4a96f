# Middleware package init
"""
Produccion API — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [API Key] → [GZip/CORS] → Route

    1. Request ID: correlation id for every log line of the request
    2. Access Log: method, path, status and duration, including the 401s
       produced by the API key gate
    3. API Key: rejects requests without a matching x-api-key header when
       API_KEY is configured (/health and the docs are exempt)
"""
