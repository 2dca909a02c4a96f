"""
Produccion API — Shared Schemas
===============================

What:  Base model, error and health response models, and the `estado`
       filter parser shared by the listing endpoints.
How:   JSON keys follow the plant database's naming (`Nombre`, `Activo`...),
       so fields are snake_case in Python with the wire name as alias.
       populate_by_name lets code build models with the Python names.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from produccion.exceptions import ValidationError


class ApiModel(BaseModel):
    """Base for every request/response model of the API."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(ApiModel):
    """
    What:  Liveness report. Always answered with HTTP 200.
    Who:   Returned by GET /health for monitoring and the weighing stations.
    """
    ok: bool = Field(default=True, description="Process is up and serving requests")
    db_connected: bool = Field(alias="dbConnected", description="SELECT 1 succeeded")
    mode: str = Field(description="Data source: live or fixture")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since service started")


class MensajeResponse(ApiModel):
    """Plain confirmation message."""
    mensaje: str


_ESTADOS = {
    "activo": True,
    "activos": True,
    "1": True,
    "true": True,
    "inactivo": False,
    "inactivos": False,
    "0": False,
    "false": False,
}


def parse_estado(estado: Optional[str]) -> Optional[bool]:
    """
    Translate the `estado` query parameter into an Activo filter.

    None, "" and "todos" mean no filter. Unknown values are a client error.
    """
    if estado is None:
        return None
    value = estado.strip().lower()
    if value in ("", "todos"):
        return None
    if value not in _ESTADOS:
        raise ValidationError(
            message=f"Estado '{estado}' no válido. Use activo, inactivo o todos.",
            field="estado",
        )
    return _ESTADOS[value]
