"""
Produccion API — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by DataStore implementations, the unit of work and middleware;
       caught by the global handlers.

Exception Hierarchy:
    ProduccionError (base)
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── AuthenticationError   → 401 Unauthorized (API key or credentials)
    ├── NotFoundError         → 404 Not Found
    ├── ConflictError         → 409 Conflict (duplicate unique field)
    └── DatabaseError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ProduccionError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for 4xx errors)
    """

    def __init__(
        self,
        message: str = "Ocurrió un error inesperado",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ProduccionError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, malformed values, inactive unit of measure,
             undecodable photo payload.
    HTTP:    400 Bad Request. No store mutation has happened.
    """

    def __init__(
        self,
        message: str = "Datos inválidos",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(ProduccionError):
    """
    Raised for a missing/invalid API key or bad login credentials.

    HTTP:    401 Unauthorized. The message never says which part was wrong.
    """

    def __init__(
        self,
        message: str = "Credenciales inválidas",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ProduccionError):
    """
    Raised when a lookup or update target does not exist.

    When:    Unknown ingredient id on update, unknown finished product code,
             weigh-in that matches no pending detail line.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "registro",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"No se encontró {resource}"
        if resource_id:
            message = f"No se encontró {resource} '{resource_id}'"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ProduccionError):
    """
    Raised when a unique field would be duplicated.

    When:    Ingredient name already used by another ingredient, finished
             product code already registered, unique constraint violation.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "El registro ya existe",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ProduccionError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost, query failure, deadlock, missing configuration.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "Error al consultar la base de datos",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
