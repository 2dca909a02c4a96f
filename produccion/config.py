"""
Produccion API — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory, the connection manager and middleware.
When:  Loaded once at module import time; validated before the app starts.

Database credentials may come from two places:
    1. DB_* environment variables (or a full DATABASE_URL override)
    2. The legacy .NET `appsettings.json`, key ConnectionStrings.DefaultConnection,
       written in ADO.NET `Key=Value;` syntax
    When neither provides host, database, user and password the service runs
    in fixture mode (see services/factory.py).
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# ADO.NET keys (lower-cased, spaces removed) → Settings field names
_ADO_KEYWORDS = {
    "server": "db_host",
    "datasource": "db_host",
    "address": "db_host",
    "addr": "db_host",
    "database": "db_name",
    "initialcatalog": "db_name",
    "userid": "db_user",
    "uid": "db_user",
    "user": "db_user",
    "password": "db_password",
    "pwd": "db_password",
    "encrypt": "db_encrypt",
    "trustservercertificate": "db_trust_server_certificate",
}

_PROCEDURE_NAME = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)?$")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development. Without
    database credentials the API still starts and serves fixture records.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Full SQLAlchemy URL; when set it wins over every DB_* field
    database_url: Optional[str] = Field(default=None)

    db_host: Optional[str] = Field(default=None)
    db_port: int = Field(default=1433, ge=1, le=65535)
    db_name: Optional[str] = Field(default=None)
    db_user: Optional[str] = Field(default=None)
    db_password: Optional[str] = Field(default=None)
    db_encrypt: bool = Field(default=True)
    db_trust_server_certificate: bool = Field(default=False)
    db_driver: str = Field(default="ODBC Driver 18 for SQL Server")

    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=5, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Legacy .NET configuration file read when DB_* variables are absent
    appsettings_path: str = Field(default="appsettings.json")

    # Stored procedure that fans a schedule request out into batches
    schedule_procedure: str = Field(default="dbo.sp_ProgramarLotes")

    # ── Security ──────────────────────────────────────────────────────────
    # Shared secret expected in the x-api-key header; empty disables the check
    api_key: Optional[str] = Field(default=None)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    environment: str = Field(default="development")

    # ── Logging ───────────────────────────────────────────────────────────
    # When unset: DEBUG in development, INFO in production
    log_level: Optional[str] = Field(default=None)
    # Log file written next to stdout output; empty string disables it
    log_file: str = Field(default="app.log")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Optional[str]) -> Optional[str]:
        """Ensures log level is a valid Python logging level name."""
        if v is None or v == "":
            return None
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("schedule_procedure")
    @classmethod
    def validate_schedule_procedure(cls, v: str) -> str:
        """The procedure name is interpolated into EXEC, so only plain identifiers pass."""
        if not _PROCEDURE_NAME.match(v):
            raise ValueError(f"Invalid schedule_procedure '{v}'. Use 'schema.name' or 'name'.")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level
        return "INFO" if self.is_production else "DEBUG"

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # DB_HOST and db_host both work
        "extra": "ignore",
    }

    def connection_fields(self) -> Dict[str, object]:
        """
        What:  Resolves host/database/user/password and TLS flags.
        How:   DB_* fields first; any gap is filled from appsettings.json.
        Returns: dict keyed by Settings field names (values may be None).
        """
        fields: Dict[str, object] = {
            "db_host": self.db_host,
            "db_port": self.db_port,
            "db_name": self.db_name,
            "db_user": self.db_user,
            "db_password": self.db_password,
            "db_encrypt": self.db_encrypt,
            "db_trust_server_certificate": self.db_trust_server_certificate,
        }
        required = ("db_host", "db_name", "db_user", "db_password")
        if all(fields[name] for name in required):
            return fields

        legacy = load_appsettings_connection(self.appsettings_path)
        for name, value in legacy.items():
            if name in required and fields.get(name):
                continue
            fields[name] = value
        return fields

    def has_database_credentials(self) -> bool:
        """True when a live connection can be attempted."""
        if self.database_url:
            return True
        fields = self.connection_fields()
        return all(fields[name] for name in ("db_host", "db_name", "db_user", "db_password"))


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"true", "yes", "1", "mandatory", "strict"}


def parse_ado_connection_string(connection_string: str) -> Dict[str, object]:
    """
    Parse an ADO.NET connection string into Settings field values.

    Example:
        "Server=tcp:sql01,1433;Database=Produccion;User Id=app;Password=x;Encrypt=True"
        → {"db_host": "sql01", "db_port": 1433, "db_name": "Produccion",
           "db_user": "app", "db_password": "x", "db_encrypt": True}

    Unknown keys are ignored. Values may not contain ';'.
    """
    result: Dict[str, object] = {}
    for part in connection_string.split(";"):
        if "=" not in part:
            continue
        key, _, value = part.partition("=")
        field = _ADO_KEYWORDS.get(key.strip().lower().replace(" ", ""))
        if field is None:
            continue
        value = value.strip()

        if field == "db_host":
            if value.lower().startswith("tcp:"):
                value = value[4:]
            host, _, port = value.partition(",")
            result["db_host"] = host.strip()
            if port.strip().isdigit():
                result["db_port"] = int(port.strip())
        elif field in ("db_encrypt", "db_trust_server_certificate"):
            result[field] = _as_bool(value)
        else:
            result[field] = value
    return result


def load_appsettings_connection(path: str) -> Dict[str, object]:
    """
    Read ConnectionStrings.DefaultConnection from a .NET appsettings.json.

    Returns an empty dict when the file is missing or has no connection
    string; a malformed file is logged and treated the same way.
    """
    file_path = Path(path)
    if not file_path.is_file():
        return {}
    try:
        data = json.loads(file_path.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as e:
        logger.error("Unable to read database configuration from %s: %s", path, e)
        return {}

    strings = data.get("ConnectionStrings") if isinstance(data, dict) else None
    if not isinstance(strings, dict):
        return {}
    connection_string = strings.get("DefaultConnection")
    if not connection_string:
        return {}
    logger.debug("Database configuration loaded from %s", path)
    return parse_ado_connection_string(connection_string)


# Singleton instance, imported by the application factory
settings = Settings()
