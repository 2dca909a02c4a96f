"""
Produccion API Server
=====================

Serves the production-scheduling and weighing API with uvicorn.

Usage:
    python -m produccion

Listens on HOST:PORT (default 0.0.0.0:3000). Without database credentials
the server answers from fixture records (mock mode).
"""

import uvicorn

from produccion.config import settings


def main() -> None:
    uvicorn.run(
        "produccion.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    main()
