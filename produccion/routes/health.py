"""
Produccion API — Health Check Route
===================================

What:  Liveness probe for monitoring and the weighing stations.
How:   Pings the DataStore (SELECT 1 in live mode) and reports the mode.
       Always answers 200; a dead database shows up as dbConnected=false.
"""

import logging
import time

from fastapi import APIRouter, Depends

from produccion import __version__
from produccion.dependencies import get_store
from produccion.schemas.common import HealthResponse
from produccion.services.store_base import DataStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(store: DataStore = Depends(get_store)) -> HealthResponse:
    try:
        db_connected = await store.ping()
    except Exception as e:
        db_connected = False
        logger.warning("Health check: database unreachable: %s", e)

    return HealthResponse(
        db_connected=db_connected,
        mode=store.mode,
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
