"""
Produccion API — DataStore Selection
====================================

What:  Builds the one DataStore the process uses for its whole lifetime.
How:   Database credentials present (DATABASE_URL, DB_* variables or the
       appsettings.json connection string) → LiveDataStore over a fresh
       ConnectionManager. Otherwise → FixtureDataStore.
When:  Once, from the application lifespan.
"""

import logging
from datetime import datetime
from typing import Callable

from produccion.config import Settings
from produccion.database import ConnectionManager
from produccion.services.fixture_store import FixtureDataStore
from produccion.services.live_store import LiveDataStore
from produccion.services.store_base import DataStore

logger = logging.getLogger(__name__)


def create_data_store(
    settings: Settings,
    clock: Callable[[], datetime] = datetime.now,
) -> DataStore:
    manager = ConnectionManager(settings)
    if not manager.configured:
        logger.warning(
            "No database credentials configured; serving fixture data (mock mode)"
        )
        return FixtureDataStore()

    logger.info("Database credentials found; using live SQL Server store")
    return LiveDataStore(
        manager,
        schedule_procedure=settings.schedule_procedure,
        clock=clock,
    )
