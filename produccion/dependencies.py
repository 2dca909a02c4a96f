"""
Produccion API — Route Dependencies
===================================

What:  FastAPI dependencies shared by the route modules.
How:   The lifespan stores the selected DataStore on `app.state.store`;
       `get_store` hands it to handlers via `Depends(get_store)`. Tests
       override it with `app.dependency_overrides[get_store]`.
"""

from fastapi import Request

from produccion.exceptions import DatabaseError
from produccion.services.store_base import DataStore


def get_store(request: Request) -> DataStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise DatabaseError(
            message="Data store not initialized",
            context={"reason": "lifespan_not_started"},
        )
    return store
