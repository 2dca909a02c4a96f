"""
Produccion API — Clients Route
==============================

What:  GET /api/Clientes/activos, the active clients for the product and
       scheduling screens, ordered by name.
"""

from typing import List

from fastapi import APIRouter, Depends

from produccion.dependencies import get_store
from produccion.schemas.catalogo import ClienteActivo
from produccion.schemas.common import ErrorResponse
from produccion.services.store_base import DataStore

router = APIRouter(prefix="/api/Clientes", tags=["Clientes"])


@router.get(
    "/activos",
    response_model=List[ClienteActivo],
    responses={500: {"description": "Database error", "model": ErrorResponse}},
    summary="List active clients",
)
async def list_active_clients(store: DataStore = Depends(get_store)) -> List[ClienteActivo]:
    return await store.list_active_clients()
