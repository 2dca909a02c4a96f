"""
Produccion API — Catalog Routes
===============================

What:  Read-only listings of categories, suppliers and units of measure.
How:   `estado` accepts activo, inactivo or todos (default: no filter).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from produccion.dependencies import get_store
from produccion.schemas.catalogo import CategoriaItem, ProveedorItem, UnidadMedidaItem
from produccion.schemas.common import ErrorResponse, parse_estado
from produccion.services.store_base import DataStore

router = APIRouter(prefix="/api", tags=["Catalogos"])

_ERRORS = {
    400: {"description": "Invalid estado filter", "model": ErrorResponse},
    500: {"description": "Database error", "model": ErrorResponse},
}


@router.get(
    "/Categorias/listado",
    response_model=List[CategoriaItem],
    responses=_ERRORS,
    summary="List ingredient categories",
)
async def list_categories(
    estado: Optional[str] = Query(default=None, description="activo | inactivo | todos"),
    store: DataStore = Depends(get_store),
) -> List[CategoriaItem]:
    return await store.list_categories(activo=parse_estado(estado))


@router.get(
    "/Proveedores/listado",
    response_model=List[ProveedorItem],
    responses=_ERRORS,
    summary="List suppliers",
)
async def list_suppliers(
    nombre: Optional[str] = Query(default=None, description="Name substring"),
    estado: Optional[str] = Query(default=None, description="activo | inactivo | todos"),
    store: DataStore = Depends(get_store),
) -> List[ProveedorItem]:
    return await store.list_suppliers(nombre=nombre, activo=parse_estado(estado))


@router.get(
    "/UnidadesMedida/activas",
    response_model=List[UnidadMedidaItem],
    responses={500: _ERRORS[500]},
    summary="List active units of measure",
)
async def list_active_units(store: DataStore = Depends(get_store)) -> List[UnidadMedidaItem]:
    return await store.list_active_units()
