"""
Produccion API — Finished Product Routes
========================================

What:  Listing, lookup, registration and edit of finished products and their
       ingredient-percentage recipes.
How:   Header and recipe lines are written in one transaction by the store.
       `/listado` is declared before `/{codigo}` so it is not captured as a code.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from produccion.dependencies import get_store
from produccion.schemas.common import ErrorResponse, MensajeResponse, parse_estado
from produccion.schemas.producto import (
    ProductoCreado,
    ProductoDetalle,
    ProductoItem,
    ProductoRequest,
    ProductoUpdateRequest,
)
from produccion.services.store_base import DataStore

router = APIRouter(prefix="/api/ProductosTerminados", tags=["Productos Terminados"])


@router.get(
    "/listado",
    response_model=List[ProductoItem],
    responses={400: {"description": "Invalid filter", "model": ErrorResponse}},
    summary="List finished products",
)
async def list_products(
    nombre: Optional[str] = Query(default=None, description="Name substring"),
    cliente_id: Optional[int] = Query(default=None, alias="clienteId"),
    estado: Optional[str] = Query(default=None, description="activo | inactivo | todos"),
    store: DataStore = Depends(get_store),
) -> List[ProductoItem]:
    return await store.list_products(
        nombre=nombre,
        cliente_id=cliente_id,
        activo=parse_estado(estado),
    )


@router.post(
    "/nuevo",
    response_model=ProductoCreado,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields or invalid recipe", "model": ErrorResponse},
        409: {"description": "Codigo already registered", "model": ErrorResponse},
    },
    summary="Register a finished product with its recipe",
)
async def register_product(
    body: ProductoRequest,
    store: DataStore = Depends(get_store),
) -> ProductoCreado:
    return await store.register_product(body)


@router.put(
    "/actualizar/{codigo}",
    response_model=MensajeResponse,
    responses={
        400: {"description": "Missing fields or invalid recipe", "model": ErrorResponse},
        404: {"description": "Unknown product", "model": ErrorResponse},
    },
    summary="Update a finished product and replace its recipe",
)
async def update_product(
    codigo: str,
    body: ProductoUpdateRequest,
    store: DataStore = Depends(get_store),
) -> MensajeResponse:
    await store.update_product(codigo, body)
    return MensajeResponse(mensaje="Producto terminado actualizado")


@router.get(
    "/{codigo}",
    response_model=ProductoDetalle,
    responses={404: {"description": "Unknown product", "model": ErrorResponse}},
    summary="Get a finished product with its recipe",
)
async def get_product(codigo: str, store: DataStore = Depends(get_store)) -> ProductoDetalle:
    return await store.get_product(codigo)
