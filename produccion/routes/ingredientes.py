"""
Produccion API — Ingredient Routes
==================================

What:  Listing, creation and update of ingredients.
How:   Names are unique. Creating or renaming onto an existing name answers
       409; updating an ingredient while keeping its own name is fine.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from produccion.dependencies import get_store
from produccion.schemas.catalogo import IngredienteCreado, IngredienteItem, IngredienteRequest
from produccion.schemas.common import ErrorResponse, MensajeResponse, parse_estado
from produccion.services.store_base import DataStore

router = APIRouter(prefix="/api/Ingredientes", tags=["Ingredientes"])


@router.get(
    "/listado",
    response_model=List[IngredienteItem],
    responses={400: {"description": "Invalid filter", "model": ErrorResponse}},
    summary="List ingredients",
)
async def list_ingredients(
    nombre: Optional[str] = Query(default=None, description="Name substring"),
    categoria_id: Optional[int] = Query(default=None, alias="categoriaId"),
    estado: Optional[str] = Query(default=None, description="activo | inactivo | todos"),
    store: DataStore = Depends(get_store),
) -> List[IngredienteItem]:
    return await store.list_ingredients(
        nombre=nombre,
        categoria_id=categoria_id,
        activo=parse_estado(estado),
    )


@router.post(
    "/nuevo",
    response_model=IngredienteCreado,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        409: {"description": "Name already in use", "model": ErrorResponse},
    },
    summary="Create an ingredient",
)
async def create_ingredient(
    body: IngredienteRequest,
    store: DataStore = Depends(get_store),
) -> IngredienteCreado:
    return await store.create_ingredient(body)


@router.put(
    "/actualizar/{ingrediente_id}",
    response_model=MensajeResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        404: {"description": "Unknown ingredient", "model": ErrorResponse},
        409: {"description": "Name used by another ingredient", "model": ErrorResponse},
    },
    summary="Update an ingredient",
)
async def update_ingredient(
    body: IngredienteRequest,
    ingrediente_id: int = Path(..., gt=0),
    store: DataStore = Depends(get_store),
) -> MensajeResponse:
    await store.update_ingredient(ingrediente_id, body)
    return MensajeResponse(mensaje="Ingrediente actualizado correctamente")
