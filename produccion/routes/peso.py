"""
Produccion API — Weighing Route
===============================

What:  POST /peso, called by a weighing station after each ingredient.
How:   The store records tare, weight, label and photo on the matching
       detail line and advances the batch in a single transaction. The
       response tells the station how many lines remain and which one is next.
"""

from fastapi import APIRouter, Depends, Request, status

from produccion.dependencies import get_store
from produccion.schemas.common import ErrorResponse
from produccion.schemas.programacion import PesoRequest, PesoResponse
from produccion.services.store_base import DataStore

router = APIRouter(tags=["Pesaje"])


@router.post(
    "/peso",
    response_model=PesoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields or undecodable photo", "model": ErrorResponse},
        404: {"description": "No pending line of an active batch matches", "model": ErrorResponse},
    },
    summary="Record one ingredient weigh-in",
)
async def record_weight(
    body: PesoRequest,
    request: Request,
    store: DataStore = Depends(get_store),
) -> PesoResponse:
    request.state.consecutivo = body.consecutivo
    return await store.record_weight(body)
