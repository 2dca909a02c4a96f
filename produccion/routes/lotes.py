"""
Produccion API — Scheduled Batch Routes
=======================================

What:  Scheduling, tracking and cancellation of production batches.
How:   Scheduling runs the plant's stored procedure, which creates the batch,
       its control row and every detail line. Tracking reads those rows.
       Cancellation is logical (Cancelado flag), never a delete.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from produccion.dependencies import get_store
from produccion.schemas.common import ErrorResponse, MensajeResponse
from produccion.schemas.programacion import (
    CancelarLotesRequest,
    CancelarLotesResponse,
    DetalleLoteResponse,
    EstadoLoteResponse,
    LotePendiente,
    ProgramarLotesRequest,
)
from produccion.services.store_base import DataStore

router = APIRouter(prefix="/lotesprogramados", tags=["Lotes Programados"])


@router.post(
    "/programar",
    response_model=MensajeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid request or unit of measure", "model": ErrorResponse}},
    summary="Schedule production batches",
)
async def schedule_batches(
    body: ProgramarLotesRequest,
    store: DataStore = Depends(get_store),
) -> MensajeResponse:
    await store.schedule_batches(body)
    return MensajeResponse(
        mensaje=f"{body.cantidad_lotes} lote(s) programado(s) correctamente"
    )


@router.get(
    "/pendientes",
    response_model=List[LotePendiente],
    summary="List batches that are neither canceled nor completed",
)
async def list_pending_batches(
    fecha: Optional[date] = Query(default=None, description="Scheduled date (YYYY-MM-DD)"),
    linea: Optional[str] = Query(default=None, description="Mixing line"),
    store: DataStore = Depends(get_store),
) -> List[LotePendiente]:
    return await store.list_pending_batches(fecha=fecha, linea=linea)


@router.get(
    "/detallelote",
    response_model=DetalleLoteResponse,
    responses={400: {"description": "Missing consecutivo", "model": ErrorResponse}},
    summary="Detail lines of one batch",
)
async def get_batch_detail(
    consecutivo: int = Query(..., gt=0),
    store: DataStore = Depends(get_store),
) -> DetalleLoteResponse:
    return await store.get_batch_detail(consecutivo)


@router.get(
    "/estado",
    response_model=EstadoLoteResponse,
    responses={
        400: {"description": "Missing consecutivo", "model": ErrorResponse},
        404: {"description": "Unknown batch", "model": ErrorResponse},
    },
    summary="Status of one batch",
)
async def get_batch_status(
    consecutivo: int = Query(..., gt=0),
    store: DataStore = Depends(get_store),
) -> EstadoLoteResponse:
    return await store.get_batch_status(consecutivo)


@router.post(
    "/cancelar",
    response_model=CancelarLotesResponse,
    responses={400: {"description": "Invalid id or range", "model": ErrorResponse}},
    summary="Cancel one batch or an inclusive range of batches",
)
async def cancel_batches(
    body: CancelarLotesRequest,
    store: DataStore = Depends(get_store),
) -> CancelarLotesResponse:
    desde, hasta = body.rango
    cancelados = await store.cancel_batches(desde, hasta)
    return CancelarLotesResponse(
        mensaje=f"{cancelados} lote(s) cancelado(s)",
        cancelados=cancelados,
    )
