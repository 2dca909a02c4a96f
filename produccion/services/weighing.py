"""
Produccion API — Batch Weighing Workflow
========================================

What:  Records one ingredient's actual tare/weight and advances the batch.
How:   Five typed steps run inside a single UnitOfWork; any failure rolls
       back every step, so a weight never persists without its consequences.
Who:   LiveDataStore.record_weight (POST /peso).

Steps:
    1. update_line       UPDATE the matching detail line (batch id + product +
                         sequence + ingredient, batch not canceled). Zero rows
                         matched → NotFoundError, nothing persisted.
    2. stamp_start       Secuencia 1 only: ProduccionInicio = now WHERE it IS NULL.
    3. count_pending     COUNT detail lines of the batch with TiempoDePesado NULL.
    4. stamp_completion  remaining == 0: ProduccionFinal = now, LoteCompletado = 1.
    5. next_pending      remaining > 0: lowest pending Secuencia of the batch.

Known behaviour kept as-is:
    - update_line does not filter on TiempoDePesado, so weighing the same
      line again overwrites the earlier tare/weight/timestamp.
    - No lock is held between count_pending and stamp_completion; two
      concurrent weigh-ins on one batch can both see remaining > 0 under the
      store's default isolation level.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import false, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from produccion.database import ConnectionManager, UnitOfWork
from produccion.exceptions import NotFoundError
from produccion.models.programacion import (
    ProgramacionProduccion,
    ProgramacionProduccionControl,
    ProgramacionProduccionDetalle,
)
from produccion.schemas.programacion import PesoRequest, PesoResponse, SiguienteLinea

logger = logging.getLogger(__name__)

Detalle = ProgramacionProduccionDetalle
Control = ProgramacionProduccionControl


class WeighingWorkflow:
    """
    The steps of one weigh-in, bound to the request and a single timestamp.

    Every step stamps the same `now` so ProduccionFinal equals the
    TiempoDePesado of the line that completed the batch.
    """

    def __init__(self, request: PesoRequest, now: datetime):
        self.request = request
        self.now = now
        self.foto = request.foto_bytes()

    async def update_line(self, session: AsyncSession) -> int:
        req = self.request
        active_batch = select(ProgramacionProduccion.Consecutivo).where(
            ProgramacionProduccion.Consecutivo == req.consecutivo,
            ProgramacionProduccion.Cancelado == false(),
        )
        stmt = (
            update(Detalle)
            .where(
                Detalle.Consecutivo.in_(active_batch),
                Detalle.ProductoTerminado == req.producto_terminado,
                Detalle.Secuencia == req.secuencia,
                Detalle.Ingrediente == req.ingrediente,
            )
            .values(
                Tara=req.tara,
                Peso=req.peso,
                TiempoDePesado=self.now,
                Etiqueta=req.etiqueta,
                Foto=self.foto,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def stamp_start(self, session: AsyncSession) -> None:
        await session.execute(
            update(Control)
            .where(
                Control.Consecutivo == self.request.consecutivo,
                Control.ProduccionInicio.is_(None),
            )
            .values(ProduccionInicio=self.now)
            .execution_options(synchronize_session=False)
        )

    async def count_pending(self, session: AsyncSession) -> int:
        result = await session.execute(
            select(func.count())
            .select_from(Detalle)
            .where(
                Detalle.Consecutivo == self.request.consecutivo,
                Detalle.TiempoDePesado.is_(None),
            )
        )
        return int(result.scalar() or 0)

    async def stamp_completion(self, session: AsyncSession) -> None:
        await session.execute(
            update(Control)
            .where(Control.Consecutivo == self.request.consecutivo)
            .values(ProduccionFinal=self.now, LoteCompletado=True)
            .execution_options(synchronize_session=False)
        )

    async def next_pending(self, session: AsyncSession) -> Optional[SiguienteLinea]:
        result = await session.execute(
            select(
                Detalle.Secuencia,
                Detalle.Ingrediente,
                Detalle.PesoObjetivo,
                Detalle.Porcentaje,
            )
            .where(
                Detalle.Consecutivo == self.request.consecutivo,
                Detalle.TiempoDePesado.is_(None),
            )
            .order_by(Detalle.Secuencia)
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        return SiguienteLinea(
            secuencia=row.Secuencia,
            ingrediente=row.Ingrediente,
            peso_objetivo=row.PesoObjetivo,
            porcentaje=row.Porcentaje,
        )


async def register_weight(
    manager: ConnectionManager,
    request: PesoRequest,
    clock: Callable[[], datetime] = datetime.now,
) -> PesoResponse:
    """
    Run the weighing workflow as one transaction.

    Args:
        manager: Connection manager owning the pool
        request: Validated POST /peso body
        clock:   Source of "now" (injectable for tests)

    Raises:
        NotFoundError: no detail line of a non-canceled batch matched
        DatabaseError: any store failure (transaction rolled back)
    """
    workflow = WeighingWorkflow(request, clock())
    siguiente: Optional[SiguienteLinea] = None

    async with UnitOfWork(manager, "registrar_peso") as uow:
        matched = await uow.run(workflow.update_line)
        if matched == 0:
            raise NotFoundError(
                resource="la línea de pesaje",
                resource_id=f"{request.consecutivo}/{request.secuencia}",
                context={
                    "consecutivo": request.consecutivo,
                    "producto_terminado": request.producto_terminado,
                    "secuencia": request.secuencia,
                    "ingrediente": request.ingrediente,
                },
            )

        if request.secuencia == 1:
            await uow.run(workflow.stamp_start)

        remaining = await uow.run(workflow.count_pending)
        if remaining == 0:
            await uow.run(workflow.stamp_completion)
        else:
            siguiente = await uow.run(workflow.next_pending)

    logger.info(
        "Weigh-in recorded: batch=%s seq=%s ingredient=%s remaining=%d",
        request.consecutivo,
        request.secuencia,
        request.ingrediente,
        remaining,
    )
    if remaining == 0:
        logger.info("Batch %s completed", request.consecutivo)

    return PesoResponse(
        mensaje="Lote completado" if remaining == 0 else "Peso registrado",
        remaining=remaining,
        completed=remaining == 0,
        siguiente=siguiente,
    )
