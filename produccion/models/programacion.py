"""
Produccion API — Batch Scheduling Mappings
==========================================

What:  The three tables that describe a scheduled batch:
       ProgramacionProduccion          one row per batch (ScheduledBatch)
       ProgramacionProduccion_Control  one-to-one progress row (BatchControl)
       ProgramacionProduccion_Detalle  one row per ingredient (BatchDetailLine)
How:   All three are created together by the scheduling stored procedure.
       Weighing fills detail lines; the last weigh-in completes the control
       row; cancellation only flips ProgramacionProduccion.Cancelado.

Lifecycle of a batch:
    scheduled ──(first weigh of Secuencia 1)──▶ started (ProduccionInicio)
              ──(last pending line weighed)──▶ completed (LoteCompletado=1)
    scheduled/started ──(cancel)──▶ canceled (never deleted)
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Unicode,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from produccion.database import Base


class ProgramacionProduccion(Base):
    """A produced batch instance; Consecutivo is assigned by the store."""

    __tablename__ = "ProgramacionProduccion"

    Consecutivo: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ProductoTerminado: Mapped[str] = mapped_column(
        Unicode(30), ForeignKey("ProductosTerminados.Codigo"), nullable=False
    )
    Lote: Mapped[str] = mapped_column(Unicode(50), nullable=False)
    UsuarioProgramo: Mapped[Optional[str]] = mapped_column(Unicode(50), nullable=True)
    Cancelado: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )
    FechaCancelacion: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ProgramacionProduccion(Consecutivo={self.Consecutivo}, "
            f"Lote='{self.Lote}', Cancelado={self.Cancelado})>"
        )


class ProgramacionProduccionControl(Base):
    """
    Progress of one batch.

    ProduccionInicio is stamped once by the first weigh of Secuencia 1.
    ProduccionFinal and LoteCompletado are stamped when no detail line of the
    batch is left with a NULL TiempoDePesado.
    """

    __tablename__ = "ProgramacionProduccion_Control"

    Consecutivo: Mapped[int] = mapped_column(
        Integer, ForeignKey("ProgramacionProduccion.Consecutivo"), primary_key=True
    )
    FechaProgramada: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    LineaMezclado: Mapped[Optional[str]] = mapped_column(Unicode(30), nullable=True)
    ProduccionInicio: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ProduccionFinal: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    LoteCompletado: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )


class ProgramacionProduccionDetalle(Base):
    """
    One ingredient's planned and actual weight within a batch.

    TiempoDePesado NULL means the line is still pending.
    """

    __tablename__ = "ProgramacionProduccion_Detalle"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    Consecutivo: Mapped[int] = mapped_column(
        Integer, ForeignKey("ProgramacionProduccion.Consecutivo"), nullable=False
    )
    ProductoTerminado: Mapped[str] = mapped_column(Unicode(30), nullable=False)
    Secuencia: Mapped[int] = mapped_column(Integer, nullable=False)
    Ingrediente: Mapped[str] = mapped_column(Unicode(30), nullable=False)
    PesoObjetivo: Mapped[float] = mapped_column(Float, nullable=False)
    Porcentaje: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    Tara: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    Peso: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    TiempoDePesado: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    Etiqueta: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    Foto: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)

    # Pending-line lookups: WHERE Consecutivo = ? AND TiempoDePesado IS NULL ORDER BY Secuencia
    __table_args__ = (
        Index("IX_ProgramacionDetalle_Consecutivo_Secuencia", "Consecutivo", "Secuencia"),
    )
