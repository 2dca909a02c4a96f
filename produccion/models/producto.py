"""
Produccion API — Finished Product Mappings
==========================================

What:  Finished product header (`ProductosTerminados`) and its recipe lines
       (`ProductosTerminados_Detalle`).
How:   One header row per product code; one detail row per ingredient with a
       1-based Secuencia in the order the recipe was entered.
Who:   Written by LiveDataStore.register_product / update_product; read by the
       product listing and lookup endpoints.
"""

from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Integer, Unicode, text
from sqlalchemy.orm import Mapped, mapped_column

from produccion.database import Base


class ProductoTerminado(Base):
    """Finished product that batches are scheduled for."""

    __tablename__ = "ProductosTerminados"

    Codigo: Mapped[str] = mapped_column(Unicode(30), primary_key=True)
    Nombre: Mapped[str] = mapped_column(Unicode(150), nullable=False)
    Descripcion: Mapped[Optional[str]] = mapped_column(Unicode(500), nullable=True)
    ClienteId: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("Clientes.Identificador"), nullable=True
    )
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )

    def __repr__(self) -> str:
        return f"<ProductoTerminado(Codigo='{self.Codigo}', Nombre='{self.Nombre}')>"


class ProductoTerminadoDetalle(Base):
    """One ingredient-percentage line of a finished product recipe."""

    __tablename__ = "ProductosTerminados_Detalle"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    CodigoProducto: Mapped[str] = mapped_column(
        Unicode(30), ForeignKey("ProductosTerminados.Codigo"), nullable=False
    )
    Secuencia: Mapped[int] = mapped_column(Integer, nullable=False)
    IngredienteId: Mapped[int] = mapped_column(
        Integer, ForeignKey("Ingredientes.Id"), nullable=False
    )
    Porcentaje: Mapped[float] = mapped_column(Float, nullable=False)
