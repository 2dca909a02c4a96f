"""
Produccion API — Master Data Mappings
=====================================

What:  SQLAlchemy mappings for the reference tables read by the listing
       endpoints: clients, categories, suppliers, units of measure,
       ingredients and users.
How:   Declarative models over the existing SQL Server tables. Table and
       column names are the database's own (Spanish, PascalCase).
Who:   Queried by LiveDataStore; created from metadata by the test-suite.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Unicode, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from produccion.database import Base


class Cliente(Base):
    """A customer that finished products are made for."""

    __tablename__ = "Clientes"

    Identificador: Mapped[int] = mapped_column(Integer, primary_key=True)
    Cliente: Mapped[str] = mapped_column(Unicode(150), nullable=False)
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )

    def __repr__(self) -> str:
        return f"<Cliente(Identificador={self.Identificador}, Cliente='{self.Cliente}')>"


class Categoria(Base):
    """Ingredient category (spices, flours, additives...)."""

    __tablename__ = "Categorias"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True)
    Nombre: Mapped[str] = mapped_column(Unicode(100), nullable=False)
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )


class Proveedor(Base):
    """Ingredient supplier."""

    __tablename__ = "Proveedores"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True)
    Nombre: Mapped[str] = mapped_column(Unicode(150), nullable=False)
    Contacto: Mapped[Optional[str]] = mapped_column(Unicode(150), nullable=True)
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )


class UnidadMedida(Base):
    """
    Unit of measure for scheduled weights.

    Only active units may be referenced when scheduling batches.
    """

    __tablename__ = "UnidadesMedida"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True)
    Nombre: Mapped[str] = mapped_column(Unicode(50), nullable=False)
    Abreviatura: Mapped[Optional[str]] = mapped_column(Unicode(10), nullable=True)
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )


class Ingrediente(Base):
    """
    Raw ingredient weighed into batches.

    Nombre is unique across all ingredients, active or not. The API checks
    it before writing; the constraint is the last line of defence.
    """

    __tablename__ = "Ingredientes"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True)
    Nombre: Mapped[str] = mapped_column(Unicode(150), nullable=False)
    Descripcion: Mapped[Optional[str]] = mapped_column(Unicode(500), nullable=True)
    CategoriaId: Mapped[int] = mapped_column(
        Integer, ForeignKey("Categorias.Id"), nullable=False
    )
    ProveedorId: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("Proveedores.Id"), nullable=True
    )
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )

    __table_args__ = (UniqueConstraint("Nombre", name="UQ_Ingredientes_Nombre"),)

    def __repr__(self) -> str:
        return f"<Ingrediente(Id={self.Id}, Nombre='{self.Nombre}', Activo={self.Activo})>"


class Usuario(Base):
    """
    Application user for the weighing stations.

    Passwords are stored as a hex SHA-256 digest of Salt + password
    (see services/security.py).
    """

    __tablename__ = "Usuarios"

    Id: Mapped[int] = mapped_column(Integer, primary_key=True)
    Username: Mapped[str] = mapped_column(Unicode(50), nullable=False, unique=True)
    Nombre: Mapped[str] = mapped_column(Unicode(150), nullable=False)
    Correo: Mapped[Optional[str]] = mapped_column(Unicode(150), nullable=True)
    PasswordHash: Mapped[str] = mapped_column(Unicode(128), nullable=False)
    Salt: Mapped[str] = mapped_column(Unicode(64), nullable=False)
    PlanActivo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )
    Activo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )
