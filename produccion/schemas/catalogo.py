"""
Produccion API — Master Data Schemas
====================================

What:  Request/response models for clients, categories, suppliers, units of
       measure, ingredients and login.
Who:   Used by the catalog, ingredient and auth routes and by both DataStore
       implementations.
"""

from typing import Optional

from pydantic import Field, field_validator

from produccion.schemas.common import ApiModel


# ══════════════════════════════════════════════════════════════════════════
# Listings
# ══════════════════════════════════════════════════════════════════════════


class ClienteActivo(ApiModel):
    """Active client; lower-case keys as the original endpoint returned them."""
    identificador: int
    cliente: str


class CategoriaItem(ApiModel):
    id: int = Field(alias="Id")
    nombre: str = Field(alias="Nombre")
    activo: bool = Field(alias="Activo")


class ProveedorItem(ApiModel):
    id: int = Field(alias="Id")
    nombre: str = Field(alias="Nombre")
    contacto: Optional[str] = Field(default=None, alias="Contacto")
    activo: bool = Field(alias="Activo")


class UnidadMedidaItem(ApiModel):
    id: int = Field(alias="Id")
    nombre: str = Field(alias="Nombre")
    abreviatura: Optional[str] = Field(default=None, alias="Abreviatura")


class IngredienteItem(ApiModel):
    """
    What:  Ingredient row of GET /api/Ingredientes/listado.
    Categoria is the category name, not its id.
    """
    id: int = Field(alias="Id")
    nombre: str = Field(alias="Nombre")
    activo: bool = Field(alias="Activo")
    categoria: Optional[str] = Field(default=None, alias="Categoria")
    descripcion: Optional[str] = Field(default=None, alias="Descripcion")


# ══════════════════════════════════════════════════════════════════════════
# Ingredient writes
# ══════════════════════════════════════════════════════════════════════════


class IngredienteRequest(ApiModel):
    """
    Body of POST /api/Ingredientes/nuevo and PUT /api/Ingredientes/actualizar/{id}.

    Nombre is trimmed; a blank name is rejected like a missing one.
    """
    nombre: str = Field(alias="Nombre", max_length=150)
    descripcion: Optional[str] = Field(default=None, alias="Descripcion", max_length=500)
    categoria_id: int = Field(alias="CategoriaId", gt=0)
    activo: bool = Field(alias="Activo")

    @field_validator("nombre")
    @classmethod
    def validate_nombre(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nombre es requerido")
        return v


class IngredienteCreado(ApiModel):
    mensaje: str
    id: int


# ══════════════════════════════════════════════════════════════════════════
# Login
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(ApiModel):
    username: str = Field(alias="Username", min_length=1)
    password: str = Field(alias="Password", min_length=1)


class LoginResponse(ApiModel):
    nombre: str = Field(alias="Nombre")
    correo: Optional[str] = Field(default=None, alias="Correo")
    plan_activo: bool = Field(alias="PlanActivo")
