"""
Produccion API — Finished Product Schemas
=========================================

What:  Listing, lookup and registration models for finished products and
       their ingredient-percentage recipes.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from produccion.schemas.common import ApiModel


class ProductoItem(ApiModel):
    codigo: str = Field(alias="Codigo")
    nombre: str = Field(alias="Nombre")
    descripcion: Optional[str] = Field(default=None, alias="Descripcion")
    cliente_id: Optional[int] = Field(default=None, alias="ClienteId")
    activo: bool = Field(alias="Activo")


class RecetaLinea(ApiModel):
    """One recipe line as returned by GET /api/ProductosTerminados/{codigo}."""
    secuencia: int = Field(alias="Secuencia")
    ingrediente_id: int = Field(alias="IngredienteId")
    ingrediente: Optional[str] = Field(default=None, alias="Ingrediente")
    porcentaje: float = Field(alias="Porcentaje")


class ProductoDetalle(ProductoItem):
    detalle: List[RecetaLinea] = Field(default_factory=list, alias="Detalle")


class IngredienteReceta(ApiModel):
    """Recipe line supplied by the caller; Secuencia comes from list order."""
    ingrediente_id: int = Field(alias="IngredienteId", gt=0)
    porcentaje: float = Field(alias="Porcentaje", gt=0, le=100)


class ProductoUpdateRequest(ApiModel):
    """
    Body of PUT /api/ProductosTerminados/actualizar/{codigo}.

    The recipe replaces the stored one entirely.
    """
    nombre: str = Field(alias="Nombre", max_length=150)
    descripcion: Optional[str] = Field(default=None, alias="Descripcion", max_length=500)
    cliente_id: Optional[int] = Field(default=None, alias="ClienteId")
    activo: bool = Field(default=True, alias="Activo")
    ingredientes: List[IngredienteReceta] = Field(alias="Ingredientes", min_length=1)

    @field_validator("nombre")
    @classmethod
    def validate_nombre(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nombre es requerido")
        return v


class ProductoRequest(ProductoUpdateRequest):
    """Body of POST /api/ProductosTerminados/nuevo."""
    codigo: str = Field(alias="Codigo", max_length=30)

    @field_validator("codigo")
    @classmethod
    def validate_codigo(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Codigo es requerido")
        return v


class ProductoCreado(ApiModel):
    mensaje: str
    codigo: str
