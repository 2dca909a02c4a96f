# Import every mapping so Base.metadata knows all tables
from produccion.models.catalogo import (
    Categoria,
    Cliente,
    Ingrediente,
    Proveedor,
    UnidadMedida,
    Usuario,
)
from produccion.models.producto import ProductoTerminado, ProductoTerminadoDetalle
from produccion.models.programacion import (
    ProgramacionProduccion,
    ProgramacionProduccionControl,
    ProgramacionProduccionDetalle,
)

__all__ = [
    "Categoria",
    "Cliente",
    "Ingrediente",
    "Proveedor",
    "UnidadMedida",
    "Usuario",
    "ProductoTerminado",
    "ProductoTerminadoDetalle",
    "ProgramacionProduccion",
    "ProgramacionProduccionControl",
    "ProgramacionProduccionDetalle",
]
