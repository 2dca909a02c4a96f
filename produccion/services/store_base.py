"""
Produccion API — Abstract DataStore Interface
=============================================

What:  Abstract base class defining every operation the HTTP layer needs from
       the production database.
How:   Two implementations inherit from DataStore:
         - LiveDataStore:    SQL against the plant's SQL Server (live_store.py)
         - FixtureDataStore: one fixed record per entity (fixture_store.py)
       One of them is chosen at startup (factory.py) and injected into every
       route through the `get_store` dependency.
Who:   Called by route handlers only.

Contract shared by both implementations:
    - Return response schemas, never ORM objects.
    - Raise ValidationError / NotFoundError / ConflictError / AuthenticationError
      for client-caused failures, DatabaseError for store failures.
    - Listing methods return rows in store order; no client-side re-sort.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from produccion.schemas.catalogo import (
    CategoriaItem,
    ClienteActivo,
    IngredienteCreado,
    IngredienteItem,
    IngredienteRequest,
    LoginResponse,
    ProveedorItem,
    UnidadMedidaItem,
)
from produccion.schemas.producto import (
    ProductoCreado,
    ProductoDetalle,
    ProductoItem,
    ProductoRequest,
    ProductoUpdateRequest,
)
from produccion.schemas.programacion import (
    DetalleLoteResponse,
    EstadoLoteResponse,
    LotePendiente,
    PesoRequest,
    PesoResponse,
    ProgramarLotesRequest,
)


class DataStore(ABC):
    """
    Capability interface over the production-scheduling data.

    `mode` is "live" or "fixture" and is reported by GET /health.
    """

    mode: str = "abstract"

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backing store answers; never raises."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release pooled resources (application shutdown)."""
        ...

    # ── Master data ───────────────────────────────────────────────────────

    @abstractmethod
    async def list_active_clients(self) -> List[ClienteActivo]:
        """Active clients ordered by name."""
        ...

    @abstractmethod
    async def list_categories(self, activo: Optional[bool] = None) -> List[CategoriaItem]:
        ...

    @abstractmethod
    async def list_suppliers(
        self, nombre: Optional[str] = None, activo: Optional[bool] = None
    ) -> List[ProveedorItem]:
        ...

    @abstractmethod
    async def list_active_units(self) -> List[UnidadMedidaItem]:
        ...

    @abstractmethod
    async def list_ingredients(
        self,
        nombre: Optional[str] = None,
        categoria_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[IngredienteItem]:
        """
        Ingredients filtered by name substring, category and active state.

        Every filter is optional; None means "do not filter".
        """
        ...

    @abstractmethod
    async def create_ingredient(self, data: IngredienteRequest) -> IngredienteCreado:
        """
        Insert an ingredient.

        Raises:
            ConflictError: another ingredient already has this name
        """
        ...

    @abstractmethod
    async def update_ingredient(self, ingrediente_id: int, data: IngredienteRequest) -> None:
        """
        Update an ingredient. Keeping its own name is not a conflict.

        Raises:
            NotFoundError: no ingredient with this id
            ConflictError: a different ingredient already has this name
        """
        ...

    # ── Finished products ─────────────────────────────────────────────────

    @abstractmethod
    async def list_products(
        self,
        nombre: Optional[str] = None,
        cliente_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[ProductoItem]:
        ...

    @abstractmethod
    async def get_product(self, codigo: str) -> ProductoDetalle:
        """Header plus recipe ordered by Secuencia; NotFoundError if unknown."""
        ...

    @abstractmethod
    async def register_product(self, data: ProductoRequest) -> ProductoCreado:
        """Header and all recipe lines in one transaction; ConflictError on duplicate code."""
        ...

    @abstractmethod
    async def update_product(self, codigo: str, data: ProductoUpdateRequest) -> None:
        """Update header and replace every recipe line; NotFoundError if unknown."""
        ...

    # ── Batches ───────────────────────────────────────────────────────────

    @abstractmethod
    async def schedule_batches(self, data: ProgramarLotesRequest) -> None:
        """
        Create batches through the scheduling stored procedure.

        Raises:
            ValidationError: UnidadMedidaId given but not an active unit
        """
        ...

    @abstractmethod
    async def list_pending_batches(
        self, fecha: Optional[date] = None, linea: Optional[str] = None
    ) -> List[LotePendiente]:
        """Batches neither canceled nor completed."""
        ...

    @abstractmethod
    async def get_batch_detail(self, consecutivo: int) -> DetalleLoteResponse:
        ...

    @abstractmethod
    async def get_batch_status(self, consecutivo: int) -> EstadoLoteResponse:
        """NotFoundError when the batch does not exist."""
        ...

    @abstractmethod
    async def cancel_batches(self, desde: int, hasta: int) -> int:
        """
        Cancel every batch with desde <= Consecutivo <= hasta.

        Already canceled and completed batches are left untouched.
        Returns the number of batches canceled.
        """
        ...

    @abstractmethod
    async def record_weight(self, data: PesoRequest) -> PesoResponse:
        """
        Record one weigh-in and advance the batch (see services/weighing.py).

        Raises:
            NotFoundError: no detail line of a non-canceled batch matches
        """
        ...

    # ── Authentication ────────────────────────────────────────────────────

    @abstractmethod
    async def authenticate(self, username: str, password: str) -> LoginResponse:
        """AuthenticationError on unknown user or wrong password."""
        ...
