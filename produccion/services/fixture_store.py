"""
Produccion API — Fixture DataStore
==================================

What:  DataStore used when no database credentials are configured, so the
       stations and front-ends can be exercised without a plant database.
How:   One fixed representative record per entity type. Listings apply the
       same filters as the live store over that single record. Writes are
       validated the same way, answer with the canned success the live store
       would give, and persist nothing.
Who:   Selected by services/factory.py when credentials are absent.
"""

import logging
from datetime import date
from typing import List, Optional

from produccion.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
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
    RecetaLinea,
)
from produccion.schemas.programacion import (
    DetalleLoteLinea,
    DetalleLoteResponse,
    EstadoLoteResponse,
    LotePendiente,
    PesoRequest,
    PesoResponse,
    ProgramarLotesRequest,
)
from produccion.services.security import hash_password, verify_password
from produccion.services.store_base import DataStore

logger = logging.getLogger(__name__)

# ── Fixed sample records ──────────────────────────────────────────────────

FIXTURE_DATE = date(2024, 1, 15)

CLIENTE = ClienteActivo(identificador=1, cliente="Cliente Demo")
CATEGORIA = CategoriaItem(id=1, nombre="Harinas", activo=True)
PROVEEDOR = ProveedorItem(id=1, nombre="Proveedor Demo", contacto="compras@demo.local", activo=True)
UNIDAD = UnidadMedidaItem(id=1, nombre="Kilogramo", abreviatura="kg")
INGREDIENTE = IngredienteItem(
    id=1,
    nombre="Harina de trigo",
    activo=True,
    categoria=CATEGORIA.nombre,
    descripcion="Harina panadera",
)
PRODUCTO = ProductoDetalle(
    codigo="PT-001",
    nombre="Mezcla Demo",
    descripcion="Producto terminado de ejemplo",
    cliente_id=CLIENTE.identificador,
    activo=True,
    detalle=[
        RecetaLinea(
            secuencia=1,
            ingrediente_id=INGREDIENTE.id,
            ingrediente=INGREDIENTE.nombre,
            porcentaje=100.0,
        )
    ],
)
LOTE = LotePendiente(
    consecutivo=1,
    producto_terminado=PRODUCTO.codigo,
    lote="L-0001",
    fecha_programada=FIXTURE_DATE,
    linea_mezclado="L1",
    produccion_inicio=None,
)
LINEA = DetalleLoteLinea(
    secuencia=1,
    ingrediente=str(INGREDIENTE.id),
    peso_objetivo=25.0,
    porcentaje=100.0,
)

FIXTURE_USERNAME = "demo"
FIXTURE_SALT = "fixture-salt"
FIXTURE_PASSWORD_HASH = hash_password("demo", FIXTURE_SALT)
USUARIO = LoginResponse(nombre="Usuario Demo", correo="demo@demo.local", plan_activo=True)


class FixtureDataStore(DataStore):
    """
    In-memory stand-in for the live store.

    Nothing is written: every mutation returns its success response and the
    fixed records stay as they are.
    """

    mode = "fixture"

    async def ping(self) -> bool:
        return False

    async def close(self) -> None:
        return None

    # ── Master data ───────────────────────────────────────────────────────

    async def list_active_clients(self) -> List[ClienteActivo]:
        return [CLIENTE]

    async def list_categories(self, activo: Optional[bool] = None) -> List[CategoriaItem]:
        return [CATEGORIA] if _active(CATEGORIA.activo, activo) else []

    async def list_suppliers(
        self, nombre: Optional[str] = None, activo: Optional[bool] = None
    ) -> List[ProveedorItem]:
        if _matches(PROVEEDOR.nombre, nombre) and _active(PROVEEDOR.activo, activo):
            return [PROVEEDOR]
        return []

    async def list_active_units(self) -> List[UnidadMedidaItem]:
        return [UNIDAD]

    async def list_ingredients(
        self,
        nombre: Optional[str] = None,
        categoria_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[IngredienteItem]:
        if categoria_id is not None and categoria_id != CATEGORIA.id:
            return []
        if _matches(INGREDIENTE.nombre, nombre) and _active(INGREDIENTE.activo, activo):
            return [INGREDIENTE]
        return []

    async def create_ingredient(self, data: IngredienteRequest) -> IngredienteCreado:
        self._check_ingredient(data)
        if data.nombre.lower() == INGREDIENTE.nombre.lower():
            raise ConflictError(
                message=f"Ya existe un ingrediente con el nombre '{data.nombre}'",
                context={"nombre": data.nombre},
            )
        logger.info("Fixture mode: ingredient '%s' accepted, not persisted", data.nombre)
        return IngredienteCreado(mensaje="Ingrediente creado correctamente", id=INGREDIENTE.id + 1)

    async def update_ingredient(self, ingrediente_id: int, data: IngredienteRequest) -> None:
        if ingrediente_id != INGREDIENTE.id:
            raise NotFoundError(resource="el ingrediente", resource_id=str(ingrediente_id))
        self._check_ingredient(data)
        logger.info("Fixture mode: ingredient %s update accepted, not persisted", ingrediente_id)

    @staticmethod
    def _check_ingredient(data: IngredienteRequest) -> None:
        if data.categoria_id != CATEGORIA.id:
            raise ValidationError(
                message=f"La categoría {data.categoria_id} no existe",
                field="CategoriaId",
            )

    # ── Finished products ─────────────────────────────────────────────────

    async def list_products(
        self,
        nombre: Optional[str] = None,
        cliente_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[ProductoItem]:
        if cliente_id is not None and cliente_id != PRODUCTO.cliente_id:
            return []
        if _matches(PRODUCTO.nombre, nombre) and _active(PRODUCTO.activo, activo):
            return [ProductoItem.model_validate(PRODUCTO.model_dump(exclude={"detalle"}))]
        return []

    async def get_product(self, codigo: str) -> ProductoDetalle:
        if codigo != PRODUCTO.codigo:
            raise NotFoundError(resource="el producto terminado", resource_id=codigo)
        return PRODUCTO

    async def register_product(self, data: ProductoRequest) -> ProductoCreado:
        if data.codigo == PRODUCTO.codigo:
            raise ConflictError(
                message=f"Ya existe un producto terminado con código '{data.codigo}'",
                context={"codigo": data.codigo},
            )
        logger.info("Fixture mode: product %s accepted, not persisted", data.codigo)
        return ProductoCreado(mensaje="Producto terminado registrado", codigo=data.codigo)

    async def update_product(self, codigo: str, data: ProductoUpdateRequest) -> None:
        if codigo != PRODUCTO.codigo:
            raise NotFoundError(resource="el producto terminado", resource_id=codigo)
        logger.info("Fixture mode: product %s update accepted, not persisted", codigo)

    # ── Batches ───────────────────────────────────────────────────────────

    async def schedule_batches(self, data: ProgramarLotesRequest) -> None:
        if data.unidad_medida_id is not None and data.unidad_medida_id != UNIDAD.id:
            raise ValidationError(
                message="La unidad de medida no existe o no está activa",
                field="UnidadMedidaId",
            )
        logger.info(
            "Fixture mode: %d batch(es) of %s accepted, not persisted",
            data.cantidad_lotes,
            data.codigo_producto,
        )

    async def list_pending_batches(
        self, fecha: Optional[date] = None, linea: Optional[str] = None
    ) -> List[LotePendiente]:
        if fecha is not None and fecha != LOTE.fecha_programada:
            return []
        if linea and linea != LOTE.linea_mezclado:
            return []
        return [LOTE]

    async def get_batch_detail(self, consecutivo: int) -> DetalleLoteResponse:
        if consecutivo != LOTE.consecutivo:
            return DetalleLoteResponse(detalle=[], max_secuencia=0)
        return DetalleLoteResponse(detalle=[LINEA], max_secuencia=LINEA.secuencia)

    async def get_batch_status(self, consecutivo: int) -> EstadoLoteResponse:
        if consecutivo != LOTE.consecutivo:
            raise NotFoundError(resource="el lote", resource_id=str(consecutivo))
        return EstadoLoteResponse(
            consecutivo=LOTE.consecutivo,
            producto_terminado=LOTE.producto_terminado,
            lote=LOTE.lote,
            cancelado=False,
            fecha_programada=LOTE.fecha_programada,
            linea_mezclado=LOTE.linea_mezclado,
            lote_completado=False,
            pendientes=1,
        )

    async def cancel_batches(self, desde: int, hasta: int) -> int:
        return 1 if desde <= LOTE.consecutivo <= hasta else 0

    async def record_weight(self, data: PesoRequest) -> PesoResponse:
        matches = (
            data.consecutivo == LOTE.consecutivo
            and data.producto_terminado == LOTE.producto_terminado
            and data.secuencia == LINEA.secuencia
            and data.ingrediente == LINEA.ingrediente
        )
        if not matches:
            raise NotFoundError(
                resource="la línea de pesaje",
                resource_id=f"{data.consecutivo}/{data.secuencia}",
            )
        logger.info("Fixture mode: weigh-in for batch %s accepted, not persisted", data.consecutivo)
        return PesoResponse(mensaje="Lote completado", remaining=0, completed=True)

    # ── Authentication ────────────────────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> LoginResponse:
        if username != FIXTURE_USERNAME or not verify_password(
            password, FIXTURE_SALT, FIXTURE_PASSWORD_HASH
        ):
            logger.warning("Failed login for username=%s", username)
            raise AuthenticationError()
        return USUARIO


def _matches(value: Optional[str], needle: Optional[str]) -> bool:
    if not needle:
        return True
    return needle.lower() in (value or "").lower()


def _active(value: bool, activo: Optional[bool]) -> bool:
    return activo is None or value == activo
