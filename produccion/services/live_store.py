"""
Produccion API — Live DataStore (SQL Server)
============================================

What:  DataStore implementation backed by the plant's SQL Server database.
How:   Every operation opens a UnitOfWork on the owned ConnectionManager and
       runs its queries as steps, so multi-row writes (ingredient checks,
       finished product header + recipe, cancellation) commit or roll back
       as a whole.
Who:   Selected by services/factory.py when database credentials exist.

Error Handling Strategy:
    Client-caused problems are detected with explicit queries before writing
    (duplicate names, unknown ids, inactive unit of measure) and raised as
    the matching ProduccionError. SQLAlchemy failures are translated by the
    UnitOfWork: IntegrityError → ConflictError, anything else → DatabaseError.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy import case, delete, false, func, insert, select, text, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from produccion.database import ConnectionManager, UnitOfWork
from produccion.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
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
    IngredienteReceta,
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
from produccion.services.security import verify_password
from produccion.services.store_base import DataStore
from produccion.services.weighing import register_weight

logger = logging.getLogger(__name__)

Programacion = ProgramacionProduccion
Control = ProgramacionProduccionControl
Detalle = ProgramacionProduccionDetalle


class LiveDataStore(DataStore):
    """
    SQL implementation of every DataStore operation.

    Args:
        manager: Owned connection manager (created by the lifespan)
        schedule_procedure: Stored procedure invoked by schedule_batches
        clock: Source of "now" for weigh-ins and cancellations
    """

    mode = "live"

    def __init__(
        self,
        manager: ConnectionManager,
        schedule_procedure: str = "dbo.sp_ProgramarLotes",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.manager = manager
        self.schedule_procedure = schedule_procedure
        self.clock = clock

    def _uow(self, name: str) -> UnitOfWork:
        return UnitOfWork(self.manager, name)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        return await self.manager.ping()

    async def close(self) -> None:
        await self.manager.dispose()

    # ── Master data ───────────────────────────────────────────────────────

    async def list_active_clients(self) -> List[ClienteActivo]:
        async def fetch(session: AsyncSession):
            result = await session.execute(
                select(Cliente.Identificador, Cliente.Cliente)
                .where(Cliente.Activo == true())
                .order_by(Cliente.Cliente)
            )
            return result.all()

        async with self._uow("clientes_activos") as uow:
            rows = await uow.run(fetch)

        logger.info("Fetched %d active clientes", len(rows))
        return [
            ClienteActivo(identificador=row.Identificador, cliente=row.Cliente)
            for row in rows
        ]

    async def list_categories(self, activo: Optional[bool] = None) -> List[CategoriaItem]:
        query = select(Categoria).order_by(Categoria.Nombre)
        if activo is not None:
            query = query.where(Categoria.Activo == activo)

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).scalars().all()

        async with self._uow("categorias") as uow:
            categorias = await uow.run(fetch)
        return _as_items(categorias, CategoriaItem)

    async def list_suppliers(
        self, nombre: Optional[str] = None, activo: Optional[bool] = None
    ) -> List[ProveedorItem]:
        query = select(Proveedor).order_by(Proveedor.Nombre)
        if nombre:
            query = query.where(Proveedor.Nombre.contains(nombre, autoescape=True))
        if activo is not None:
            query = query.where(Proveedor.Activo == activo)

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).scalars().all()

        async with self._uow("proveedores") as uow:
            proveedores = await uow.run(fetch)
        return _as_items(proveedores, ProveedorItem)

    async def list_active_units(self) -> List[UnidadMedidaItem]:
        async def fetch(session: AsyncSession):
            result = await session.execute(
                select(UnidadMedida)
                .where(UnidadMedida.Activo == true())
                .order_by(UnidadMedida.Nombre)
            )
            return result.scalars().all()

        async with self._uow("unidades_medida") as uow:
            unidades = await uow.run(fetch)
        return _as_items(unidades, UnidadMedidaItem)

    async def list_ingredients(
        self,
        nombre: Optional[str] = None,
        categoria_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[IngredienteItem]:
        query = (
            select(
                Ingrediente.Id,
                Ingrediente.Nombre,
                Ingrediente.Activo,
                Categoria.Nombre.label("Categoria"),
                Ingrediente.Descripcion,
            )
            .outerjoin(Categoria, Categoria.Id == Ingrediente.CategoriaId)
            .order_by(Ingrediente.Nombre)
        )
        if nombre:
            query = query.where(Ingrediente.Nombre.contains(nombre, autoescape=True))
        if categoria_id is not None:
            query = query.where(Ingrediente.CategoriaId == categoria_id)
        if activo is not None:
            query = query.where(Ingrediente.Activo == activo)

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).all()

        async with self._uow("ingredientes_listado") as uow:
            rows = await uow.run(fetch)

        return [
            IngredienteItem(
                id=row.Id,
                nombre=row.Nombre,
                activo=bool(row.Activo),
                categoria=row.Categoria,
                descripcion=row.Descripcion,
            )
            for row in rows
        ]

    async def create_ingredient(self, data: IngredienteRequest) -> IngredienteCreado:
        async def insert_ingredient(session: AsyncSession) -> int:
            await _ensure_unique_ingredient_name(session, data.nombre)
            await _ensure_category_exists(session, data.categoria_id)
            ingrediente = Ingrediente(
                Nombre=data.nombre,
                Descripcion=data.descripcion,
                CategoriaId=data.categoria_id,
                Activo=data.activo,
            )
            session.add(ingrediente)
            await session.flush()  # assigns the identity value
            return ingrediente.Id

        async with self._uow("ingrediente_nuevo") as uow:
            new_id = await uow.run(insert_ingredient)

        logger.info("Ingredient created: id=%s nombre=%s", new_id, data.nombre)
        return IngredienteCreado(mensaje="Ingrediente creado correctamente", id=new_id)

    async def update_ingredient(self, ingrediente_id: int, data: IngredienteRequest) -> None:
        async def update_row(session: AsyncSession) -> None:
            ingrediente = await session.get(Ingrediente, ingrediente_id)
            if ingrediente is None:
                raise NotFoundError(resource="el ingrediente", resource_id=str(ingrediente_id))
            await _ensure_unique_ingredient_name(session, data.nombre, exclude_id=ingrediente_id)
            await _ensure_category_exists(session, data.categoria_id)
            ingrediente.Nombre = data.nombre
            ingrediente.Descripcion = data.descripcion
            ingrediente.CategoriaId = data.categoria_id
            ingrediente.Activo = data.activo

        async with self._uow("ingrediente_actualizar") as uow:
            await uow.run(update_row)
        logger.info("Ingredient updated: id=%s", ingrediente_id)

    # ── Finished products ─────────────────────────────────────────────────

    async def list_products(
        self,
        nombre: Optional[str] = None,
        cliente_id: Optional[int] = None,
        activo: Optional[bool] = None,
    ) -> List[ProductoItem]:
        query = select(ProductoTerminado).order_by(ProductoTerminado.Nombre)
        if nombre:
            query = query.where(ProductoTerminado.Nombre.contains(nombre, autoescape=True))
        if cliente_id is not None:
            query = query.where(ProductoTerminado.ClienteId == cliente_id)
        if activo is not None:
            query = query.where(ProductoTerminado.Activo == activo)

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).scalars().all()

        async with self._uow("productos_listado") as uow:
            productos = await uow.run(fetch)
        return _as_items(productos, ProductoItem)

    async def get_product(self, codigo: str) -> ProductoDetalle:
        async def fetch(session: AsyncSession):
            producto = await session.get(ProductoTerminado, codigo)
            if producto is None:
                raise NotFoundError(resource="el producto terminado", resource_id=codigo)
            lines = await session.execute(
                select(
                    ProductoTerminadoDetalle.Secuencia,
                    ProductoTerminadoDetalle.IngredienteId,
                    Ingrediente.Nombre.label("Ingrediente"),
                    ProductoTerminadoDetalle.Porcentaje,
                )
                .outerjoin(Ingrediente, Ingrediente.Id == ProductoTerminadoDetalle.IngredienteId)
                .where(ProductoTerminadoDetalle.CodigoProducto == codigo)
                .order_by(ProductoTerminadoDetalle.Secuencia)
            )
            return producto, lines.all()

        async with self._uow("producto_detalle") as uow:
            producto, lines = await uow.run(fetch)

        return ProductoDetalle(
            codigo=producto.Codigo,
            nombre=producto.Nombre,
            descripcion=producto.Descripcion,
            cliente_id=producto.ClienteId,
            activo=bool(producto.Activo),
            detalle=[
                RecetaLinea(
                    secuencia=line.Secuencia,
                    ingrediente_id=line.IngredienteId,
                    ingrediente=line.Ingrediente,
                    porcentaje=line.Porcentaje,
                )
                for line in lines
            ],
        )

    async def register_product(self, data: ProductoRequest) -> ProductoCreado:
        async def insert_header(session: AsyncSession) -> None:
            if await session.get(ProductoTerminado, data.codigo) is not None:
                raise ConflictError(
                    message=f"Ya existe un producto terminado con código '{data.codigo}'",
                    context={"codigo": data.codigo},
                )
            await _ensure_ingredients_exist(session, data.ingredientes)
            session.add(
                ProductoTerminado(
                    Codigo=data.codigo,
                    Nombre=data.nombre,
                    Descripcion=data.descripcion,
                    ClienteId=data.cliente_id,
                    Activo=data.activo,
                )
            )
            await session.flush()

        async def insert_lines(session: AsyncSession) -> None:
            await _insert_recipe(session, data.codigo, data.ingredientes)

        async with self._uow("producto_registrar") as uow:
            await uow.run(insert_header)
            await uow.run(insert_lines)

        logger.info(
            "Finished product registered: codigo=%s lines=%d",
            data.codigo,
            len(data.ingredientes),
        )
        return ProductoCreado(mensaje="Producto terminado registrado", codigo=data.codigo)

    async def update_product(self, codigo: str, data: ProductoUpdateRequest) -> None:
        async def update_header(session: AsyncSession) -> None:
            producto = await session.get(ProductoTerminado, codigo)
            if producto is None:
                raise NotFoundError(resource="el producto terminado", resource_id=codigo)
            await _ensure_ingredients_exist(session, data.ingredientes)
            producto.Nombre = data.nombre
            producto.Descripcion = data.descripcion
            producto.ClienteId = data.cliente_id
            producto.Activo = data.activo
            await session.flush()

        async def replace_lines(session: AsyncSession) -> None:
            await session.execute(
                delete(ProductoTerminadoDetalle).where(
                    ProductoTerminadoDetalle.CodigoProducto == codigo
                )
            )
            await _insert_recipe(session, codigo, data.ingredientes)

        async with self._uow("producto_actualizar") as uow:
            await uow.run(update_header)
            await uow.run(replace_lines)

        logger.info(
            "Finished product updated: codigo=%s lines=%d", codigo, len(data.ingredientes)
        )

    # ── Batches ───────────────────────────────────────────────────────────

    async def schedule_batches(self, data: ProgramarLotesRequest) -> None:
        procedure = text(
            f"EXEC {self.schedule_procedure} "
            "@CodigoProducto = :codigo, "
            "@FechaProgramada = :fecha, "
            "@UsuarioProgramo = :usuario, "
            "@CantidadLotes = :cantidad, "
            "@PesoPorLote = :peso, "
            "@UnidadMedidaId = :unidad"
        )

        async def check_unit(session: AsyncSession) -> None:
            if data.unidad_medida_id is None:
                return
            result = await session.execute(
                select(UnidadMedida.Id).where(
                    UnidadMedida.Id == data.unidad_medida_id,
                    UnidadMedida.Activo == true(),
                )
            )
            if result.first() is None:
                raise ValidationError(
                    message="La unidad de medida no existe o no está activa",
                    field="UnidadMedidaId",
                )

        async def run_procedure(session: AsyncSession) -> None:
            await session.execute(
                procedure,
                {
                    "codigo": data.codigo_producto,
                    "fecha": data.fecha_programada,
                    "usuario": data.usuario_programo,
                    "cantidad": data.cantidad_lotes,
                    "peso": data.peso_por_lote,
                    "unidad": data.unidad_medida_id,
                },
            )

        async with self._uow("programar_lotes") as uow:
            await uow.run(check_unit)
            await uow.run(run_procedure)

        logger.info(
            "Scheduled %d batch(es) of %s for %s by %s",
            data.cantidad_lotes,
            data.codigo_producto,
            data.fecha_programada,
            data.usuario_programo,
        )

    async def list_pending_batches(
        self, fecha: Optional[date] = None, linea: Optional[str] = None
    ) -> List[LotePendiente]:
        query = (
            select(
                Programacion.Consecutivo,
                Programacion.ProductoTerminado,
                Programacion.Lote,
                Control.FechaProgramada,
                Control.LineaMezclado,
                Control.ProduccionInicio,
            )
            .join(Control, Control.Consecutivo == Programacion.Consecutivo)
            .where(Programacion.Cancelado == false(), Control.LoteCompletado == false())
            .order_by(Control.FechaProgramada, Programacion.Consecutivo)
        )
        if fecha is not None:
            query = query.where(Control.FechaProgramada == fecha)
        if linea:
            query = query.where(Control.LineaMezclado == linea)

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).all()

        async with self._uow("lotes_pendientes") as uow:
            rows = await uow.run(fetch)

        return [
            LotePendiente(
                consecutivo=row.Consecutivo,
                producto_terminado=row.ProductoTerminado,
                lote=row.Lote,
                fecha_programada=row.FechaProgramada,
                linea_mezclado=row.LineaMezclado,
                produccion_inicio=row.ProduccionInicio,
            )
            for row in rows
        ]

    async def get_batch_detail(self, consecutivo: int) -> DetalleLoteResponse:
        async def fetch(session: AsyncSession):
            result = await session.execute(
                select(
                    Detalle.Secuencia,
                    Detalle.Ingrediente,
                    Detalle.PesoObjetivo,
                    Detalle.Porcentaje,
                    Detalle.Tara,
                    Detalle.Peso,
                    Detalle.TiempoDePesado,
                    Detalle.Etiqueta,
                    case((Detalle.Foto.is_not(None), 1), else_=0).label("TieneFoto"),
                )
                .where(Detalle.Consecutivo == consecutivo)
                .order_by(Detalle.Secuencia)
            )
            return result.all()

        async with self._uow("detalle_lote") as uow:
            rows = await uow.run(fetch)

        detalle = [
            DetalleLoteLinea(
                secuencia=row.Secuencia,
                ingrediente=row.Ingrediente,
                peso_objetivo=row.PesoObjetivo,
                porcentaje=row.Porcentaje,
                tara=row.Tara,
                peso=row.Peso,
                tiempo_de_pesado=row.TiempoDePesado,
                etiqueta=row.Etiqueta,
                tiene_foto=bool(row.TieneFoto),
            )
            for row in rows
        ]
        return DetalleLoteResponse(
            detalle=detalle,
            max_secuencia=max((line.secuencia for line in detalle), default=0),
        )

    async def get_batch_status(self, consecutivo: int) -> EstadoLoteResponse:
        pending = (
            select(func.count())
            .select_from(Detalle)
            .where(Detalle.Consecutivo == consecutivo, Detalle.TiempoDePesado.is_(None))
            .scalar_subquery()
        )
        query = (
            select(
                Programacion.Consecutivo,
                Programacion.ProductoTerminado,
                Programacion.Lote,
                Programacion.Cancelado,
                Control.FechaProgramada,
                Control.LineaMezclado,
                Control.ProduccionInicio,
                Control.ProduccionFinal,
                Control.LoteCompletado,
                pending.label("Pendientes"),
            )
            .outerjoin(Control, Control.Consecutivo == Programacion.Consecutivo)
            .where(Programacion.Consecutivo == consecutivo)
        )

        async def fetch(session: AsyncSession):
            return (await session.execute(query)).first()

        async with self._uow("estado_lote") as uow:
            row = await uow.run(fetch)

        if row is None:
            raise NotFoundError(resource="el lote", resource_id=str(consecutivo))
        return EstadoLoteResponse(
            consecutivo=row.Consecutivo,
            producto_terminado=row.ProductoTerminado,
            lote=row.Lote,
            cancelado=bool(row.Cancelado),
            fecha_programada=row.FechaProgramada,
            linea_mezclado=row.LineaMezclado,
            produccion_inicio=row.ProduccionInicio,
            produccion_final=row.ProduccionFinal,
            lote_completado=bool(row.LoteCompletado),
            pendientes=int(row.Pendientes or 0),
        )

    async def cancel_batches(self, desde: int, hasta: int) -> int:
        completed = select(Control.Consecutivo).where(Control.LoteCompletado == true())
        stmt = (
            update(Programacion)
            .where(
                Programacion.Consecutivo.between(desde, hasta),
                Programacion.Cancelado == false(),
                Programacion.Consecutivo.not_in(completed),
            )
            .values(Cancelado=True, FechaCancelacion=self.clock())
            .execution_options(synchronize_session=False)
        )

        async def cancel(session: AsyncSession) -> int:
            return (await session.execute(stmt)).rowcount

        async with self._uow("cancelar_lotes") as uow:
            canceled = await uow.run(cancel)

        logger.info("Canceled %d batch(es) in range %d..%d", canceled, desde, hasta)
        return canceled

    async def record_weight(self, data: PesoRequest) -> PesoResponse:
        return await register_weight(self.manager, data, clock=self.clock)

    # ── Authentication ────────────────────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> LoginResponse:
        async def fetch(session: AsyncSession):
            result = await session.execute(
                select(Usuario).where(Usuario.Username == username, Usuario.Activo == true())
            )
            return result.scalar_one_or_none()

        async with self._uow("login") as uow:
            usuario = await uow.run(fetch)

        if usuario is None or not verify_password(password, usuario.Salt, usuario.PasswordHash):
            logger.warning("Failed login for username=%s", username)
            raise AuthenticationError()

        logger.info("User %s logged in", username)
        return LoginResponse(
            nombre=usuario.Nombre,
            correo=usuario.Correo,
            plan_activo=bool(usuario.PlanActivo),
        )


# ══════════════════════════════════════════════════════════════════════════
# Shared steps
# ══════════════════════════════════════════════════════════════════════════


def _as_items(rows, model):
    return [model.model_validate(row) for row in rows]


async def _ensure_unique_ingredient_name(
    session: AsyncSession, nombre: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Ingrediente.Id).where(func.lower(Ingrediente.Nombre) == nombre.lower())
    if exclude_id is not None:
        query = query.where(Ingrediente.Id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise ConflictError(
            message=f"Ya existe un ingrediente con el nombre '{nombre}'",
            context={"nombre": nombre},
        )


async def _ensure_category_exists(session: AsyncSession, categoria_id: int) -> None:
    if await session.get(Categoria, categoria_id) is None:
        raise ValidationError(
            message=f"La categoría {categoria_id} no existe",
            field="CategoriaId",
        )


async def _ensure_ingredients_exist(
    session: AsyncSession, ingredientes: List[IngredienteReceta]
) -> None:
    wanted = {linea.ingrediente_id for linea in ingredientes}
    result = await session.execute(select(Ingrediente.Id).where(Ingrediente.Id.in_(wanted)))
    missing = sorted(wanted - set(result.scalars().all()))
    if missing:
        raise ValidationError(
            message=f"Ingredientes inexistentes: {', '.join(str(i) for i in missing)}",
            field="Ingredientes",
            context={"missing": missing},
        )


async def _insert_recipe(
    session: AsyncSession, codigo: str, ingredientes: List[IngredienteReceta]
) -> None:
    await session.execute(
        insert(ProductoTerminadoDetalle),
        [
            {
                "CodigoProducto": codigo,
                "Secuencia": secuencia,
                "IngredienteId": linea.ingrediente_id,
                "Porcentaje": linea.porcentaje,
            }
            for secuencia, linea in enumerate(ingredientes, start=1)
        ],
    )
