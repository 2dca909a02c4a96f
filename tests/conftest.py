"""
Produccion API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── clock: Controllable "now" for weigh-ins and cancellations
    ├── manager: ConnectionManager over a fresh SQLite file with the schema
    ├── store: LiveDataStore over `manager`, seeded with sample plant data
    ├── fixture_client: HTTPX AsyncClient, app in fixture (mock) mode
    └── live_client: HTTPX AsyncClient, app over the seeded SQLite store

Seed data (see `seed`):
    Batch 1  PT-001, line L1, 2024-01-15, three pending lines (ingredients 1, 2, 3)
    Batch 2  PT-001, canceled, one pending line
    Batch 3  PT-001, completed, one weighed line
    Batch 4  PT-002, line L2, 2024-01-16, one pending line
"""

import os
from datetime import date, datetime, timedelta

# Override settings for testing BEFORE any app imports
os.environ["LOG_FILE"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["APPSETTINGS_PATH"] = os.path.join(os.path.dirname(__file__), "no-appsettings.json")
for _name in ("DATABASE_URL", "DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD", "API_KEY"):
    os.environ.pop(_name, None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from produccion.config import Settings
from produccion.database import Base, ConnectionManager
from produccion.models import (
    Categoria,
    Cliente,
    Ingrediente,
    ProductoTerminado,
    ProductoTerminadoDetalle,
    ProgramacionProduccion,
    ProgramacionProduccionControl,
    ProgramacionProduccionDetalle,
    Proveedor,
    UnidadMedida,
    Usuario,
)
from produccion.services.fixture_store import FixtureDataStore
from produccion.services.live_store import LiveDataStore
from produccion.services.security import hash_password


class FakeClock:
    """Returns a fixed instant; `advance()` moves it forward."""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 8, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'produccion.db'}",
        "log_file": "",
        "api_key": None,
    }
    values.update(overrides)
    return Settings(**values)


async def seed(manager: ConnectionManager) -> None:
    """Create the schema and insert the sample plant data."""
    engine = manager.get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = manager.session()
    async with session.begin():
        session.add_all([
            Cliente(Identificador=1, Cliente="Panadería Beta", Activo=True),
            Cliente(Identificador=2, Cliente="Alimentos Alfa", Activo=True),
            Cliente(Identificador=3, Cliente="Zeta Retirada", Activo=False),
            Categoria(Id=1, Nombre="Harinas", Activo=True),
            Categoria(Id=2, Nombre="Aditivos", Activo=False),
            Proveedor(Id=1, Nombre="Molinos del Sur", Contacto="ventas@molinos.test", Activo=True),
            Proveedor(Id=2, Nombre="Químicos Norte", Contacto=None, Activo=False),
            UnidadMedida(Id=1, Nombre="Kilogramo", Abreviatura="kg", Activo=True),
            UnidadMedida(Id=2, Nombre="Libra", Abreviatura="lb", Activo=False),
            Ingrediente(Id=1, Nombre="Harina de trigo", CategoriaId=1, Activo=True),
            Ingrediente(Id=2, Nombre="Azúcar", CategoriaId=1, Activo=True),
            Ingrediente(Id=3, Nombre="Sal", Descripcion="Sal refinada", CategoriaId=2, Activo=False),
            ProductoTerminado(Codigo="PT-001", Nombre="Mezcla Pan", ClienteId=1, Activo=True),
            ProductoTerminado(Codigo="PT-002", Nombre="Mezcla Galleta", ClienteId=2, Activo=False),
            ProductoTerminadoDetalle(CodigoProducto="PT-001", Secuencia=1, IngredienteId=1, Porcentaje=70.0),
            ProductoTerminadoDetalle(CodigoProducto="PT-001", Secuencia=2, IngredienteId=2, Porcentaje=25.0),
            ProductoTerminadoDetalle(CodigoProducto="PT-001", Secuencia=3, IngredienteId=3, Porcentaje=5.0),
            Usuario(
                Id=1,
                Username="operador",
                Nombre="Operador Uno",
                Correo="operador@planta.test",
                Salt="abc123",
                PasswordHash=hash_password("secreto", "abc123").upper(),
                PlanActivo=True,
                Activo=True,
            ),
            Usuario(
                Id=2,
                Username="baja",
                Nombre="Usuario Baja",
                Salt="s",
                PasswordHash=hash_password("secreto", "s"),
                PlanActivo=False,
                Activo=False,
            ),
        ])

        session.add_all([
            ProgramacionProduccion(Consecutivo=1, ProductoTerminado="PT-001", Lote="L-0001", Cancelado=False),
            ProgramacionProduccion(Consecutivo=2, ProductoTerminado="PT-001", Lote="L-0002", Cancelado=True),
            ProgramacionProduccion(Consecutivo=3, ProductoTerminado="PT-001", Lote="L-0003", Cancelado=False),
            ProgramacionProduccion(Consecutivo=4, ProductoTerminado="PT-002", Lote="L-0004", Cancelado=False),
            ProgramacionProduccionControl(
                Consecutivo=1, FechaProgramada=date(2024, 1, 15), LineaMezclado="L1", LoteCompletado=False
            ),
            ProgramacionProduccionControl(
                Consecutivo=2, FechaProgramada=date(2024, 1, 15), LineaMezclado="L1", LoteCompletado=False
            ),
            ProgramacionProduccionControl(
                Consecutivo=3,
                FechaProgramada=date(2024, 1, 14),
                LineaMezclado="L1",
                ProduccionInicio=datetime(2024, 1, 14, 7, 0),
                ProduccionFinal=datetime(2024, 1, 14, 7, 30),
                LoteCompletado=True,
            ),
            ProgramacionProduccionControl(
                Consecutivo=4, FechaProgramada=date(2024, 1, 16), LineaMezclado="L2", LoteCompletado=False
            ),
        ])
        for secuencia, (ingrediente, objetivo, porcentaje) in enumerate(
            [("1", 70.0, 70.0), ("2", 25.0, 25.0), ("3", 5.0, 5.0)], start=1
        ):
            session.add(
                ProgramacionProduccionDetalle(
                    Consecutivo=1,
                    ProductoTerminado="PT-001",
                    Secuencia=secuencia,
                    Ingrediente=ingrediente,
                    PesoObjetivo=objetivo,
                    Porcentaje=porcentaje,
                )
            )
        session.add_all([
            ProgramacionProduccionDetalle(
                Consecutivo=2, ProductoTerminado="PT-001", Secuencia=1, Ingrediente="1", PesoObjetivo=70.0
            ),
            ProgramacionProduccionDetalle(
                Consecutivo=3,
                ProductoTerminado="PT-001",
                Secuencia=1,
                Ingrediente="1",
                PesoObjetivo=70.0,
                Tara=1.0,
                Peso=70.2,
                TiempoDePesado=datetime(2024, 1, 14, 7, 30),
            ),
            ProgramacionProduccionDetalle(
                Consecutivo=4, ProductoTerminado="PT-002", Secuencia=1, Ingrediente="2", PesoObjetivo=10.0
            ),
        ])
    await session.close()


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path):
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def manager(test_settings):
    """
    ConnectionManager over a seeded SQLite file.

    Usage:
        async def test_x(manager):
            async with UnitOfWork(manager, "x") as uow:
                ...
    """
    mgr = ConnectionManager(test_settings)
    await seed(mgr)
    yield mgr
    await mgr.dispose()


@pytest_asyncio.fixture
async def store(manager, clock):
    return LiveDataStore(manager, clock=clock)


async def fetch_one(manager: ConnectionManager, model, **filters):
    """Read a single row straight from the database (outside the store)."""
    session = manager.session()
    try:
        query = select(model).filter_by(**filters)
        return (await session.execute(query)).scalar_one_or_none()
    finally:
        await session.close()


async def count_rows(manager: ConnectionManager, model, **filters) -> int:
    session = manager.session()
    try:
        query = select(func.count()).select_from(model).filter_by(**filters)
        return (await session.execute(query)).scalar_one()
    finally:
        await session.close()


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def fixture_client(tmp_path):
    """
    HTTPX AsyncClient over the app in fixture (mock) mode.

    ASGITransport does not run the lifespan, so the store is passed in.
    """
    from produccion.main import create_app

    app = create_app(make_settings(tmp_path, database_url=None), store=FixtureDataStore())
    async with _client(app) as client:
        yield client


@pytest_asyncio.fixture
async def live_client(test_settings, store):
    """HTTPX AsyncClient over the app backed by the seeded SQLite store."""
    from produccion.main import create_app

    app = create_app(test_settings, store=store)
    async with _client(app) as client:
        yield client
