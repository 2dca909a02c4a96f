"""
Produccion API — Unit of Work Tests
===================================

What:  Transaction scope semantics of UnitOfWork over SQLite.

What we test:
    ✅ Normal exit commits every step
    ✅ Application errors roll back and propagate unchanged
    ✅ IntegrityError → ConflictError, other SQLAlchemy errors → DatabaseError
    ✅ Connection-level errors discard the pool
    ✅ No credentials → DatabaseError on entry
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import insert, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from produccion.database import ConnectionManager, UnitOfWork
from produccion.exceptions import ConflictError, DatabaseError, NotFoundError
from produccion.models import Categoria

from conftest import fetch_one, make_settings


async def rename_category(session):
    await session.execute(update(Categoria).where(Categoria.Id == 1).values(Nombre="Renombrada"))


class TestUnitOfWork:

    @pytest.mark.asyncio
    async def test_commit_on_success(self, manager):
        async with UnitOfWork(manager, "test") as uow:
            await uow.run(rename_category)

        assert (await fetch_one(manager, Categoria, Id=1)).Nombre == "Renombrada"

    @pytest.mark.asyncio
    async def test_application_error_rolls_back(self, manager):
        with pytest.raises(NotFoundError):
            async with UnitOfWork(manager, "test") as uow:
                await uow.run(rename_category)
                raise NotFoundError(resource="algo")

        assert (await fetch_one(manager, Categoria, Id=1)).Nombre == "Harinas"

    @pytest.mark.asyncio
    async def test_integrity_error_becomes_conflict(self, manager):
        async def duplicate_pk(session):
            await session.execute(insert(Categoria).values(Id=1, Nombre="Otra", Activo=True))

        with pytest.raises(ConflictError):
            async with UnitOfWork(manager, "test") as uow:
                await uow.run(rename_category)
                await uow.run(duplicate_pk)

        assert (await fetch_one(manager, Categoria, Id=1)).Nombre == "Harinas"

    @pytest.mark.asyncio
    async def test_sqlalchemy_error_becomes_database_error(self, manager):
        async def broken(session):
            raise SQLAlchemyError("boom")

        with pytest.raises(DatabaseError) as exc_info:
            async with UnitOfWork(manager, "consulta") as uow:
                await uow.run(broken)

        assert exc_info.value.context["operation"] == "consulta"
        assert exc_info.value.message == "Error al consultar la base de datos"

    @pytest.mark.asyncio
    async def test_connection_error_discards_pool(self, manager):
        async def lost(session):
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))

        with patch.object(manager, "discard", new_callable=AsyncMock) as discard:
            with pytest.raises(DatabaseError):
                async with UnitOfWork(manager, "test") as uow:
                    await uow.run(lost)

        discard.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unconfigured_manager(self, tmp_path):
        manager = ConnectionManager(
            make_settings(tmp_path, database_url=None, appsettings_path=str(tmp_path / "none.json"))
        )

        with pytest.raises(DatabaseError):
            async with UnitOfWork(manager, "test"):
                pass


class TestConnectionManager:

    @pytest.mark.asyncio
    async def test_engine_cached(self, manager):
        assert manager.get_engine() is manager.get_engine()

    @pytest.mark.asyncio
    async def test_discard_rebuilds_engine(self, manager):
        first = manager.get_engine()
        await manager.discard()

        assert manager.get_engine() is not first
        assert await manager.ping() is True
