"""
Produccion API — Connection Pool & Unit of Work
===============================================

What:  Owned async SQLAlchemy engine (connection pool) plus a transaction scope.
How:   ConnectionManager lazily builds one engine for the process and hands it
       out; UnitOfWork opens a session on it, runs typed steps, and commits on
       success or rolls back on any failure.
Who:   ConnectionManager is created by the application lifespan and owned by
       LiveDataStore; UnitOfWork is opened by every LiveDataStore operation.
When:  Engine on first use after startup; a session per operation.

Connection Pooling Strategy:
    pool_size / max_overflow come from settings (defaults 10 + 5).
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.
    On a connection-level failure the engine is disposed and forgotten, so the
    next call builds a fresh pool instead of reusing broken connections.

Fixture mode:
    ConnectionManager.get_engine() returns None when no credentials are
    configured. That is a mode signal, not an error.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from sqlalchemy import event, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from produccion.config import Settings
from produccion.exceptions import ConflictError, DatabaseError, ProduccionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A unit-of-work step: receives the transaction's session, returns a value
Step = Callable[[AsyncSession], Awaitable[T]]


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for the SQLAlchemy mappings of the existing SQL Server schema.

    The schema is owned by the plant's database; these mappings only
    describe it. Tests use Base.metadata.create_all against SQLite.
    """
    pass


def build_database_url(settings: Settings) -> Optional[Union[URL, str]]:
    """
    What:    Builds the SQLAlchemy URL for the configured SQL Server.
    Returns: DATABASE_URL verbatim when set, an `mssql+aioodbc` URL built from
             the resolved DB_* / appsettings fields, or None (fixture mode).
    """
    if settings.database_url:
        return settings.database_url

    fields = settings.connection_fields()
    if not all(fields.get(name) for name in ("db_host", "db_name", "db_user", "db_password")):
        return None

    return URL.create(
        "mssql+aioodbc",
        username=str(fields["db_user"]),
        password=str(fields["db_password"]),
        host=str(fields["db_host"]),
        port=int(fields.get("db_port") or 1433),
        database=str(fields["db_name"]),
        query={
            "driver": settings.db_driver,
            "Encrypt": "yes" if fields.get("db_encrypt") else "no",
            "TrustServerCertificate": "yes" if fields.get("db_trust_server_certificate") else "no",
        },
    )


def is_connection_error(exc: BaseException) -> bool:
    """True for failures that mean the pooled connections cannot be trusted."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, (OperationalError, InterfaceError))


def _log_engine_error(context: Any) -> None:
    """SQLAlchemy `handle_error` listener: every DBAPI failure lands in the log."""
    logger.error(
        "SQL error: %s",
        context.original_exception,
        extra={"statement": context.statement},
    )


class ConnectionManager:
    """
    Owns the process-wide async engine.

    Lifecycle:
        1. Constructed at startup with the application settings
        2. get_engine() builds the engine on first call and caches it
        3. discard() disposes the cached engine after a connection failure
        4. dispose() closes every pooled connection at shutdown

    Handlers never hold the engine; they go through a DataStore.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def configured(self) -> bool:
        return self._settings.has_database_credentials()

    def get_engine(self) -> Optional[AsyncEngine]:
        """Return the cached engine, creating it if needed; None in fixture mode."""
        if self._engine is not None:
            return self._engine

        url = build_database_url(self._settings)
        if url is None:
            return None

        url = make_url(url)
        kwargs: dict = {
            "pool_pre_ping": self._settings.db_pool_pre_ping,
            "pool_recycle": 3600,
        }
        # SQLite pools (used by the test-suite) reject sizing arguments
        if url.get_backend_name() != "sqlite":
            kwargs["pool_size"] = self._settings.db_pool_size
            kwargs["max_overflow"] = self._settings.db_max_overflow

        engine = create_async_engine(url, **kwargs)
        event.listen(engine.sync_engine, "handle_error", _log_engine_error)

        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        logger.info(
            "Connection pool created for %s/%s",
            url.host or url.get_backend_name(),
            url.database or "",
        )
        return engine

    def session(self) -> AsyncSession:
        """Open a new session bound to the pooled engine."""
        if self.get_engine() is None or self._session_factory is None:
            raise DatabaseError(
                message="Database connection not configured",
                context={"reason": "no_credentials"},
            )
        return self._session_factory()

    async def ping(self) -> bool:
        """SELECT 1 against the pool; False on any failure or in fixture mode."""
        engine = self.get_engine()
        if engine is None:
            return False
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            if is_connection_error(e):
                await self.discard()
            return False

    async def discard(self) -> None:
        """Forget the cached engine so the next call reconnects from scratch."""
        engine, self._engine = self._engine, None
        self._session_factory = None
        if engine is not None:
            logger.warning("Discarding connection pool after connection failure")
            await engine.dispose()

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Connection pool closed")


class UnitOfWork:
    """
    One database transaction expressed as a sequence of typed steps.

    Usage:
        async with UnitOfWork(manager, "registrar_peso") as uow:
            updated = await uow.run(update_line)
            remaining = await uow.run(count_pending)

    Contract:
        - Exiting normally commits.
        - Any exception rolls back everything done in the block.
        - IntegrityError surfaces as ConflictError (409).
        - Any other SQLAlchemyError surfaces as DatabaseError (500); on
          connection failures the pool is discarded first.
        - Application errors (ProduccionError) propagate unchanged.
    """

    def __init__(self, manager: ConnectionManager, name: str = "unit_of_work"):
        self._manager = manager
        self.name = name
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "UnitOfWork":
        self.session = self._manager.session()
        return self

    async def run(self, step: Step[T]) -> T:
        """Execute one step inside the transaction."""
        if self.session is None:
            raise RuntimeError("UnitOfWork.run() called outside 'async with'")
        logger.debug("[%s] step %s", self.name, getattr(step, "__name__", repr(step)))
        return await step(self.session)

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        session = self.session
        if session is None:
            return False
        try:
            if exc is None:
                try:
                    await session.commit()
                except SQLAlchemyError as commit_error:
                    await self._rollback(session)
                    raise await self._translate(commit_error) from commit_error
                return False

            await self._rollback(session)
            if isinstance(exc, SQLAlchemyError):
                raise await self._translate(exc) from exc
            return False
        finally:
            await session.close()
            self.session = None

    async def _rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.warning("[%s] Rollback failed: %s", self.name, e)

    async def _translate(self, exc: SQLAlchemyError) -> ProduccionError:
        if isinstance(exc, IntegrityError):
            logger.warning("[%s] Integrity violation: %s", self.name, exc.orig)
            return ConflictError(
                message="El registro ya existe o viola una restricción",
                context={"operation": self.name},
            )

        logger.error("[%s] Database error: %s", self.name, exc, exc_info=exc)
        if is_connection_error(exc):
            await self._manager.discard()
        return DatabaseError(
            context={"operation": self.name, "error_type": type(exc).__name__},
        )
