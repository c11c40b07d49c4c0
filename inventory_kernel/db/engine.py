"""
Engine and session factory for a tenant's inventory database.

The CRUD layer resolves the tenant, calls ``init_engine_from_url`` once
with that tenant's URL and hands sessions from ``get_session`` (or
``session_scope``) to the services. Kernel services only flush; module
services commit.

PostgreSQL runs at READ COMMITTED. Stock correctness comes from the
conditional UPDATE in ``StockStore.apply_delta`` and from the guarded status
UPDATE in ``TransitionLog``, not from the isolation level.

SQLite is used for local runs and the test suite. It runs in WAL mode with
a busy timeout so two sessions can interleave. The driver is switched to
autocommit with SQLAlchemy emitting BEGIN, because pysqlite's deferred
BEGIN breaks the SAVEPOINTs used for lazy stock-record and counter
inserts.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _configure_sqlite(engine: Engine) -> None:
    file_backed = engine.url.database not in (None, "", ":memory:")

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_SECONDS * 1000}")
            if file_backed:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Build the engine and session factory for ``database_url``.

    Calling it again replaces the previous engine (the old one is not
    disposed; use ``reset_engine`` for that). Pool options apply to
    PostgreSQL only.
    """
    global _engine, _session_factory

    backend = make_url(database_url).get_backend_name()
    if backend == "postgresql":
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
        )
        _configure_sqlite(engine)

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={"backend": backend, "echo": echo})
    return engine


def _require_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("database engine not initialized; call init_engine_from_url() first")
    return _session_factory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("database engine not initialized; call init_engine_from_url() first")
    return _engine


def get_session() -> Session:
    return _require_factory()()


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that need one session per worker (race tests)."""
    return _require_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on clean exit, roll back and re-raise otherwise.

        with session_scope() as session:
            InventoryService(session).adjust(...)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """
    Create the kernel tables (catalog, stock, movements, transitions,
    counters). ``inventory_modules.create_all_tables`` adds the transfer
    and purchase order tables on top.
    """
    import inventory_kernel.models  # noqa: F401
    import inventory_kernel.services.sequence_service  # noqa: F401
    from inventory_kernel.db.base import Base

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    from inventory_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
