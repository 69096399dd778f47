"""
Database configuration, session management and the transaction primitive.
Uses SQLAlchemy 2.0 patterns.
"""

import os
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

T = TypeVar("T")


def _calculate_pool_size() -> int:
    """
    Calculate pool size based on CPU cores.
    Formula: (2 * CPU cores) + 1, capped at 20.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _engine_options(database_url: str) -> dict[str, Any]:
    """Engine keyword arguments suited to the target dialect."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": 15,
        "pool_timeout": 30,  # Wait max 30s for connection from pool
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Make SAVEPOINT reliable on the pysqlite driver.

    pysqlite defers BEGIN until the first data-modifying statement, so a
    savepoint opened before any write would start the transaction itself and
    commit on release. The driver's own transaction handling is switched off
    and BEGIN is emitted whenever SQLAlchemy starts a transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        **_engine_options(settings.database_url),
    )
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


# Session factory, bound on first session creation
SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
)


def _new_session() -> Session:
    if SessionLocal.kw.get("bind") is None:
        SessionLocal.configure(bind=get_engine())
    return SessionLocal()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency-style generator for database sessions.

    Usage:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return ItemService(BaseRepository(Item, db)).all()

    The session is automatically closed after the request completes.
    """
    db = _new_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of a request.

    Usage:
        with get_db_context() as db:
            BaseRepository(Item, db).all()
    """
    db = _new_session()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


class TransactionManager:
    """
    Atomic unit-of-work boundary over a Session.

    ``run(fn)`` commits when ``fn`` returns and undoes the work of ``fn``
    when it raises, re-raising the original exception unchanged.

    A ``run`` nested inside another ``run`` on the same session executes in
    a SAVEPOINT: a failure rolls back only the inner work and the outermost
    call still decides whether to commit. An outermost ``run`` started while
    the session already holds uncommitted work also uses a SAVEPOINT, so a
    failure leaves that earlier work pending. The nesting depth lives in
    ``session.info`` so every manager bound to the same session agrees on it.

    Usage:
        transactions = TransactionManager(db)
        product = transactions.run(lambda: repo.create({"name": "Lamp"}))
    """

    DEPTH_KEY = "repokit.transaction_depth"

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    @property
    def depth(self) -> int:
        """Number of ``run`` calls currently active on the session."""
        return self._session.info.get(self.DEPTH_KEY, 0)

    @property
    def active(self) -> bool:
        """True while inside a ``run`` call."""
        return self.depth > 0

    def run(self, fn: Callable[[], T]) -> T:
        """
        Execute ``fn`` inside the transaction boundary.

        Args:
            fn: Zero-argument callable performing the unit of work.

        Returns:
            Whatever ``fn`` returns.
        """
        depth = self.depth
        use_savepoint = depth > 0 or self._session.in_transaction()
        self._session.info[self.DEPTH_KEY] = depth + 1
        try:
            if use_savepoint:
                result = self._run_in_savepoint(fn)
            else:
                result = self._run_in_transaction(fn)
            if depth == 0:
                safe_commit(self._session)
                logger.debug("Transaction committed")
        finally:
            self._session.info[self.DEPTH_KEY] = depth
        return result

    def _run_in_transaction(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except Exception:
            self._session.rollback()
            logger.debug("Transaction rolled back")
            raise

    def _run_in_savepoint(self, fn: Callable[[], T]) -> T:
        try:
            with self._session.begin_nested():
                return fn()
        except Exception:
            logger.debug("Savepoint rolled back", depth=self.depth)
            raise
