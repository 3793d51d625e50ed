"""Storage engine for the points ledger.

The engine owns one SQLAlchemy ``Engine`` and hands out units of work as
SQLModel sessions. Every balance change runs inside a single write unit so the
account row and its history entry commit or roll back together.

On SQLite the driver's implicit transaction handling is disabled and units are
opened explicitly: write units with ``BEGIN IMMEDIATE`` (taking the database
write lock before the balance is read), read units with a deferred ``BEGIN``.
Combined with WAL journaling this lets readers proceed while writers are
serialized. Other backends rely on ``SELECT ... FOR UPDATE`` issued by the
repository.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from ..models import db as _db_models  # noqa: F401 - ensure models register with metadata
from ..services.repository import LedgerRepository
from .config import Settings
from .errors import StorageError, WriteConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONFLICT_MARKERS = ("locked", "busy", "deadlock", "could not serialize")
_UNIQUE_MARKERS = ("unique", "duplicate key")


def create_engine_for_url(database_url: str, *, busy_timeout: float = 5.0) -> Engine:
    connect_args: dict[str, Any] = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = {"check_same_thread": False, "timeout": busy_timeout}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        _install_sqlite_hooks(engine)
    return engine


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # Hand transaction control to the "begin" hook below.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


def ensure_sqlite_directory(database_url: str) -> Optional[Path]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database:
        return None
    if url.database == ":memory:":
        return None
    path = Path(url.database)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("storage.directory_created", extra={"directory": str(path.parent)})
    return path


def is_write_conflict(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, IntegrityError):
        # Only a uniqueness race on lazy account creation is a write race.
        message = str(exc.orig).lower()
        return any(marker in message for marker in _UNIQUE_MARKERS)
    if isinstance(exc, OperationalError):
        message = str(exc.orig).lower()
        return any(marker in message for marker in _CONFLICT_MARKERS)
    return False


def translate_error(exc: SQLAlchemyError) -> StorageError:
    if is_write_conflict(exc):
        return WriteConflictError(f"Concurrent write conflict: {exc.orig}")
    return StorageError(f"Storage failure: {exc}")


class StorageEngine:
    """Explicitly owned handle on the ledger store."""

    def __init__(self, engine: Engine, *, conflict_retries: int = 1) -> None:
        self.engine = engine
        self.conflict_retries = conflict_retries
        self._write_engine = engine.execution_options(sqlite_begin="IMMEDIATE")

    @classmethod
    def from_url(
        cls,
        database_url: str,
        *,
        busy_timeout: float = 5.0,
        conflict_retries: int = 1,
    ) -> "StorageEngine":
        ensure_sqlite_directory(database_url)
        engine = create_engine_for_url(database_url, busy_timeout=busy_timeout)
        return cls(engine, conflict_retries=conflict_retries)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageEngine":
        database_url = settings.resolve_database_url()
        storage = cls.from_url(
            database_url,
            busy_timeout=settings.busy_timeout_seconds,
            conflict_retries=settings.conflict_retries,
        )
        logger.info(
            "storage.location",
            extra={"database_url": storage.safe_url, "platform": settings.platform},
        )
        return storage

    @property
    def safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    @property
    def database_path(self) -> Optional[Path]:
        url = self.engine.url
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            return None
        return Path(url.database)

    def init_schema(self) -> None:
        try:
            SQLModel.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise translate_error(exc) from exc

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("storage.closed", extra={"database_url": self.safe_url})

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------
    def begin(self, *, write: bool = False) -> Session:
        bind = self._write_engine if write else self.engine
        session = Session(bind, expire_on_commit=False)
        session.begin()
        return session

    def commit(self, session: Session) -> None:
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise translate_error(exc) from exc
        finally:
            session.close()

    def abort(self, session: Session) -> None:
        try:
            session.rollback()
        finally:
            session.close()

    @contextmanager
    def transaction(self, *, write: bool = False) -> Iterator[LedgerRepository]:
        session = self.begin(write=write)
        try:
            yield LedgerRepository(session, locking=write)
        except SQLAlchemyError as exc:
            self.abort(session)
            raise translate_error(exc) from exc
        except BaseException:
            self.abort(session)
            raise
        self.commit(session)

    def run_in_transaction(
        self,
        work: Callable[[LedgerRepository], T],
        *,
        write: bool = True,
    ) -> T:
        """Run ``work`` in one unit, retrying on a detected write conflict."""
        attempt = 0
        while True:
            try:
                with self.transaction(write=write) as repository:
                    return work(repository)
            except WriteConflictError as exc:
                if attempt >= self.conflict_retries:
                    logger.error(
                        "storage.conflict_retries_exhausted",
                        extra={"attempts": attempt + 1},
                        exc_info=exc,
                    )
                    raise
                attempt += 1
                logger.warning(
                    "storage.conflict_retry",
                    extra={"attempt": attempt, "error": str(exc)},
                )
