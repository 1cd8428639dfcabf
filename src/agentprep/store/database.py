"""Database engine with serializable write transactions.

This module provides:
- Database: Connection manager with WAL mode so concurrent CLI invocations
  can read while one of them writes
- immediate_transaction: BEGIN IMMEDIATE sessions for check-then-insert
  sequences that must not interleave across processes
- Retry logic for SQLite busy timeout handling
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 0.1  # 100ms base
DEFAULT_RETRY_MAX_DELAY = 2.0  # 2s max


def _is_database_locked_error(error: Exception) -> bool:
    """Check if error is a SQLite database locked error."""
    error_str = str(error).lower()
    return "database is locked" in error_str or "database is busy" in error_str


class Database:
    """SQLite connection manager with WAL mode for concurrent access.

    Includes retry logic with exponential backoff for handling
    SQLite busy timeouts during concurrent writes.
    """

    def __init__(
        self,
        db_path: Path,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    ) -> None:
        self.db_path = db_path
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _configure_pragmas)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for reads and single-row updates."""
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    @contextmanager
    def immediate_transaction(
        self,
        max_retries: int | None = None,
    ) -> Generator[Session, None, None]:
        """
        Session with BEGIN IMMEDIATE for serializable writes.

        BEGIN IMMEDIATE acquires a RESERVED lock immediately, blocking
        other writers but allowing readers. Only acquiring the lock is
        retried; once the body has run, errors propagate.

        The session auto-commits on successful exit and rolls back
        on exception.

        Args:
            max_retries: Override default max retries (default: 3)
        """
        retries = max_retries if max_retries is not None else self._max_retries

        for attempt in range(retries + 1):  # +1 for initial attempt
            session = Session(self.engine, expire_on_commit=False)
            try:
                session.execute(text("BEGIN IMMEDIATE"))
            except OperationalError as e:
                session.close()
                if _is_database_locked_error(e) and attempt < retries:
                    delay = min(
                        self._retry_base_delay * (2**attempt),
                        self._retry_max_delay,
                    )
                    logger.warning(
                        "sqlite_busy_retry",
                        attempt=attempt + 1,
                        max_retries=retries,
                        delay_sec=delay,
                    )
                    time.sleep(delay)
                    continue
                raise

            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
            return

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
    """Configure SQLite for concurrent access."""
    # pysqlite opens transactions lazily; let BEGIN IMMEDIATE through as issued
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second wait
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.close()
