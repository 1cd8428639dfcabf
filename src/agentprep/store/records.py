"""Preparation record store.

All reads and writes of ``PreparationRecord`` go through ``RecordStore``.
Callers receive detached model instances; every SQLAlchemy failure is
re-raised as ``PersistenceError``.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from agentprep.config.constants import STATUS_CREATED, STATUS_RUNNING
from agentprep.core.errors import PersistenceError
from agentprep.store.database import Database
from agentprep.store.models import PreparationRecord

logger = structlog.get_logger()


def new_uid() -> str:
    return uuid4().hex


class RecordStore:
    """Keyed storage for preparation records.

    A record is keyed by ``(program_type, process)`` when a process name is
    known, so a restarted target still maps to its record; otherwise by
    ``(program_type, pid)``.
    """

    def __init__(self, db: Database, clock: Callable[[], float] = time.time) -> None:
        self._db = db
        self._clock = clock

    @classmethod
    def open(cls, db: Database, clock: Callable[[], float] = time.time) -> RecordStore:
        """Create tables if needed and return a store over ``db``."""
        try:
            db.create_all()
        except SQLAlchemyError as e:
            raise PersistenceError.operation_failed("open record store", str(e)) from e
        return cls(db, clock)

    @contextmanager
    def _guard(self, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.warning("record_store_error", operation=operation, error=str(e))
            raise PersistenceError.operation_failed(operation, str(e)) from e

    @staticmethod
    def _key_query(program_type: str, process: str, pid: str) -> Any:
        stmt = select(PreparationRecord).where(PreparationRecord.program_type == program_type)
        if process:
            stmt = stmt.where(PreparationRecord.process == process)
        else:
            stmt = stmt.where(PreparationRecord.pid == pid)
        return stmt.order_by(col(PreparationRecord.create_time).desc())

    def _find_running(
        self, session: Session, program_type: str, process: str, pid: str
    ) -> PreparationRecord | None:
        stmt = self._key_query(program_type, process, pid).where(
            PreparationRecord.status == STATUS_RUNNING
        )
        return session.exec(stmt).first()

    # =========================================================================
    # Queries
    # =========================================================================

    def find_record(self, program_type: str, process: str, pid: str) -> PreparationRecord | None:
        """Return the target's Running record, else its most recent record, else None."""
        with self._guard("query attach java process record"), self._db.session() as session:
            running = self._find_running(session, program_type, process, pid)
            if running is not None:
                return running
            return session.exec(self._key_query(program_type, process, pid)).first()

    def find_record_by_uid(self, uid: str) -> PreparationRecord | None:
        with self._guard("query preparation by uid"), self._db.session() as session:
            return session.get(PreparationRecord, uid)

    def list_records(
        self,
        program_type: str | None = None,
        status: str | None = None,
        limit: int = 50,
    ) -> list[PreparationRecord]:
        """Most recent records first."""
        stmt = select(PreparationRecord)
        if program_type:
            stmt = stmt.where(PreparationRecord.program_type == program_type)
        if status:
            stmt = stmt.where(PreparationRecord.status == status)
        stmt = stmt.order_by(col(PreparationRecord.create_time).desc()).limit(limit)
        with self._guard("list preparation records"), self._db.session() as session:
            return list(session.exec(stmt).all())

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert_record(
        self,
        program_type: str,
        process: str,
        port: int,
        pid: str,
    ) -> tuple[PreparationRecord, bool]:
        """Insert a record unless the target already has a Running one.

        The check and the insert share one BEGIN IMMEDIATE transaction, so
        two racing invocations cannot both create a record for a target.

        Returns:
            ``(record, created)``; ``created`` is False when an existing
            Running record was returned instead.
        """
        with self._guard("insert prepare record"), self._db.immediate_transaction() as session:
            existing = self._find_running(session, program_type, process, pid)
            if existing is not None:
                logger.debug("running_record_exists", uid=existing.uid)
                return existing, False

            now = self._clock()
            record = PreparationRecord(
                uid=new_uid(),
                program_type=program_type,
                process=process,
                pid=pid,
                port=port,
                status=STATUS_CREATED,
                create_time=now,
                update_time=now,
            )
            session.add(record)
            session.flush()
            logger.info("record_created", uid=record.uid, port=port, pid=pid, process=process)
            return record, True

    def _update(self, uid: str, operation: str, **values: Any) -> PreparationRecord:
        with self._guard(operation), self._db.session() as session:
            record = session.get(PreparationRecord, uid)
            if record is None:
                raise PersistenceError.record_missing(uid)
            for key, value in values.items():
                setattr(record, key, value)
            record.update_time = self._clock()
            session.add(record)
            session.commit()
            return record

    def update_record_port(self, uid: str, port: int) -> PreparationRecord:
        return self._update(uid, "update preparation port", port=port)

    def update_record_pid(self, uid: str, pid: str) -> PreparationRecord:
        return self._update(uid, "update preparation pid", pid=pid)

    def update_record_status(self, uid: str, status: str, error: str = "") -> PreparationRecord:
        return self._update(uid, "update preparation status", status=status, error=error)

    def close(self) -> None:
        self._db.dispose()
