"""Durable per-entity tables backed by SQLite.

Every public method is a coroutine: the blocking SQLAlchemy session work runs
in a worker thread via asyncio.to_thread, so callers on the UI event loop only
suspend while I/O completes. A store-wide lock serializes sessions; a single
call is atomic for its record, and delete_batch is atomic for the whole batch.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager
from dataclasses import fields
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Sequence

from sqlalchemy import create_engine, delete, event, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .db_models import ROW_TYPES, InventoryBase
from .errors import StorageError, ValidationError
from .models import ENTITY_TYPES, PARENT_FIELD, Table

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class PersistentStore:
    """Async access to the houses/floors/rooms/furniture/items tables."""

    def __init__(self, path: Path | str = MEMORY) -> None:
        self.path = path
        self._in_memory = str(path) == MEMORY
        try:
            if self._in_memory:
                # одно соединение на все рабочие потоки, иначе у каждого своя пустая база
                self.engine = create_engine(
                    "sqlite://",
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
                self.engine = create_engine(
                    f"sqlite:///{path}", connect_args={"check_same_thread": False}
                )
            event.listen(self.engine, "connect", self._set_sqlite_pragma)
            InventoryBase.metadata.create_all(self.engine)
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"Cannot open database {path}: {exc}") from exc
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._lock = threading.Lock()
        logger.info("Opened inventory store at %s", path)

    def _set_sqlite_pragma(self, dbapi_conn, connection_record) -> None:
        """Set PRAGMAs on every new connection.

        Foreign key enforcement is per connection in SQLite; without it a
        parent row could be removed while children still point at it.
        """
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not self._in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning("Store operation failed: %s", exc)
                raise StorageError(str(exc)) from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    # ---- helpers ----
    @staticmethod
    def _to_entity(table: Table, row):
        cls = ENTITY_TYPES[table]
        return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})

    @staticmethod
    def _check_fields(table: Table, record: Mapping) -> None:
        allowed = {f.name for f in fields(ENTITY_TYPES[table])} - {"id"}
        unknown = set(record) - allowed
        if unknown:
            raise ValidationError(f"Unknown fields for {table.value}: {sorted(unknown)}")

    @staticmethod
    def _check_parent_field(table: Table, parent_field: str) -> None:
        if PARENT_FIELD.get(table) != parent_field:
            raise ValidationError(f"{table.value} has no parent field {parent_field!r}")

    # ---- sync bodies (run in worker threads) ----
    def _add(self, table: Table, record: dict) -> int:
        self._check_fields(table, record)
        with self._session() as session:
            row = ROW_TYPES[table](**record)
            session.add(row)
            session.flush()
            new_id = row.id
        logger.debug("Added %s #%s", table.value, new_id)
        return new_id

    def _get(self, table: Table, entity_id):
        with self._session() as session:
            row = session.get(ROW_TYPES[table], entity_id)
            return self._to_entity(table, row) if row is not None else None

    def _list_all(self, table: Table) -> list:
        row_type = ROW_TYPES[table]
        with self._session() as session:
            rows = session.scalars(select(row_type).order_by(row_type.id)).all()
            return [self._to_entity(table, r) for r in rows]

    def _list_by_parent(self, table: Table, parent_field: str, parent_id) -> list:
        self._check_parent_field(table, parent_field)
        row_type = ROW_TYPES[table]
        stmt = (select(row_type)
                .where(getattr(row_type, parent_field) == parent_id)
                .order_by(row_type.id))
        with self._session() as session:
            return [self._to_entity(table, r) for r in session.scalars(stmt).all()]

    def _update(self, table: Table, entity_id, patch: dict) -> bool:
        self._check_fields(table, patch)
        with self._session() as session:
            row = session.get(ROW_TYPES[table], entity_id)
            if row is None:
                return False
            for key, value in patch.items():
                setattr(row, key, value)
        logger.debug("Updated %s #%s: %s", table.value, entity_id, sorted(patch))
        return True

    def _delete(self, table: Table, entity_id) -> bool:
        with self._session() as session:
            row = session.get(ROW_TYPES[table], entity_id)
            if row is None:
                return False
            session.delete(row)
        logger.debug("Deleted %s #%s", table.value, entity_id)
        return True

    def _count(self, table: Table, parent_field: str | None, parent_id) -> int:
        row_type = ROW_TYPES[table]
        stmt = select(func.count()).select_from(row_type)
        if parent_field is not None:
            self._check_parent_field(table, parent_field)
            stmt = stmt.where(getattr(row_type, parent_field) == parent_id)
        with self._session() as session:
            return int(session.scalar(stmt) or 0)

    def _delete_batch(self, steps: Sequence[tuple[Table, Iterable]]) -> int:
        removed = 0
        with self._session() as session:
            for table, ids in steps:
                ids = list(ids)
                if not ids:
                    continue
                row_type = ROW_TYPES[Table(table)]
                result = session.execute(delete(row_type).where(row_type.id.in_(ids)))
                removed += result.rowcount or 0
        return removed

    # ---- public async API ----
    async def add(self, table: Table, record: Mapping) -> int:
        return await asyncio.to_thread(self._add, Table(table), dict(record))

    async def get(self, table: Table, entity_id):
        return await asyncio.to_thread(self._get, Table(table), entity_id)

    async def list_all(self, table: Table) -> list:
        return await asyncio.to_thread(self._list_all, Table(table))

    async def list_by_parent(self, table: Table, parent_field: str, parent_id) -> list:
        return await asyncio.to_thread(self._list_by_parent, Table(table), parent_field, parent_id)

    async def update(self, table: Table, entity_id, patch: Mapping) -> bool:
        return await asyncio.to_thread(self._update, Table(table), entity_id, dict(patch))

    async def delete(self, table: Table, entity_id) -> bool:
        return await asyncio.to_thread(self._delete, Table(table), entity_id)

    async def count(self, table: Table, parent_field: str | None = None, parent_id=None) -> int:
        return await asyncio.to_thread(self._count, Table(table), parent_field, parent_id)

    async def delete_batch(self, steps: Sequence[tuple[Table, Iterable]]) -> int:
        """Delete several id lists in order inside one transaction.

        Either every row is removed or, on any failure, none is.
        """
        return await asyncio.to_thread(self._delete_batch, list(steps))

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Closed inventory store at %s", self.path)
