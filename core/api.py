# core/api.py
"""
Generic resource access layer.

Every screen talks to the database through a ``ResourceApi`` subclass that
exposes the same small contract (list / get / create / update / delete /
toggle_status / reorder) and hands back typed pydantic records. Screens and
controllers never see raw rows.
"""

from __future__ import annotations

import datetime
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ============================================================================
# ERRORS
# ============================================================================

class ApiError(Exception):
    """A failed data call. ``message`` is safe to show to the user verbatim."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    pass


# ============================================================================
# PAGE
# ============================================================================

@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None


def _encode_value(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


class ResourceApi:
    """
    Table-driven CRUD for one resource.

    Subclasses set the class attributes below; identifiers come from these
    constants only, user input always travels as bound parameters.
    """

    table: str = ""
    label: str = "Record"
    record: Type[BaseModel] = BaseModel
    columns: Tuple[str, ...] = ()
    search_columns: Tuple[str, ...] = ()
    filter_columns: Tuple[str, ...] = ()
    json_columns: Tuple[str, ...] = ()
    status_column: Optional[str] = None
    order_column: Optional[str] = None

    def __init__(self, engine: Engine):
        self.engine = engine

    # ------------------------------------------------------------------
    # Row <-> record
    # ------------------------------------------------------------------

    def _to_record(self, row) -> BaseModel:
        data = dict(getattr(row, "_mapping", row))
        for col in self.json_columns:
            raw = data.get(col)
            if isinstance(raw, str):
                try:
                    data[col] = json.loads(raw) if raw else []
                except ValueError:
                    data[col] = []
        try:
            return self.record.model_validate(data)
        except ValidationError as e:
            logger.error("Malformed %s row %s", self.table, data.get("id"), exc_info=True)
            raise ApiError(f"Stored {self.label.lower()} data is malformed: {e.error_count()} field(s) invalid") from e

    def _to_db(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for col in self.columns:
            if col not in fields:
                continue
            value = fields[col]
            if col in self.json_columns:
                value = json.dumps([_encode_value(v) for v in (value or [])])
            out[col] = _encode_value(value)
        return out

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _where(self, filters: Optional[Mapping[str, Any]], search: Optional[str]) -> Tuple[List[str], Dict[str, Any]]:
        where = ["1=1"]
        params: Dict[str, Any] = {}
        for key, value in (filters or {}).items():
            if value is None:
                continue
            if key not in self.filter_columns:
                raise ApiError(f"Unsupported filter '{key}' for {self.label.lower()}")
            where.append(f"{key} = :f_{key}")
            params[f"f_{key}"] = _encode_value(value)
        term = (search or "").strip().lower()
        if term and self.search_columns:
            ors = [f"LOWER(COALESCE({c}, '')) LIKE :q" for c in self.search_columns]
            where.append("(" + " OR ".join(ors) + ")")
            params["q"] = f"%{term}%"
        return where, params

    def _order_by(self) -> str:
        if self.order_column:
            return f"{self.order_column} ASC, id ASC"
        return "id ASC"

    @contextmanager
    def _connection(self, verb: str, transaction: bool = False) -> Iterator[Connection]:
        """
        Connection (or transaction) whose database failures surface as ``ApiError``.
        ``IntegrityError`` passes through untouched so callers can map it to a conflict.
        """
        try:
            with (self.engine.begin() if transaction else self.engine.connect()) as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error on %s", self.table, exc_info=True)
            raise ApiError(f"{self.label} could not be {verb}: {getattr(e, 'orig', None) or e}") from e

    def _fetch(self, conn: Connection, record_id: Any):
        return conn.execute(
            sa_text(f"SELECT * FROM {self.table} WHERE id = :id"), {"id": record_id}
        ).fetchone()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        search: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: int = 25,
    ) -> Page:
        """One page ordered by id. ``next_cursor`` is None on the last page."""
        if limit < 1:
            raise ApiError("Page size must be at least 1")
        where, params = self._where(filters, search)
        if cursor:
            try:
                params["cursor"] = int(cursor)
            except ValueError:
                raise ApiError("Invalid page cursor") from None
            where.append("id > :cursor")
        params["lim"] = limit + 1
        with self._connection("loaded") as conn:
            rows = conn.execute(sa_text(
                f"SELECT * FROM {self.table} WHERE " + " AND ".join(where) + " ORDER BY id ASC LIMIT :lim"
            ), params).fetchall()
        has_more = len(rows) > limit
        rows = rows[:limit]
        items = [self._to_record(r) for r in rows]
        next_cursor = str(rows[-1]._mapping["id"]) if has_more and rows else None
        return Page(items=items, next_cursor=next_cursor)

    def list_all(self, filters: Optional[Mapping[str, Any]] = None, search: Optional[str] = None) -> List[BaseModel]:
        where, params = self._where(filters, search)
        with self._connection("loaded") as conn:
            rows = conn.execute(sa_text(
                f"SELECT * FROM {self.table} WHERE " + " AND ".join(where) + f" ORDER BY {self._order_by()}"
            ), params).fetchall()
        return [self._to_record(r) for r in rows]

    def count(self, filters: Optional[Mapping[str, Any]] = None, search: Optional[str] = None) -> int:
        where, params = self._where(filters, search)
        with self._connection("loaded") as conn:
            row = conn.execute(sa_text(
                f"SELECT COUNT(*) FROM {self.table} WHERE " + " AND ".join(where)
            ), params).fetchone()
        return int(row[0]) if row else 0

    def get(self, record_id: Any) -> BaseModel:
        with self._connection("loaded") as conn:
            row = self._fetch(conn, record_id)
        if row is None:
            raise NotFoundError(f"{self.label} not found")
        return self._to_record(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, fields: Mapping[str, Any]) -> BaseModel:
        data = self._to_db(fields)
        if not data:
            raise ApiError(f"Nothing to save for {self.label.lower()}")
        cols = ", ".join(data)
        binds = ", ".join(f":{c}" for c in data)
        try:
            with self._connection("saved", transaction=True) as conn:
                result = conn.execute(sa_text(f"INSERT INTO {self.table} ({cols}) VALUES ({binds})"), data)
                new_id = result.lastrowid
                row = self._fetch(conn, new_id)
        except IntegrityError as e:
            raise self._conflict(e) from e
        logger.info("Created %s id=%s", self.table, new_id)
        return self._to_record(row)

    def update(self, record_id: Any, fields: Mapping[str, Any]) -> BaseModel:
        data = self._to_db(fields)
        try:
            with self._connection("saved", transaction=True) as conn:
                if self._fetch(conn, record_id) is None:
                    raise NotFoundError(f"{self.label} not found")
                if data:
                    sets = ", ".join(f"{c} = :{c}" for c in data)
                    conn.execute(sa_text(
                        f"UPDATE {self.table} SET {sets}, updated_at = CURRENT_TIMESTAMP WHERE id = :id"
                    ), {**data, "id": record_id})
                row = self._fetch(conn, record_id)
        except IntegrityError as e:
            raise self._conflict(e) from e
        logger.info("Updated %s id=%s fields=%s", self.table, record_id, sorted(data))
        return self._to_record(row)

    def delete(self, record_id: Any) -> None:
        try:
            with self._connection("deleted", transaction=True) as conn:
                result = conn.execute(sa_text(f"DELETE FROM {self.table} WHERE id = :id"), {"id": record_id})
        except IntegrityError as e:
            raise ConflictError(f"{self.label} is still in use and cannot be deleted") from e
        if result.rowcount == 0:
            raise NotFoundError(f"{self.label} not found")
        logger.info("Deleted %s id=%s", self.table, record_id)

    def toggle_status(self, record_id: Any, desired: bool) -> BaseModel:
        if not self.status_column:
            raise ApiError(f"{self.label} has no status flag")
        return self.update(record_id, {self.status_column: bool(desired)})

    def reorder(self, updates: Sequence[Mapping[str, Any]]) -> None:
        """Apply ``[{id, display_order}, ...]`` in one transaction; any unknown id aborts the batch."""
        if not self.order_column:
            raise ApiError(f"{self.label} cannot be reordered")
        ids = [u["id"] for u in updates]
        with self._connection("saved", transaction=True) as conn:
            for u in updates:
                result = conn.execute(sa_text(
                    f"UPDATE {self.table} SET {self.order_column} = :o, updated_at = CURRENT_TIMESTAMP WHERE id = :id"
                ), {"o": int(u["display_order"]), "id": u["id"]})
                if result.rowcount == 0:
                    # raising inside begin() rolls back the rows already touched
                    raise NotFoundError(f"One or more {self.label.lower()} records do not exist")
        logger.info("Reordered %d %s rows", len(ids), self.table)

    def _conflict(self, error: IntegrityError) -> ApiError:
        logger.warning("Integrity error on %s: %s", self.table, error.orig)
        detail = str(error.orig).lower()
        if "unique" in detail:
            return ConflictError(f"A {self.label.lower()} with these details already exists")
        if "foreign key" in detail:
            return ConflictError(f"{self.label} refers to a record that does not exist")
        return ConflictError(f"{self.label} could not be saved: {error.orig}")


def ids_of(records: Iterable[BaseModel]) -> List[Any]:
    return [getattr(r, "id") for r in records]
