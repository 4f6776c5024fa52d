"""Data-access client over named tables

Pages never touch SQLAlchemy directly: they call ``select``, ``insert``,
``update`` and ``delete`` with table names, select strings and filters, and
get plain row dicts back. Each call opens its own session and transaction,
so independent calls may run concurrently.
"""

import logging
import time
import uuid
from collections import defaultdict
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import Date, Uuid, delete as sa_delete, func, select as sa_select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskhub.backend.errors import BackendError
from taskhub.backend.query import Embed, Filter, Order, parse_select
from taskhub.backend.tables import (
    AFTER_INSERT,
    READ_POLICIES,
    TABLES,
    WRITE_POLICIES,
    get_column,
    policy_conditions,
    resolve_table,
    visible_columns,
)
from taskhub.monitoring.metrics import metrics_collector
from taskhub.schemas.auth import Identity

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _error_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class BackendClient:
    """Backend collaborator bound to the identity of the current page"""

    def __init__(self, session_factory: async_sessionmaker, identity: Optional[Identity] = None):
        self._session_factory = session_factory
        self.identity = identity

    # Queries

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> List[Row]:
        """
        Fetch rows.

        Args:
            table: Table name
            columns: Select string, see taskhub.backend.query
            filters: Row filters, combined with AND
            order: Ordering terms
            limit: Maximum number of rows

        Returns:
            List of row dicts, embeds included under their alias
        """
        return await self._call(
            table, "select",
            lambda session: self._select(session, table, columns, filters, order, limit),
        )

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
    ) -> Optional[Row]:
        """Fetch at most one row; None when nothing matches"""
        rows = await self.select(table, columns, filters, limit=2)
        if len(rows) > 1:
            raise BackendError("JSON object requested, multiple (or no) rows returned")
        return rows[0] if rows else None

    async def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        """Count-only query"""
        return await self._call(table, "count", lambda session: self._count(session, table, filters))

    # Mutations

    async def insert(self, table: str, records: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]) -> List[Row]:
        """Insert one record or a list of records; returns the inserted rows"""
        if isinstance(records, Mapping):
            records = [records]
        return await self._call(table, "insert", lambda session: self._insert(session, table, records))

    async def update(self, table: str, patch: Mapping[str, Any], filters: Sequence[Filter]) -> List[Row]:
        """Apply a patch to matching rows; returns the updated rows"""
        if not filters:
            raise BackendError("UPDATE requires a WHERE clause")
        return await self._call(table, "update", lambda session: self._update(session, table, patch, filters))

    async def delete(self, table: str, filters: Sequence[Filter]) -> List[Row]:
        """Delete matching rows; returns the deleted rows"""
        if not filters:
            raise BackendError("DELETE requires a WHERE clause")
        return await self._call(table, "delete", lambda session: self._delete(session, table, filters))

    # Internals

    async def _call(self, table: str, operation: str, work: Callable[[AsyncSession], Any]) -> Any:
        start = time.perf_counter()
        status = "error"
        logger.debug(f"Backend {operation} on {table}")
        try:
            async with self._session_factory() as session:
                result = await work(session)
                if operation in ("insert", "update", "delete"):
                    await session.commit()
            status = "ok"
            return result
        except BackendError as exc:
            logger.warning(f"Backend {operation} on {table} rejected: {exc.message}")
            raise
        except SQLAlchemyError as exc:
            message = _error_message(exc)
            logger.warning(f"Backend {operation} on {table} failed: {message}")
            raise BackendError(message) from exc
        finally:
            metrics_collector.record_backend_call(
                table, operation, status, time.perf_counter() - start
            )

    def _coerce(self, table: str, name: str, value: Any) -> Any:
        column = get_column(table, name)
        if value is None:
            return None
        if isinstance(column.type, Uuid) and not isinstance(value, uuid.UUID):
            try:
                return uuid.UUID(str(value))
            except ValueError:
                raise BackendError(f'invalid input syntax for type uuid: "{value}"') from None
        if isinstance(column.type, Date) and isinstance(value, str):
            try:
                return date.fromisoformat(value)
            except ValueError:
                raise BackendError(f'invalid input syntax for type date: "{value}"') from None
        return value

    def _conditions(self, table: str, filters: Sequence[Filter]) -> list:
        conditions = []
        for item in filters:
            column = get_column(table, item.column)
            if item.op == "eq":
                value = self._coerce(table, item.column, item.value)
                conditions.append(column.is_(None) if value is None else column == value)
            elif item.op == "ilike":
                conditions.append(column.ilike(item.value, escape="\\"))
            elif item.op == "in":
                values = [self._coerce(table, item.column, v) for v in item.value]
                conditions.append(column.in_(values))
            else:
                raise BackendError(f"unknown filter operator: {item.op}")
        return conditions

    def _readable(self, table: str) -> list:
        return policy_conditions(READ_POLICIES, table, self.identity)

    def _writable(self, table: str) -> list:
        return self._readable(table) + policy_conditions(WRITE_POLICIES, table, self.identity)

    async def _check_written(self, session: AsyncSession, table: str, objects: Sequence[Any]) -> None:
        """Rows left behind by insert or update must pass the write rules"""
        conditions = self._writable(table)
        if not conditions or not objects:
            return
        model = resolve_table(table)
        ids = [obj.id for obj in objects]
        result = await session.execute(
            sa_select(func.count()).select_from(model).where(model.id.in_(ids), *conditions)
        )
        if result.scalar_one() != len(ids):
            raise BackendError(f'new row violates row-level security policy for table "{table}"')

    def _values(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: self._coerce(table, name, value) for name, value in record.items()}

    def _column_names(self, table: str, columns: Sequence[str]) -> List[str]:
        names: List[str] = []
        for name in columns:
            expanded = visible_columns(table) if name == "*" else [get_column(table, name).name]
            names.extend(n for n in expanded if n not in names)
        return names

    @staticmethod
    def _to_row(obj: Any, names: Sequence[str]) -> Row:
        return {name: getattr(obj, name) for name in names}

    async def _select(
        self,
        session: AsyncSession,
        table: str,
        columns: str,
        filters: Sequence[Filter],
        order: Sequence[Order],
        limit: Optional[int],
    ) -> List[Row]:
        model = resolve_table(table)
        spec = parse_select(columns)
        names = self._column_names(table, spec.columns)

        stmt = sa_select(model).where(*self._conditions(table, filters), *self._readable(table))
        for term in order:
            column = get_column(table, term.column)
            stmt = stmt.order_by(column.asc() if term.ascending else column.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await session.execute(stmt)
        objects = result.scalars().all()
        rows = [self._to_row(obj, names) for obj in objects]

        for embed in spec.embeds:
            await self._embed(session, table, objects, rows, embed)

        return rows

    def _resolve_embed(self, table: str, embed: Embed):
        """Return (cardinality, target table, local key, remote key)"""
        source = resolve_table(table).__table__

        # Forward embed through a named foreign key column
        if embed.target in source.c:
            foreign_keys = list(source.c[embed.target].foreign_keys)
            if not foreign_keys:
                raise BackendError(
                    f"Could not find a relationship between '{table}' and '{embed.target}'"
                )
            fk = foreign_keys[0]
            return "one", fk.column.table.name, fk.parent.name, fk.column.name

        target = resolve_table(embed.target).__table__

        forward = [fk for fk in source.foreign_keys if fk.column.table is target]
        if len(forward) > 1:
            raise BackendError(
                f"Could not embed because more than one relationship was found for "
                f"'{table}' and '{embed.target}'"
            )
        if forward:
            fk = forward[0]
            return "one", target.name, fk.parent.name, fk.column.name

        reverse = [fk for fk in target.foreign_keys if fk.column.table is source]
        if len(reverse) > 1:
            raise BackendError(
                f"Could not embed because more than one relationship was found for "
                f"'{table}' and '{embed.target}'"
            )
        if reverse:
            fk = reverse[0]
            return "many", target.name, fk.column.name, fk.parent.name

        raise BackendError(f"Could not find a relationship between '{table}' and '{embed.target}'")

    async def _embed(
        self,
        session: AsyncSession,
        table: str,
        objects: Sequence[Any],
        rows: List[Row],
        embed: Embed,
    ) -> None:
        cardinality, target_table, local_key, remote_key = self._resolve_embed(table, embed)
        target_model = TABLES[target_table]
        names = self._column_names(target_table, embed.columns)

        keys = {getattr(obj, local_key) for obj in objects} - {None}
        related: List[Any] = []
        if keys:
            remote = target_model.__table__.c[remote_key]
            result = await session.execute(
                sa_select(target_model)
                .where(remote.in_(keys), *self._readable(target_table))
                .order_by(target_model.__table__.c.created_at.asc())
            )
            related = list(result.scalars().all())

        if cardinality == "one":
            by_key = {getattr(obj, remote_key): self._to_row(obj, names) for obj in related}
            for obj, row in zip(objects, rows):
                row[embed.alias] = by_key.get(getattr(obj, local_key))
        else:
            groups: Dict[Any, List[Row]] = defaultdict(list)
            for obj in related:
                groups[getattr(obj, remote_key)].append(self._to_row(obj, names))
            for obj, row in zip(objects, rows):
                row[embed.alias] = groups.get(getattr(obj, local_key), [])

    async def _count(self, session: AsyncSession, table: str, filters: Sequence[Filter]) -> int:
        model = resolve_table(table)
        conditions = self._conditions(table, filters) + self._readable(table)
        result = await session.execute(sa_select(func.count()).select_from(model).where(*conditions))
        return result.scalar_one()

    async def _insert(self, session: AsyncSession, table: str, records: Sequence[Mapping[str, Any]]) -> List[Row]:
        model = resolve_table(table)
        objects = [model(**self._values(table, record)) for record in records]
        session.add_all(objects)
        await session.flush()

        hook = AFTER_INSERT.get(table)
        if hook is not None:
            await hook(session, objects, self.identity)
            await session.flush()

        await self._check_written(session, table, objects)

        logger.info(f"Inserted {len(objects)} row(s) into {table}")
        names = visible_columns(table)
        return [self._to_row(obj, names) for obj in objects]

    async def _update(
        self,
        session: AsyncSession,
        table: str,
        patch: Mapping[str, Any],
        filters: Sequence[Filter],
    ) -> List[Row]:
        model = resolve_table(table)
        values = self._values(table, patch)
        conditions = self._conditions(table, filters) + self._writable(table)
        result = await session.execute(sa_select(model).where(*conditions))
        objects = result.scalars().all()

        for obj in objects:
            for name, value in values.items():
                setattr(obj, name, value)
        await session.flush()

        # A patch may not move a row out of reach, e.g. into another organization
        await self._check_written(session, table, objects)

        logger.info(f"Updated {len(objects)} row(s) in {table}")
        names = visible_columns(table)
        return [self._to_row(obj, names) for obj in objects]

    async def _delete(self, session: AsyncSession, table: str, filters: Sequence[Filter]) -> List[Row]:
        model = resolve_table(table)
        conditions = self._conditions(table, filters) + self._writable(table)
        result = await session.execute(sa_select(model).where(*conditions))
        objects = result.scalars().all()
        names = visible_columns(table)
        rows = [self._to_row(obj, names) for obj in objects]

        if objects:
            await session.execute(sa_delete(model).where(model.id.in_([obj.id for obj in objects])))

        logger.info(f"Deleted {len(rows)} row(s) from {table}")
        return rows
