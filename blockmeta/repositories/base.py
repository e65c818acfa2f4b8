"""
Storage client.

Point and range reads against slot-keyed metadata tables. Queries are
executed on worker threads of the running loop's default executor so a
slow backend never blocks the event loop; the engine's connection pool
hands each worker its own connection.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy import Connection, Table, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blockmeta.models import Base
from blockmeta.utils.exceptions import (
    QueryTimeoutError,
    RowNotFoundError,
    StorageClientError,
    StorageDriverError,
    StorageIOError,
)

T = TypeVar("T")


class StorageClient:
    """
    Read-only query primitives over a pooled engine.

    No business logic: callers get raw scalars and key lists back, or
    a ``StorageClientError``.

    Example:
        client = StorageClient(engine, timeout=5)
        first = await client.get_first_key("sol_mainnet_block", "id")
    """

    def __init__(self, engine: Engine, timeout: float | None = None) -> None:
        """
        Initialize client.

        Args:
            engine: SQLAlchemy engine with a thread-safe pool
            timeout: Per-query timeout in seconds, no limit if None
        """
        self.engine = engine
        self.timeout = timeout

    def _table(self, table_name: str) -> Table:
        try:
            return Base.metadata.tables[table_name]
        except KeyError:
            raise ValueError(f"Unknown table: {table_name}") from None

    def _execute(self, query: Callable[[Connection], T]) -> T:
        try:
            with self.engine.connect() as conn:
                return query(conn)
        except StorageClientError:
            raise
        except OSError as e:
            raise StorageIOError(e) from e
        except SQLAlchemyError as e:
            raise StorageDriverError(e) from e

    async def _run(self, query: Callable[[Connection], T]) -> T:
        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(None, self._execute, query)
        if self.timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, timeout=self.timeout)
        except TimeoutError:
            logger.warning(f"Query timed out after {self.timeout}s")
            raise QueryTimeoutError() from None

    async def get_first_key(self, table_name: str, column_name: str) -> Any | None:
        """
        Get the smallest value of a column.

        Args:
            table_name: Table to query
            column_name: Column to aggregate

        Returns:
            Minimum value or None if the table is empty
        """
        column = self._table(table_name).c[column_name]
        stmt = select(func.min(column).label("first_key"))
        return await self._run(lambda conn: conn.execute(stmt).scalar())

    async def get_last_key(self, table_name: str, column_name: str) -> Any | None:
        """
        Get the largest value of a column.

        Args:
            table_name: Table to query
            column_name: Column to aggregate

        Returns:
            Maximum value or None if the table is empty
        """
        column = self._table(table_name).c[column_name]
        stmt = select(func.max(column).label("last_key"))
        return await self._run(lambda conn: conn.execute(stmt).scalar())

    async def get_row_keys(
        self,
        table_name: str,
        start_at: Any | None,
        end_at: Any | None,
        rows_limit: int,
        key_column: str = "id",
    ) -> list[Any]:
        """
        Get row keys in ascending order.

        Args:
            table_name: Table to query
            start_at: Inclusive lower bound, unbounded if None
            end_at: Inclusive upper bound, unbounded if None
            rows_limit: Max number of keys to return
            key_column: Primary key column

        Returns:
            Matching keys, at most ``rows_limit`` of them
        """
        if rows_limit < 0:
            raise ValueError(f"rows_limit must not be negative: {rows_limit}")
        if rows_limit == 0:
            return []

        key = self._table(table_name).c[key_column]
        stmt = select(key)
        if start_at is not None:
            stmt = stmt.where(key >= start_at)
        if end_at is not None:
            stmt = stmt.where(key <= end_at)
        stmt = stmt.order_by(key.asc()).limit(rows_limit)

        return await self._run(lambda conn: list(conn.execute(stmt).scalars()))

    async def get_single_row(
        self, table_name: str, column_to_search: str, value_to_search: Any
    ) -> dict[str, Any] | None:
        """
        Get the first row matching a column value.

        Returns:
            Row as a column-name mapping, or None if nothing matched
        """
        table = self._table(table_name)
        stmt = (
            select(table)
            .where(table.c[column_to_search] == value_to_search)
            .limit(1)
        )

        def query(conn: Connection) -> dict[str, Any] | None:
            row = conn.execute(stmt).first()
            return dict(row._mapping) if row is not None else None

        return await self._run(query)

    async def get_single_value(
        self,
        table_name: str,
        field_to_return: str,
        key_field: str,
        key_value: Any,
    ) -> Any:
        """
        Fetch one column value of the row whose key matches.

        Args:
            table_name: Table to query
            field_to_return: Column to read
            key_field: Column to filter on
            key_value: Value to match

        Returns:
            The column value

        Raises:
            RowNotFoundError: No row matched or the value is NULL
        """
        table = self._table(table_name)
        stmt = (
            select(table.c[field_to_return])
            .where(table.c[key_field] == key_value)
            .limit(1)
        )

        def query(conn: Connection) -> Any:
            row = conn.execute(stmt).first()
            if row is None or row[0] is None:
                raise RowNotFoundError()
            return row[0]

        return await self._run(query)

    async def ping(self) -> None:
        """Check out a connection and run a trivial query."""
        await self._run(lambda conn: conn.execute(select(1)).scalar())

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
