# src/batchscrub/core/store/sql.py
"""SQLAlchemy Core implementation of the row store.

Uses Core (not ORM) for explicit control over the statements each window
issues and for portability across SQLite and PostgreSQL.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, ColumnElement, Connection, Integer, MetaData, Select, Table, bindparam, func, select, update
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from batchscrub.contracts.errors import (
    CheckpointError,
    RangeComputationError,
    TargetNotFoundError,
    WindowUpdateError,
)
from batchscrub.contracts.windows import BatchWindow, IdentifierRange
from batchscrub.core.store.database import StoreDB

if TYPE_CHECKING:
    from batchscrub.transformers.base import ValueTransformer

# Bind parameter names for the client-side executemany UPDATE. Prefixed so
# they cannot collide with the reflected column names SQLAlchemy binds.
_ID_PARAM = "_scrub_id"
_VALUE_PARAM = "_scrub_value"


class SqlWindowTransaction:
    """Window unit of work bound to one open connection and transaction."""

    def __init__(self, conn: Connection, table: Table, id_column: Column[Any], value_column: Column[Any]) -> None:
        self._conn = conn
        self._table = table
        self._id_column = id_column
        self._value_column = value_column

    def _in_window(self, window: BatchWindow) -> ColumnElement[bool]:
        return (self._id_column >= window.lower) & (self._id_column < window.upper)

    def window_rows(self, window: BatchWindow) -> Select[tuple[Any, Any]]:
        """SELECT of the window's (id, value) pairs, locking them until commit.

        SQLite has no row locks and compiles FOR UPDATE away.
        """
        return (
            select(self._id_column, self._value_column)
            .where(self._in_window(window))
            .order_by(self._id_column)
            .with_for_update()
        )

    def update_window(self, window: BatchWindow, transformer: "ValueTransformer") -> int:
        """Apply ``transformer`` to every row in the window.

        Server-side transformers become one ``UPDATE ... SET col = expr``
        statement. Python transformers read the window's rows, transform
        them, and write back with one executemany UPDATE; memory stays
        bounded by one window either way.

        Raises:
            WindowUpdateError: If a statement fails or the transformer raises
        """
        expression = transformer.sql_expression(self._value_column)
        if expression is not None:
            try:
                result = self._conn.execute(
                    update(self._table).where(self._in_window(window)).values({self._value_column.name: expression})
                )
            except SQLAlchemyError as e:
                raise WindowUpdateError(window, f"bulk update failed: {e}") from e
            return int(result.rowcount)

        try:
            rows = self._conn.execute(self.window_rows(window)).fetchall()
        except SQLAlchemyError as e:
            raise WindowUpdateError(window, f"window read failed: {e}") from e

        if not rows:
            return 0

        params: list[dict[str, Any]] = []
        for identifier, old_value in rows:
            try:
                new_value = transformer.transform(old_value)
            except Exception as e:
                # Transformers are pluggable; any failure fails the window
                raise WindowUpdateError(
                    window,
                    f"transformer '{transformer.name}' failed on id={identifier}: {type(e).__name__}: {e}",
                ) from e
            params.append({_ID_PARAM: identifier, _VALUE_PARAM: new_value})

        statement = (
            update(self._table)
            .where(self._id_column == bindparam(_ID_PARAM))
            .values({self._value_column.name: bindparam(_VALUE_PARAM)})
        )
        try:
            result = self._conn.execute(statement, params)
        except SQLAlchemyError as e:
            raise WindowUpdateError(window, f"bulk update failed: {e}") from e

        # executemany rowcount is only trustworthy where the dialect says so
        if self._conn.dialect.supports_sane_multi_rowcount and result.rowcount >= 0:
            return int(result.rowcount)
        return len(params)


class SqlRowStore:
    """Row store over one table of a SQLAlchemy database.

    Example:
        db = StoreDB.from_url("postgresql://scrubber@db/rideshare")
        store = SqlRowStore(db, table="users", column="email", schema="rideshare")
    """

    def __init__(
        self,
        db: StoreDB,
        *,
        table: str,
        column: str,
        id_column: str = "id",
        schema: str | None = None,
    ) -> None:
        """Reflect the target table and validate its columns.

        Raises:
            TargetNotFoundError: If the table or either column is missing,
                or the identifier column is not an integer type
        """
        self._db = db
        self._table = self._reflect(table, schema)
        qualified = f"{schema}.{table}" if schema else table

        if id_column not in self._table.c:
            raise TargetNotFoundError(f"identifier column '{id_column}' not found on table '{qualified}'")
        if column not in self._table.c:
            raise TargetNotFoundError(f"column '{column}' not found on table '{qualified}'")
        if id_column == column:
            raise TargetNotFoundError(f"identifier column and scrubbed column are both '{column}'")

        self._id_column: Column[Any] = self._table.c[id_column]
        self._value_column: Column[Any] = self._table.c[column]

        if not isinstance(self._id_column.type, Integer):
            raise TargetNotFoundError(
                f"identifier column '{qualified}.{id_column}' must be an integer type, got {self._id_column.type}"
            )

    def _reflect(self, table: str, schema: str | None) -> Table:
        try:
            return Table(table, MetaData(), schema=schema, autoload_with=self._db.engine)
        except NoSuchTableError as e:
            qualified = f"{schema}.{table}" if schema else table
            raise TargetNotFoundError(f"table '{qualified}' not found in {self._db.describe()}") from e

    @property
    def table(self) -> Table:
        return self._table

    @property
    def column_name(self) -> str:
        return self._value_column.name

    def identifier_range(self) -> IdentifierRange | None:
        try:
            with self._db.engine.connect() as conn:
                min_id, max_id = conn.execute(select(func.min(self._id_column), func.max(self._id_column))).one()
        except SQLAlchemyError as e:
            raise RangeComputationError(f"min/max identifier query failed on '{self._table.fullname}': {e}") from e

        if min_id is None or max_id is None:
            return None
        return IdentifierRange(min_id=int(min_id), max_id=int(max_id))

    def max_identifier(self) -> int | None:
        try:
            with self._db.engine.connect() as conn:
                max_id = conn.execute(select(func.max(self._id_column))).scalar()
        except SQLAlchemyError as e:
            raise RangeComputationError(f"max identifier query failed on '{self._table.fullname}': {e}") from e
        return None if max_id is None else int(max_id)

    @contextmanager
    def window_transaction(self) -> Iterator[SqlWindowTransaction]:
        """One connection, one transaction, one window.

        Raises:
            CheckpointError: If the commit fails; the window is rolled back
        """
        with self._db.engine.connect() as conn:
            trans = conn.begin()
            try:
                yield SqlWindowTransaction(conn, self._table, self._id_column, self._value_column)
            except BaseException:
                trans.rollback()
                raise
            try:
                trans.commit()
            except SQLAlchemyError as e:
                if trans.is_active:
                    trans.rollback()
                raise CheckpointError(None, f"commit failed on '{self._table.fullname}': {e}") from e
