"""
Generic repository over one mapped table.

A Repository holds one connection and, optionally, one open transaction.
Outside a transaction every call ends the driver's implicit transaction
itself, committing on success and rolling back on error. Inside one,
nothing is committed until the transaction is.
"""

import logging
from contextlib import closing, contextmanager
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, TypeVar

from banana import db
from banana.adapter import Adapter, Statement, get_adapter
from banana.entity import mapping_for
from banana.exceptions import BatchError, TransactionError
from banana.transaction import Transaction, TransactionState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BatchResult:
    """Outcome of insert_batch(); falsy when nothing was inserted."""

    rowcount: int

    @property
    def committed(self) -> bool:
        return self.rowcount > 0

    def __bool__(self) -> bool:
        return self.committed


class Repository(Generic[T]):
    """
    CRUD and paging for one entity type.

    Usage:
        with Repository(User) as repo:
            user_id = repo.insert(User(name="Ann"))
            page = repo.query_page(2, 10, "name LIKE %(name)s", {"name": "A%"})
    """

    def __init__(
        self,
        entity: type[T],
        connection=None,
        transaction: Transaction = None,
        adapter: Adapter = None,
    ):
        self.entity = entity
        self.mapping = mapping_for(entity)
        self._connection = connection
        self._owns_connection = False
        self._transaction = transaction
        self._owns_transaction = False
        self._adapter = adapter

    # =========================================================================
    # Resources
    # =========================================================================

    @property
    def connection(self):
        """The repository's connection, opened on first use."""
        if self._connection is None:
            self._connection = db.connect()
            self._owns_connection = not db.is_override(self._connection)
        return self._connection

    @property
    def adapter(self) -> Adapter:
        if self._adapter is None:
            self._adapter = get_adapter(db.dialect_of(self.connection))
        return self._adapter

    @property
    def table_name(self) -> str:
        return self.mapping.table

    def close(self) -> None:
        """Roll back a transaction this repository opened, then release an owned connection."""
        if self._owns_transaction and self.transaction_state is TransactionState.OPEN:
            self._transaction.rollback()
        if self._owns_connection:
            db.release(self._connection)
            self._connection = None
            self._owns_connection = False

    def __enter__(self) -> "Repository[T]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Transactions
    # =========================================================================

    @property
    def transaction_state(self) -> TransactionState:
        if self._transaction is not None and self._transaction.is_open:
            return TransactionState.OPEN
        return TransactionState.CLOSED

    def open_transaction(self) -> Transaction:
        """Open a transaction; only one may be open per repository."""
        if self.transaction_state is TransactionState.OPEN:
            raise TransactionError(
                f"A transaction is already open on the {self.table_name} repository"
            )
        self._transaction = Transaction(self.connection)
        self._owns_transaction = True
        return self._transaction

    @contextmanager
    def _scope(self):
        """
        Outside a transaction, end the driver's implicit transaction after
        every call: commit on success, roll back and re-raise on failure.
        Inside one, leave both to the transaction.
        """
        if self.transaction_state is TransactionState.OPEN:
            yield
            return
        try:
            yield
        except Exception:
            self.connection.rollback()
            raise
        self.connection.commit()

    def _run(self, statement: Statement) -> int:
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope():
            return self.adapter.execute(self.connection, statement)

    # =========================================================================
    # Queries
    # =========================================================================

    def query(self, id: Any) -> Optional[T]:
        """Get one entity by primary key, or None if not found."""
        statement = self.adapter.select_by_key(self.mapping, id)
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope():
            row = self.adapter.fetch_one(self.connection, statement)
        return self.mapping.from_row(row) if row else None

    def query_list(self, where: str = None, params=None) -> list[T]:
        """
        List entities, optionally filtered.

        Args:
            where: Filter without the WHERE keyword, e.g. "name LIKE %(name)s".
                Use placeholders, never interpolated values.
            params: Mapping or sequence matching the placeholders

        Returns:
            Every row when ``where`` is empty, otherwise the matching rows
        """
        statement = self.adapter.select_list(self.mapping, where, params)
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope():
            rows = self.adapter.fetch_all(self.connection, statement)
        return [self.mapping.from_row(r) for r in rows]

    def query_page(
        self,
        page_num: int,
        page_size: int,
        where: str = None,
        params=None,
        order: str = None,
        asc: bool = False,
    ) -> list[T]:
        """
        One page of entities.

        Args:
            page_num: 1-based page number
            page_size: Rows per page
            where: Filter without the WHERE keyword
            params: Mapping or sequence matching the placeholders
            order: Column to sort by, defaults to the primary key
            asc: Ascending when True, descending otherwise

        Returns:
            The rows of the requested page, in order
        """
        statement = self.adapter.select_page(
            self.mapping, page_num, page_size, where, params, order, asc
        )
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope():
            rows = self.adapter.fetch_all(self.connection, statement)
        return [self.mapping.from_row(r) for r in rows]

    def count(self, where: str = None, params=None) -> int:
        statement = self.adapter.select_count(self.mapping, where, params)
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope():
            row = self.adapter.fetch_one(self.connection, statement)
        return int(row["total"])

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert(self, entity: T) -> Any:
        """
        Insert one entity.

        Returns the generated key for auto-key tables (and sets it on the
        entity), otherwise the entity's own key.
        """
        statement = self.adapter.insert(self.mapping, entity)
        logger.debug("%s %r", statement.sql, statement.params)
        with self._scope(), closing(self.adapter.cursor(self.connection)) as cur:
            cur.execute(statement.sql, self.adapter.bind(statement.params))
            if self.mapping.auto_key:
                key = self.adapter.inserted_key(cur, self.mapping)
                setattr(entity, self.mapping.key, key)
            else:
                key = self.mapping.key_value(entity)
        return key

    def update(self, entity: T) -> bool:
        """Update the row with the entity's key; True if a row changed."""
        return self._run(self.adapter.update(self.mapping, entity)) > 0

    def delete(self, entity: T) -> bool:
        """Delete the row with the entity's key; True if a row was removed."""
        return self._run(self.adapter.delete(self.mapping, entity)) > 0

    def execute(self, sql: str, params=None) -> int:
        """Run a parameterized statement in the current transaction scope."""
        return self._run(Statement(sql, params))

    def insert_batch(self, sql: str, entities: Iterable[T]) -> BatchResult:
        """
        Run an insert statement once per entity inside its own transaction.

        The statement uses named placeholders for the entity columns. The
        transaction is committed when at least one row was inserted and
        rolled back otherwise.

        Args:
            sql: Insert statement, e.g. "INSERT INTO users (name) VALUES (%(name)s)"
            entities: Entities supplying the parameters

        Returns:
            BatchResult, truthy when the batch was committed

        Raises:
            TransactionError: a transaction is already open
            BatchError: the driver failed; the batch was rolled back
        """
        params_list = [self.mapping.values(e) for e in entities]
        transaction = self.open_transaction()
        with transaction:
            try:
                rowcount = 0
                if params_list:
                    logger.debug("%s x%d", sql, len(params_list))
                    rowcount = self.adapter.execute_many(self.connection, sql, params_list)
            except Exception as e:
                transaction.rollback()
                logger.error("Batch insert into %s failed: %s", self.table_name, e)
                raise BatchError(f"Batch insert into {self.table_name} failed: {e}") from e

            if rowcount > 0:
                transaction.commit()
                logger.info("Batch inserted %d rows into %s", rowcount, self.table_name)
                return BatchResult(rowcount)

            transaction.rollback()
            logger.info("Batch into %s affected no rows; rolled back", self.table_name)
            return BatchResult(0)
