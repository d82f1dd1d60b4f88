"""
Dialect-independent SQL composition.

An Adapter turns a TableMapping plus caller arguments into a Statement:
the SQL text and the parameters to send with it. Subclasses supply the
driver specifics such as the placeholder style.
"""

from collections.abc import Mapping
from contextlib import closing
from dataclasses import dataclass
from typing import Any

from banana.entity import TableMapping
from banana.exceptions import MappingError


@dataclass(frozen=True)
class Statement:
    """SQL text plus the parameters to execute it with."""

    sql: str
    params: Any = None


class Adapter:
    """Builds SQL for one dialect."""

    dialect: str = None

    PAGE_SIZE_PARAM = "_page_size"
    PAGE_OFFSET_PARAM = "_page_offset"

    # -------------------------------------------------------------------------
    # Driver specifics
    # -------------------------------------------------------------------------

    def placeholder(self, name: str = None) -> str:
        """Named placeholder for ``name``, or a positional one when None."""
        raise NotImplementedError

    def cursor(self, conn):
        """Open a cursor whose rows are dicts keyed by column name."""
        raise NotImplementedError

    def inserted_key(self, cursor, mapping: TableMapping):
        """Read the generated key after running an insert() statement."""
        raise NotImplementedError

    def bind(self, params):
        """Parameters in the form the driver expects for execute()."""
        return params

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self, conn, statement: Statement) -> int:
        """Run a statement that returns no rows; returns the affected-row count."""
        with closing(self.cursor(conn)) as cur:
            cur.execute(statement.sql, self.bind(statement.params))
            return cur.rowcount

    def execute_many(self, conn, sql: str, params_list: list) -> int:
        with closing(self.cursor(conn)) as cur:
            cur.executemany(sql, params_list)
            return cur.rowcount

    def fetch_all(self, conn, statement: Statement) -> list[dict[str, Any]]:
        with closing(self.cursor(conn)) as cur:
            cur.execute(statement.sql, self.bind(statement.params))
            return cur.fetchall()

    def fetch_one(self, conn, statement: Statement) -> dict[str, Any] | None:
        with closing(self.cursor(conn)) as cur:
            cur.execute(statement.sql, self.bind(statement.params))
            return cur.fetchone()

    # -------------------------------------------------------------------------
    # SQL composition
    # -------------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        if not identifier or '"' in identifier:
            raise MappingError(f"Invalid identifier: {identifier!r}")
        return f'"{identifier}"'

    def _select(self, mapping: TableMapping, where: str = None) -> str:
        columns = ", ".join(self.quote(c) for c in mapping.columns)
        sql = f"SELECT {columns} FROM {self.quote(mapping.table)}"
        if where:
            sql += f" WHERE {where}"
        return sql

    def select_by_key(self, mapping: TableMapping, key) -> Statement:
        sql = self._select(mapping, f"{self.quote(mapping.key)} = {self.placeholder()}")
        return Statement(sql, (key,))

    def select_list(self, mapping: TableMapping, where: str = None, params=None) -> Statement:
        """Filtered, unordered list. An empty ``where`` selects every row."""
        return Statement(self._select(mapping, where), params if where else None)

    def select_page(
        self,
        mapping: TableMapping,
        page_num: int,
        page_size: int,
        where: str = None,
        params=None,
        order: str = None,
        asc: bool = False,
    ) -> Statement:
        """
        One page of an ordered list.

        Args:
            mapping: Table to select from
            page_num: 1-based page number
            page_size: Rows per page
            where: Filter without the WHERE keyword
            params: Parameters for the filter, a mapping or a sequence. When
                given, a literal % in ``where`` must be written %% for psycopg.
            order: Column to sort by, defaults to the key column
            asc: Sort ascending; descending when False

        Returns:
            Statement whose params include the limit and offset, or with
            literal LIMIT/OFFSET values when the caller passed no params
        """
        page_num, page_size = int(page_num), int(page_size)
        if page_num < 1:
            raise ValueError(f"page_num must be >= 1, got {page_num}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        order = order or mapping.key
        if not mapping.has_column(order):
            raise MappingError(f"Unknown order column '{order}' for table {mapping.table}")

        limit, offset, bound = self._bind_page(
            params if where else None, page_size, (page_num - 1) * page_size
        )
        direction = "ASC" if asc else "DESC"
        sql = (
            f"{self._select(mapping, where)} "
            f"ORDER BY {self.quote(order)} {direction} "
            f"LIMIT {limit} OFFSET {offset}"
        )
        return Statement(sql, bound)

    def _bind_page(self, params, size: int, offset: int):
        """Merge limit/offset into the caller's parameters, matching their style."""
        if params is None:
            # Validated ints; without params psycopg leaves a literal % in where alone
            return str(size), str(offset), None
        if isinstance(params, Mapping):
            bound = dict(params)
            clash = {self.PAGE_SIZE_PARAM, self.PAGE_OFFSET_PARAM} & bound.keys()
            if clash:
                raise ValueError(f"Reserved parameter names: {sorted(clash)}")
            bound[self.PAGE_SIZE_PARAM] = size
            bound[self.PAGE_OFFSET_PARAM] = offset
            return (
                self.placeholder(self.PAGE_SIZE_PARAM),
                self.placeholder(self.PAGE_OFFSET_PARAM),
                bound,
            )
        return self.placeholder(), self.placeholder(), (*params, size, offset)

    def select_count(self, mapping: TableMapping, where: str = None, params=None) -> Statement:
        sql = f"SELECT COUNT(*) AS total FROM {self.quote(mapping.table)}"
        if where:
            sql += f" WHERE {where}"
        return Statement(sql, params if where else None)

    def insert(self, mapping: TableMapping, entity) -> Statement:
        columns = mapping.writable_columns
        table = self.quote(mapping.table)
        if not columns:
            return Statement(f"INSERT INTO {table} DEFAULT VALUES")
        names = ", ".join(self.quote(c) for c in columns)
        values = ", ".join(self.placeholder(c) for c in columns)
        sql = f"INSERT INTO {table} ({names}) VALUES ({values})"
        return Statement(sql, mapping.values(entity, columns))

    def update(self, mapping: TableMapping, entity) -> Statement:
        columns = mapping.update_columns
        if not columns:
            raise MappingError(f"Table {mapping.table} has no columns to update")
        assignments = ", ".join(f"{self.quote(c)} = {self.placeholder(c)}" for c in columns)
        sql = (
            f"UPDATE {self.quote(mapping.table)} SET {assignments} "
            f"WHERE {self.quote(mapping.key)} = {self.placeholder(mapping.key)}"
        )
        return Statement(sql, mapping.values(entity, (*columns, mapping.key)))

    def delete(self, mapping: TableMapping, entity) -> Statement:
        sql = (
            f"DELETE FROM {self.quote(mapping.table)} "
            f"WHERE {self.quote(mapping.key)} = {self.placeholder()}"
        )
        return Statement(sql, (mapping.key_value(entity),))
