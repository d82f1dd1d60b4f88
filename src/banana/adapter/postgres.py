from psycopg.rows import dict_row

from banana.adapter.base import Adapter, Statement
from banana.db import POSTGRESQL
from banana.entity import TableMapping


class PostgresAdapter(Adapter):
    """PostgreSQL via psycopg: %(name)s placeholders, keys via RETURNING."""

    dialect = POSTGRESQL

    def placeholder(self, name: str = None) -> str:
        return f"%({name})s" if name else "%s"

    def cursor(self, conn):
        return conn.cursor(row_factory=dict_row)

    def insert(self, mapping: TableMapping, entity) -> Statement:
        statement = super().insert(mapping, entity)
        if not mapping.auto_key:
            return statement
        return Statement(f"{statement.sql} RETURNING {self.quote(mapping.key)}", statement.params)

    def inserted_key(self, cursor, mapping: TableMapping):
        row = cursor.fetchone()
        return row[mapping.key] if row else None
