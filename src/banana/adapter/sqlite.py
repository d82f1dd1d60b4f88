from banana.adapter.base import Adapter
from banana.db import SQLITE
from banana.entity import TableMapping


def dict_row(cursor, row) -> dict:
    """sqlite3 row factory producing dicts keyed by column name."""
    return {column[0]: value for column, value in zip(cursor.description, row)}


class SqliteAdapter(Adapter):
    """SQLite via the sqlite3 module: :name placeholders, keys via lastrowid."""

    dialect = SQLITE

    def placeholder(self, name: str = None) -> str:
        return f":{name}" if name else "?"

    def cursor(self, conn):
        cur = conn.cursor()
        cur.row_factory = dict_row
        return cur

    def bind(self, params):
        # sqlite3 rejects None where psycopg treats it as "no parameters"
        return () if params is None else params

    def inserted_key(self, cursor, mapping: TableMapping):
        return cursor.lastrowid
