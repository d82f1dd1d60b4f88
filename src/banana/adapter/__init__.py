"""
SQL adapters

One adapter per supported dialect, looked up by the dialect name that
banana.db reports for a connection.
"""

from banana.adapter.base import Adapter, Statement
from banana.adapter.postgres import PostgresAdapter
from banana.adapter.sqlite import SqliteAdapter
from banana.exceptions import ConfigurationError

ADAPTERS: dict[str, Adapter] = {
    PostgresAdapter.dialect: PostgresAdapter(),
    SqliteAdapter.dialect: SqliteAdapter(),
}


def get_adapter(dialect: str) -> Adapter:
    """Return the adapter registered for a dialect."""
    try:
        return ADAPTERS[dialect]
    except KeyError:
        raise ConfigurationError(f"No SQL adapter for dialect '{dialect}'") from None


__all__ = [
    "ADAPTERS",
    "Adapter",
    "PostgresAdapter",
    "SqliteAdapter",
    "Statement",
    "get_adapter",
]
