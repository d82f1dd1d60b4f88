"""
Banana

Generic repositories for dataclass entities mapped onto relational tables,
with paging, transactional batch inserts, and units of work.
"""

from banana.entity import TableMapping, mapping_for, register, table
from banana.exceptions import (
    BatchError,
    ConfigurationError,
    MappingError,
    RepositoryError,
    TransactionError,
)
from banana.repository import BatchResult, Repository
from banana.transaction import Transaction, TransactionState
from banana.uow import UnitOfWork

__all__ = [
    "BatchError",
    "BatchResult",
    "ConfigurationError",
    "MappingError",
    "Repository",
    "RepositoryError",
    "TableMapping",
    "Transaction",
    "TransactionError",
    "TransactionState",
    "UnitOfWork",
    "mapping_for",
    "register",
    "table",
]
