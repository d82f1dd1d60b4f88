import enum
import logging

from banana.exceptions import TransactionError

logger = logging.getLogger(__name__)


class TransactionState(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Transaction:
    """
    A transaction on a DB-API connection.

    DB-API drivers begin transactions implicitly on the first statement, so
    opening one only marks the handle OPEN. The handle commits or rolls back
    exactly once and is CLOSED afterwards, whatever the outcome.

    Usage:
        with Transaction(conn) as tx:
            ...
            tx.commit()
        # rolled back on exit if still open
    """

    def __init__(self, connection):
        self.connection = connection
        self.state = TransactionState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is TransactionState.OPEN

    def _ensure_open(self, action: str) -> None:
        if not self.is_open:
            raise TransactionError(f"Cannot {action} a closed transaction")

    def commit(self) -> None:
        self._ensure_open("commit")
        try:
            self.connection.commit()
        finally:
            self.state = TransactionState.CLOSED
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        self._ensure_open("roll back")
        try:
            self.connection.rollback()
        finally:
            self.state = TransactionState.CLOSED
        logger.debug("Transaction rolled back")

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.is_open:
            self.rollback()
