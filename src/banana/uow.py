"""Unit of Work: several repositories sharing one connection and transaction."""

import logging

from banana import db
from banana.exceptions import TransactionError
from banana.repository import Repository
from banana.transaction import Transaction, TransactionState

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Transactional boundary spanning any number of repositories.

    Usage:
        with UnitOfWork() as uow:
            users = uow.repository(User)
            orders = uow.repository(Order)
            users.insert(user)
            orders.insert(order)
            uow.commit()
        # rolled back on exit if not committed
    """

    def __init__(self, connection=None):
        self._connection = connection
        self._owns_connection = False
        self.transaction: Transaction | None = None
        self._repositories: dict[type, Repository] = {}

    @property
    def state(self) -> TransactionState:
        if self.transaction is not None and self.transaction.is_open:
            return TransactionState.OPEN
        return TransactionState.CLOSED

    def __enter__(self) -> "UnitOfWork":
        if self.state is TransactionState.OPEN:
            raise TransactionError("Unit of work is already in progress")
        if self._connection is None:
            self._connection = db.connect()
            self._owns_connection = not db.is_override(self._connection)
        self.transaction = Transaction(self._connection)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if self.state is TransactionState.OPEN:
                if exc_type is None:
                    logger.warning("Unit of work exited without commit; rolling back")
                self.transaction.rollback()
        finally:
            self._repositories.clear()
            if self._owns_connection:
                db.release(self._connection)
                self._connection = None
                self._owns_connection = False

    def repository(self, entity: type) -> Repository:
        """Repository for ``entity`` bound to this unit of work's transaction."""
        if self.state is not TransactionState.OPEN:
            raise TransactionError("Unit of work has no open transaction")
        if entity not in self._repositories:
            self._repositories[entity] = Repository(
                entity, connection=self._connection, transaction=self.transaction
            )
        return self._repositories[entity]

    def commit(self) -> None:
        if self.transaction is None:
            raise TransactionError("Unit of work has not been started")
        self.transaction.commit()

    def rollback(self) -> None:
        if self.transaction is None:
            raise TransactionError("Unit of work has not been started")
        self.transaction.rollback()
