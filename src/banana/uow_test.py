"""
Integration tests for UnitOfWork against SQLite.

Run with: BANANA_ENV=test pytest src/banana/uow_test.py -v
"""

from dataclasses import dataclass

import pytest

from banana.entity import table
from banana.exceptions import TransactionError
from banana.transaction import TransactionState
from banana.uow import UnitOfWork


@table("widgets")
@dataclass
class Part:
    id: int | None = None
    name: str = ""
    price: float = 0.0


@table("tags", key="code", auto_key=False)
@dataclass
class Label:
    code: str
    label: str | None = None


def test_commit_persists_all_repositories(db_connection, count_rows):
    with UnitOfWork() as uow:
        uow.repository(Part).insert(Part(name="bolt"))
        uow.repository(Label).insert(Label(code="steel"))
        uow.commit()

    assert count_rows("widgets") == 1
    assert count_rows("tags") == 1


def test_exit_without_commit_rolls_back(db_connection, count_rows):
    with UnitOfWork() as uow:
        uow.repository(Part).insert(Part(name="bolt"))
        uow.repository(Label).insert(Label(code="steel"))

    assert uow.state is TransactionState.CLOSED
    assert count_rows("widgets") == 0
    assert count_rows("tags") == 0


def test_exception_rolls_back(db_connection, count_rows):
    with pytest.raises(RuntimeError):
        with UnitOfWork() as uow:
            uow.repository(Part).insert(Part(name="bolt"))
            raise RuntimeError("boom")

    assert count_rows("widgets") == 0


def test_repositories_share_transaction(db_connection):
    with UnitOfWork(connection=db_connection) as uow:
        parts = uow.repository(Part)
        labels = uow.repository(Label)

        assert parts.connection is labels.connection is db_connection
        assert parts.transaction_state is TransactionState.OPEN
        assert uow.repository(Part) is parts
        with pytest.raises(TransactionError):
            parts.insert_batch("INSERT INTO widgets (name) VALUES (:name)", [Part()])
        uow.rollback()


def test_repository_outside_unit_raises():
    with pytest.raises(TransactionError):
        UnitOfWork().repository(Part)


def test_commit_before_start_raises():
    with pytest.raises(TransactionError):
        UnitOfWork().commit()


def test_commit_twice_raises(db_connection):
    with UnitOfWork() as uow:
        uow.commit()
        with pytest.raises(TransactionError):
            uow.commit()
