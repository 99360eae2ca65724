"""Thin statement gateway over a SQLAlchemy session.

Every statement is a SQLAlchemy Core construct, so values always travel as
bound parameters. Writes commit on their own unless they run inside
:meth:`Database.transaction`. Driver errors are logged here and re-raised as
:class:`InternalFailure`; the client never sees the driver message.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopsmart.core.exceptions import InternalFailure

logger = structlog.get_logger()


class Database:

    def __init__(self, session: Session):
        self.session = session
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Group several statements into one commit; roll back on any error."""
        if self._in_transaction:
            yield self
            return

        self._in_transaction = True
        try:
            yield self
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._in_transaction = False
        self._commit("transaction")

    def fetch_one(self, stmt) -> Optional[Dict[str, Any]]:
        row = self._execute(stmt, "fetch_one").mappings().first()
        return dict(row) if row is not None else None

    def fetch_all(self, stmt) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._execute(stmt, "fetch_all").mappings().all()]

    def scalar(self, stmt) -> Any:
        return self._execute(stmt, "scalar").scalar()

    def insert(self, stmt) -> Any:
        """Run an INSERT and return the new primary key."""
        result = self._execute(stmt, "insert")
        new_id = result.inserted_primary_key[0]
        self._commit("insert")
        return new_id

    def update(self, stmt) -> int:
        """Run an UPDATE and return the affected row count."""
        affected = self._execute(stmt, "update").rowcount
        self._commit("update")
        return affected

    def delete(self, stmt) -> int:
        """Run a DELETE and return the affected row count."""
        affected = self._execute(stmt, "delete").rowcount
        self._commit("delete")
        return affected

    def _execute(self, stmt, operation: str):
        try:
            # Core execution on the session's connection: no ORM bookkeeping, same transaction.
            return self.session.connection().execute(stmt)
        except SQLAlchemyError as exc:
            self._fail(operation, exc)

    def _commit(self, operation: str) -> None:
        if self._in_transaction:
            return
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail(operation, exc)

    def _fail(self, operation: str, exc: SQLAlchemyError) -> None:
        self.session.rollback()
        logger.error(
            "query_failed",
            operation=operation,
            error_type=type(exc).__name__,
            detail=str(exc.orig if getattr(exc, "orig", None) is not None else exc),
        )
        raise InternalFailure() from exc
