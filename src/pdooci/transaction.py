"""
Transaction context manager for the Oracle connection adapter.
"""
import logging
import threading
from typing import Any

from pdooci.attributes import Attribute
from pdooci.exceptions import ExecutionError, QueryError

logger = logging.getLogger(__name__)


_local = threading.local()


class Transaction:
    """Context manager for running multiple commands in a transaction.

    Turns autocommit off on entry, commits on a clean exit, rolls back when
    the block raises, and restores the previous autocommit flag either way.
    Nested transactions on the same connection within one thread are
    rejected.

    Unlike a bare `Connection.commit()`, a failed commit here raises
    QueryError.

    Examples
        with Transaction(cn) as tx:
            tx.execute('delete from emp where deptno = :1', 10)
            tx.execute('update dept set loc = :1 where deptno = :2', 'DALLAS', 20)
    """

    def __init__(self, cn: Any) -> None:
        self.connection = cn

        if not hasattr(_local, 'active_transactions'):
            _local.active_transactions = {}

        if id(cn) in _local.active_transactions:
            raise RuntimeError('Nested transactions are not supported')

        self._previous_autocommit = cn.getAutoCommit()

    def __enter__(self):
        _local.active_transactions[id(self.connection)] = True

        self.connection.beginTransaction()
        logger.debug(f'Started transaction for connection {id(self.connection)}')

        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        try:
            if exc_type is not None:
                self.connection.rollBack()
                logger.warning('Rolling back the current transaction')
                return

            self.connection.commit()
            info = self.connection.errorInfo()
            if info is not None:
                raise QueryError(f'Commit failed: {info[2]}')
            logger.debug(f'Committed transaction for connection {id(self.connection)}')
        finally:
            _local.active_transactions.pop(id(self.connection), None)
            self.connection.setAttribute(Attribute.AUTOCOMMIT, self._previous_autocommit)
            logger.debug(f'Transaction cleanup complete for connection {id(self.connection)}')

    def _run(self, sql: str, params: tuple) -> Any:
        stmt = self.connection.prepare(sql)
        try:
            stmt.execute(list(params) or None)
        except ExecutionError as exc:
            self.connection.setError(stmt)
            stmt.closeCursor()
            raise QueryError(str(exc)) from exc
        self.connection.setError()
        return stmt

    def execute(self, sql: str, *params: Any) -> int:
        """Execute SQL within transaction context and return the affected row count."""
        stmt = self._run(sql, params)
        try:
            return stmt.rowCount()
        finally:
            stmt.closeCursor()

    def select(self, sql: str, *params: Any) -> list[dict[str, Any]]:
        """Execute a query within transaction context and return all rows."""
        stmt = self._run(sql, params)
        try:
            return stmt.fetchAll()
        finally:
            stmt.closeCursor()
