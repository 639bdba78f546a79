"""
Statement executor used by the connection adapter.

Wraps one native cursor: construct, bind, execute, read the row count,
fetch rows, release the cursor. Placeholders are passed to the driver as-is.
"""
import logging
import time
from collections.abc import Iterator
from functools import wraps
from typing import TYPE_CHECKING, Any

from pdooci import native
from pdooci.exceptions import ExecutionError, QueryError

if TYPE_CHECKING:
    from pdooci.connection import Connection

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements and parameters."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.queryString}\nargs: {args}')
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{self.queryString}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connection.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Statement:
    """Prepared statement bound to one connection.

    Construction prepares the SQL on a fresh native cursor; nothing runs on
    the server until `execute()`.
    """

    def __init__(self, connection: 'Connection', sql: str) -> None:
        self.connection = connection
        self.queryString = sql
        self._bound: dict[str | int, Any] = {}
        self._rowcount = 0
        self.cursor = self._parse()

    def _parse(self) -> native.NativeCursor:
        handle = self.connection.getConnection()
        if handle is None or not handle.valid:
            raise QueryError('Connection is closed')
        return handle.parse(self.queryString)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while (row := self.fetch()) is not None:
            yield row

    def bindValue(self, param: str | int, value: Any, type: Any = None) -> bool:
        """Bind a value to a named (``:name``) or 1-based positional placeholder.
        """
        key = param.lstrip(':') if isinstance(param, str) else int(param)
        self._bound[key] = value
        return True

    def _bound_params(self) -> list | dict | None:
        if not self._bound:
            return None
        if all(isinstance(key, int) for key in self._bound):
            return [self._bound[key] for key in sorted(self._bound)]
        return dict(self._bound)

    @dumpsql
    def execute(self, params: list | tuple | dict | None = None) -> bool:
        """Execute the statement, committing on success when autocommit is on.

        Raises ExecutionError carrying the native message.
        """
        handle = self.connection.getConnection()
        if handle is None or not handle.valid:
            raise ExecutionError('Connection is closed')
        if not self.cursor.valid:
            self.cursor = self._parse()

        if params is None:
            params = self._bound_params()
        elif isinstance(params, tuple):
            params = list(params)

        try:
            self.cursor.execute(params, autocommit=self.connection.getAutoCommit())
            self._rowcount = self.cursor.rowcount
        except native.DRIVER_ERRORS as exc:
            record = self.cursor.error()
            raise ExecutionError(record.message if record else str(exc)) from exc
        return True

    def rowCount(self) -> int:
        """Rows affected by the last execute (or fetched so far for queries)."""
        if self.cursor.valid:
            self._rowcount = self.cursor.rowcount
        return self._rowcount

    def columnCount(self) -> int:
        return len(self.cursor.description or [])

    def _columns(self) -> list[str]:
        return [desc[0] for desc in (self.cursor.description or [])]

    def fetch(self) -> dict[str, Any] | None:
        """Fetch the next row as a column-name dictionary."""
        if not self.cursor.valid or self.cursor.description is None:
            return None
        row = self.cursor.fetchone()
        if row is None:
            return None
        return dict(zip(self._columns(), row))

    def fetchAll(self) -> list[dict[str, Any]]:
        if not self.cursor.valid or self.cursor.description is None:
            return []
        columns = self._columns()
        return [dict(zip(columns, row)) for row in self.cursor.fetchall()]

    def fetchColumn(self, index: int = 0) -> Any:
        if not self.cursor.valid or self.cursor.description is None:
            return None
        row = self.cursor.fetchone()
        if row is None:
            return None
        return row[index]

    def closeCursor(self) -> bool:
        """Release the native cursor; safe to call more than once."""
        if self.cursor.valid:
            try:
                self._rowcount = self.cursor.rowcount
            except native.DRIVER_ERRORS as exc:
                # Already recorded on the cursor; releasing must still happen.
                logger.debug(f'Row count unavailable while closing cursor: {exc}')
        self.cursor.release()
        return True

    def errorCode(self) -> int | None:
        record = self.cursor.error()
        return record.code if record else None

    def errorInfo(self) -> tuple[int, int, str] | None:
        record = self.cursor.error()
        return record.as_info() if record else None
