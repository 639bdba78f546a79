"""
Oracle adapter exception classes and the normalized error record.
"""
import re
from dataclasses import dataclass
from typing import Any

_ORA_CODE = re.compile(r'ORA-(\d+)')


def parse_ora_code(text: str | None) -> int | None:
    """Return the numeric part of the first ``ORA-<digits>`` token in `text`.
    """
    if not text:
        return None
    match = _ORA_CODE.search(str(text))
    if match is None:
        return None
    return int(match.group(1))


class DatabaseError(Exception):
    """Base class for all adapter errors"""


class ConnectionError(DatabaseError):
    """Native driver unavailable, or connect/pconnect failure"""


class QueryError(DatabaseError):
    """Error constructing or executing a statement"""


class ExecutionError(QueryError):
    """Error raised by a statement's execute()"""


@dataclass(frozen=True)
class ErrorRecord:
    """Last error reported by the native driver.

    Mirrors the ``{code, message}`` pair the driver exposes for a handle.
    `offset` and `sql` are filled in when the driver reports them.
    """
    code: int
    message: str
    offset: int = 0
    sql: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, sql: str | None = None) -> 'ErrorRecord':
        """Build a record from an ``oracledb.Error`` (or any exception).

        python-oracledb stores an ``_Error`` object as the first argument,
        carrying ``code``, ``message`` and ``offset``.
        """
        error: Any = exc.args[0] if exc.args else None
        code = getattr(error, 'code', None)
        message = getattr(error, 'message', None) or str(exc)
        if not code:
            code = parse_ora_code(message) or 0
        offset = getattr(error, 'offset', 0) or 0
        return cls(code=int(code), message=message, offset=int(offset), sql=sql)

    def as_info(self) -> tuple[int, int, str]:
        """Return the ``(code, code, message)`` error-info triplet.

        No separate SQLSTATE exists, so the native code fills both slots.
        """
        return (self.code, self.code, self.message)
