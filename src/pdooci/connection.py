"""
Oracle connection adapter.

This module provides:
1. The `Connection` class, exposing the generic database-access connection
   surface (query, exec, prepare, attributes, transactions, error info,
   quoting) on top of a native Oracle handle
2. The `connect()` and `connect_with_options()` factories
3. `OraErrorLogHandler`, a logging handler that routes ``ORA-`` messages
   into a connection's last-error slot

Error reporting is deliberately asymmetric:
- construction, query, exec and prepare raise (`ConnectionError`, `QueryError`)
- commit and rollBack only record; poll errorCode()/errorInfo() afterwards
"""
import logging
from collections.abc import Mapping
from dataclasses import fields
from typing import Any, Self

from pdooci import native
from pdooci.attributes import RECOGNIZED, Attribute, as_autocommit
from pdooci.attributes import is_persistent, lookup
from pdooci.dsn import dsn_from_options, parse_data_source
from pdooci.exceptions import ConnectionError, ErrorRecord, QueryError
from pdooci.exceptions import parse_ora_code
from pdooci.options import OracleOptions
from pdooci.statement import Statement
from sqlalchemy import dialects as sa_dialects

from libb import load_options

__all__ = [
    'DRIVER_NAME',
    'Connection',
    'OraErrorLogHandler',
    'connect',
    'connect_with_options',
]

logger = logging.getLogger(__name__)

DRIVER_NAME = 'oci'

_QUERY_FAILURES = (QueryError, *native.DRIVER_ERRORS)


def _message(exc: BaseException) -> str:
    if isinstance(exc, QueryError):
        return str(exc)
    return ErrorRecord.from_exception(exc).message


class Connection:
    """One session to an Oracle database through the native driver.

    Autocommit starts on. ``autocommit == False`` is what "in a transaction"
    means here: beginTransaction() only flips the flag and the server opens
    the transaction on the first modifying statement.
    """

    def __init__(self, dataSource: str, username: str | None = None,
                 password: str | None = None, options: Mapping | None = None,
                 **params: Any) -> None:
        """Connect, using the persistent registry when `options` asks for it.

        Extra keyword arguments go straight to ``oracledb.connect``.
        """
        self._handle: native.NativeHandle | None = None
        self._autocommit = True
        self._last_error: ErrorRecord | None = None
        self.calls = 0
        self.time = 0

        if not native.is_available():
            raise ConnectionError('No support for Oracle, please install the OCI driver')

        try:
            source = parse_data_source(dataSource)
        except ValueError as exc:
            raise ConnectionError(str(exc)) from exc

        username = username if username is not None else source.username
        password = password if password is not None else source.password

        connector = native.pconnect if is_persistent(options) else native.connect
        try:
            self._handle = connector(username, password, source.dsn, **params)
        except native.DRIVER_ERRORS as exc:
            raise ConnectionError(ErrorRecord.from_exception(exc).message) from exc

        # Some connects hand back a usable-looking handle with a deferred error.
        self.setError()
        logger.debug(f'Connected to {source.dsn} (persistent={self._handle.persistent})')

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()
        logger.debug('Closed connection via context manager')

    @property
    def closed(self) -> bool:
        return self._handle is None

    def getConnection(self) -> native.NativeHandle | None:
        """Return the native handle, or None once closed."""
        return self._handle

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def query(self, statement: str, mode: Any = None, p1: Any = None,
              p2: Any = None) -> Statement:
        """Prepare and execute `statement`, returning the executed statement.

        `mode`, `p1` and `p2` are accepted for interface compatibility only;
        fetch modes are not applied.
        """
        if mode is not None or p1 is not None or p2 is not None:
            logger.debug(f'query() fetch mode arguments not applied: {mode}, {p1}, {p2}')

        stmt = None
        try:
            stmt = Statement(self, statement)
            stmt.execute()
        except _QUERY_FAILURES as exc:
            if stmt is not None:
                self.setError(stmt)
                stmt.closeCursor()
            else:
                self.setError()
            raise QueryError(_message(exc)) from exc

        self.setError()
        return stmt

    def exec(self, statement: str) -> int:
        """Execute `statement` and return the number of affected rows.

        The statement's cursor is released before returning or raising.
        """
        stmt = self.query(statement)
        try:
            return stmt.rowCount()
        except _QUERY_FAILURES as exc:
            self.setError(stmt)
            raise QueryError(_message(exc)) from exc
        finally:
            stmt.closeCursor()

    def prepare(self, statement: str, options: Mapping | None = None) -> Statement:
        """Prepare `statement` without executing it.

        Driver options are accepted for interface compatibility and ignored.
        """
        try:
            return Statement(self, statement)
        except _QUERY_FAILURES as exc:
            self.setError()
            raise QueryError(_message(exc)) from exc

    def setAttribute(self, attr: Attribute | int, value: Any) -> bool:
        """Set a connection attribute.

        Only AUTOCOMMIT is stored. Any other identifier is ignored without
        error and without effect.
        """
        attribute = lookup(attr)
        if attribute not in RECOGNIZED:
            logger.debug(f'Ignoring unsupported attribute {attr!r}')
            return False

        self._autocommit = as_autocommit(value)
        logger.debug(f'Autocommit set to {self._autocommit}')
        return True

    def getAttribute(self, attr: Attribute | int) -> Any:
        if lookup(attr) is Attribute.AUTOCOMMIT:
            return self._autocommit
        return None

    def getAutoCommit(self) -> bool:
        return self._autocommit

    def commit(self) -> bool:
        """Commit the session. Failures are recorded, not raised."""
        ok = native.commit(self._handle)
        self.setError()
        return ok

    def rollBack(self) -> bool:
        """Roll back the session. Failures are recorded, not raised."""
        ok = native.rollback(self._handle)
        self.setError()
        return ok

    def beginTransaction(self) -> bool:
        return self.setAttribute(Attribute.AUTOCOMMIT, False)

    def inTransaction(self) -> bool:
        return not self._autocommit

    def close(self) -> None:
        """Release the native handle; later calls do nothing."""
        if self._handle is None:
            return
        native.close(self._handle)
        self._handle = None
        logger.debug(f'Connection closed: {self.calls} statements in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per statement)')

    def setError(self, target: Any = None) -> None:
        """Refresh the last error from the driver.

        `target` defaults to this connection's handle and may be a native
        resource or a `Statement`. Anything that is not a valid native
        resource is ignored. When the driver reports no error the stored
        record is cleared.
        """
        if target is None:
            target = self._handle
        if isinstance(target, Statement):
            target = target.cursor
        if not isinstance(target, native.NativeResource) or not target.valid:
            return
        self._last_error = native.error(target)

    def errorCode(self) -> int | None:
        if self._last_error is None:
            return None
        return self._last_error.code

    def errorInfo(self) -> tuple[int, int, str] | None:
        if self._last_error is None:
            return None
        return self._last_error.as_info()

    def errorHandler(self, level: int, message: str, file: str | None = None,
                     line: int | None = None) -> None:
        """Process-wide error hook: capture ``ORA-<digits>`` codes from messages.

        Messages without an Oracle code fall back to querying the handle.
        """
        code = parse_ora_code(message)
        if code is not None:
            self._last_error = ErrorRecord(code=code, message=str(message))
            logger.debug(f'Captured ORA-{code:05d} from {file}:{line}')
        else:
            self.setError()

    @staticmethod
    def getAvailableDrivers() -> list[str]:
        """Return the known driver names, always including this adapter's."""
        drivers = list(getattr(sa_dialects, '__all__', ()))
        if DRIVER_NAME not in drivers:
            drivers.append(DRIVER_NAME)
        return drivers

    def quote(self, string: Any, type: Any = None) -> str:
        """Quote a string literal by doubling embedded single quotes.
        """
        text = '' if string is None else str(string)
        return "'" + text.replace("'", "''") + "'"


class OraErrorLogHandler(logging.Handler):
    """Logging handler feeding records into `Connection.errorHandler`.

    Examples
        logging.getLogger('app').addHandler(OraErrorLogHandler(cn))
    """

    def __init__(self, connection: Connection, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self.connection = connection

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.connection.errorHandler(record.levelno, record.getMessage(),
                                         record.pathname, record.lineno)
        except Exception:
            self.handleError(record)


def connect(dataSource: str, username: str | None = None, password: str | None = None,
            options: Mapping | None = None, **params: Any) -> Connection:
    """Connect to an Oracle database.

    Raises ConnectionError when the driver is missing or the connect fails.
    """
    return Connection(dataSource, username, password, options, **params)


@load_options(cls=OracleOptions)
def connect_with_options(options: OracleOptions | dict[str, Any] | str,
                         config: Any | None = None, **kw: Any) -> Connection:
    """Connect using configured options

    Args:
        options: Can be:
                - OracleOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Connection with the configured autocommit mode applied
    """
    if isinstance(options, OracleOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=OracleOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    params: dict[str, Any] = {}
    if options.timeout:
        params['tcp_connect_timeout'] = float(options.timeout)

    cn = Connection(dsn_from_options(options), options.username, options.password,
                    options.to_attributes(), **params)
    cn.getConnection().set_module(options.appname)
    if not options.autocommit:
        cn.setAttribute(Attribute.AUTOCOMMIT, False)
    return cn
