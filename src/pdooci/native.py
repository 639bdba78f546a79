"""
Native driver boundary built on python-oracledb.

The adapter expects a handle-keyed driver: primitives run against an opaque
handle and a separate ``error(handle)`` call reports what went wrong.
python-oracledb raises instead, so every primitive here records the driver
error on the resource it ran against:

1. `NativeHandle` owns one ``oracledb.Connection``
2. `NativeCursor` owns one ``oracledb.Cursor`` parsed from a handle
3. `connect()` / `pconnect()` acquire handles, `close()` releases them
4. `commit()` / `rollback()` never raise; check `error()` afterwards

Persistent connections are cached per credentials in a process-wide registry
and closed at interpreter exit. Every adapter holding one counts as a holder;
uncommitted work is rolled back only when the last holder releases it.
"""
import atexit
import logging
import threading
from typing import Any

from pdooci.exceptions import ConnectionError, ErrorRecord, QueryError

try:
    import oracledb
except ImportError:
    oracledb = None

__all__ = [
    'DRIVER_ERRORS',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
    'NativeResource',
    'NativeHandle',
    'NativeCursor',
    'is_available',
    'connect',
    'pconnect',
    'makedsn',
    'commit',
    'rollback',
    'close',
    'error',
    'dispose_persistent_connections',
]

logger = logging.getLogger(__name__)

DRIVER_ERRORS: tuple[type[BaseException], ...] = (oracledb.Error,) if oracledb is not None else ()


def _driver_errors(*names: str) -> tuple[type[BaseException], ...]:
    if oracledb is None:
        return ()
    return tuple(getattr(oracledb, name) for name in names)


# Define exception groups
DbConnectionError = (
    *_driver_errors('OperationalError',   # Lost session, listener down, timeouts
                    'InterfaceError'),    # Not connected, driver misuse
    ConnectionError,                      # Our custom exception
)

IntegrityError = (
    *_driver_errors('IntegrityError'),    # ORA-00001, ORA-02291 constraint violations
)

ProgrammingError = (
    *_driver_errors('ProgrammingError',   # ORA-00942, ORA-00904 bad SQL
                    'DatabaseError'),     # General database errors
    QueryError,                           # Our custom exception
)

OperationalError = (
    *_driver_errors('OperationalError'),  # Oracle operational issues
)

_persistent_registry: dict[tuple, Any] = {}
_persistent_holders: dict[tuple, int] = {}
_persistent_registry_lock = threading.RLock()


def is_available() -> bool:
    """Check whether the native driver module is loaded.
    """
    return oracledb is not None


class NativeResource:
    """A driver resource that remembers the error of its last primitive.
    """

    def __init__(self) -> None:
        self._error: ErrorRecord | None = None

    @property
    def valid(self) -> bool:
        raise NotImplementedError

    def error(self) -> ErrorRecord | None:
        return self._error

    def _clear(self) -> None:
        self._error = None

    def _record(self, exc: BaseException, sql: str | None = None) -> ErrorRecord:
        self._error = ErrorRecord.from_exception(exc, sql)
        logger.debug(f'Driver error ORA-{self._error.code:05d}: {self._error.message}')
        return self._error


class NativeHandle(NativeResource):
    """Owned native connection.

    `key` is set for persistent handles; releasing those returns the
    connection to the registry instead of closing it.
    """

    def __init__(self, raw: Any, key: tuple | None = None) -> None:
        super().__init__()
        self.raw = raw
        self.key = key

    @property
    def valid(self) -> bool:
        return self.raw is not None

    @property
    def persistent(self) -> bool:
        return self.key is not None

    def set_module(self, name: str) -> None:
        """Tag the session with an application name for end-to-end tracing.
        """
        self.raw.module = name

    def parse(self, sql: str) -> 'NativeCursor':
        """Open a cursor and prepare `sql` on it.
        """
        self._clear()
        try:
            cursor = self.raw.cursor()
            cursor.prepare(sql)
        except DRIVER_ERRORS as exc:
            self._record(exc, sql)
            raise
        return NativeCursor(self, cursor, sql)

    def commit(self) -> bool:
        self._clear()
        try:
            self.raw.commit()
        except DRIVER_ERRORS as exc:
            self._record(exc)
            return False
        return True

    def rollback(self) -> bool:
        self._clear()
        try:
            self.raw.rollback()
        except DRIVER_ERRORS as exc:
            self._record(exc)
            return False
        return True

    def release(self) -> None:
        """Release the connection exactly once.
        """
        if not self.valid:
            return
        raw, self.raw = self.raw, None

        if self.persistent:
            if not _release_persistent(self.key, raw):
                return
            # Uncommitted work never survives into the next borrower.
            try:
                raw.rollback()
            except DRIVER_ERRORS as exc:
                self._record(exc)
                logger.warning(f'Dropping unusable persistent connection: {exc}')
                _discard_persistent(self.key, raw)
            return

        try:
            raw.close()
        except DRIVER_ERRORS as exc:
            self._record(exc)
            logger.debug(f'Error closing native connection: {exc}')


class NativeCursor(NativeResource):
    """Owned native cursor holding one prepared statement.

    Errors are mirrored onto the owning handle, so either can be queried.
    """

    def __init__(self, handle: NativeHandle, raw: Any, sql: str) -> None:
        super().__init__()
        self.handle = handle
        self.raw = raw
        self.sql = sql

    @property
    def valid(self) -> bool:
        return self.raw is not None

    @property
    def rowcount(self) -> int:
        if not self.valid:
            return 0
        try:
            return self.raw.rowcount
        except DRIVER_ERRORS as exc:
            self.handle._error = self._record(exc, self.sql)
            raise

    @property
    def description(self) -> list[tuple] | None:
        return self.raw.description if self.valid else None

    def execute(self, params: list | dict | None = None, autocommit: bool = True) -> None:
        """Execute the prepared statement.

        With `autocommit` the driver commits on success, otherwise the
        statement joins the session's open transaction.
        """
        self._clear()
        self.handle._clear()
        try:
            self.handle.raw.autocommit = autocommit
            self.raw.execute(None, params)
        except DRIVER_ERRORS as exc:
            self.handle._error = self._record(exc, self.sql)
            raise

    def fetchone(self) -> tuple | None:
        return self.raw.fetchone()

    def fetchall(self) -> list[tuple]:
        return self.raw.fetchall()

    def release(self) -> None:
        if not self.valid:
            return
        raw, self.raw = self.raw, None
        try:
            raw.close()
        except DRIVER_ERRORS as exc:
            self._record(exc)
            logger.debug(f'Error closing native cursor: {exc}')


def connect(user: str | None, password: str | None, dsn: str, **params: Any) -> NativeHandle:
    """Open a new native connection.

    Raises the driver's own error when the connection cannot be established.
    """
    raw = oracledb.connect(user=user, password=password, dsn=dsn, **params)
    logger.debug(f'Opened Oracle connection to {dsn}')
    return NativeHandle(raw)


def _is_alive(raw: Any) -> bool:
    try:
        raw.ping()
    except DRIVER_ERRORS as exc:
        logger.debug(f'Persistent connection failed ping: {exc}')
        return False
    return True


def _release_persistent(key: tuple, raw: Any) -> bool:
    """Drop one holder of a cached connection.

    Returns True when the caller was the last holder. A connection that was
    already discarded from the registry has no holders left to count.
    """
    with _persistent_registry_lock:
        if _persistent_registry.get(key) is not raw:
            return False
        remaining = max(_persistent_holders.get(key, 1) - 1, 0)
        _persistent_holders[key] = remaining
        return remaining == 0


def _discard_persistent(key: tuple, raw: Any) -> None:
    with _persistent_registry_lock:
        if _persistent_registry.get(key) is raw:
            del _persistent_registry[key]
            _persistent_holders.pop(key, None)
    try:
        raw.close()
    except DRIVER_ERRORS as exc:
        logger.debug(f'Error closing discarded persistent connection: {exc}')


def pconnect(user: str | None, password: str | None, dsn: str, **params: Any) -> NativeHandle:
    """Get a persistent connection for these credentials, opening one if needed.
    """
    key = (user, password, dsn, tuple(sorted(params.items())))

    with _persistent_registry_lock:
        raw = _persistent_registry.get(key)
        if raw is not None and not _is_alive(raw):
            _discard_persistent(key, raw)
            raw = None

        if raw is None:
            raw = oracledb.connect(user=user, password=password, dsn=dsn, **params)
            _persistent_registry[key] = raw
            _persistent_holders[key] = 0
            logger.debug(f'Created persistent Oracle connection to {dsn}')
        else:
            logger.debug(f'Reusing persistent Oracle connection to {dsn}')
        _persistent_holders[key] += 1

    return NativeHandle(raw, key=key)


def makedsn(host: str, port: int, sid: str) -> str:
    """Build a connect descriptor addressing a database by SID.
    """
    if oracledb is None:
        raise ValueError('SID data sources need the Oracle driver')
    return oracledb.makedsn(host, port, sid=sid)


def commit(handle: NativeHandle | None) -> bool:
    if handle is None or not handle.valid:
        return False
    return handle.commit()


def rollback(handle: NativeHandle | None) -> bool:
    if handle is None or not handle.valid:
        return False
    return handle.rollback()


def close(handle: NativeHandle | None) -> None:
    if handle is not None:
        handle.release()


def error(resource: Any) -> ErrorRecord | None:
    """Return the last error recorded on a valid native resource.
    """
    if not isinstance(resource, NativeResource) or not resource.valid:
        return None
    return resource.error()


def dispose_persistent_connections() -> None:
    """Close every cached persistent connection.
    """
    with _persistent_registry_lock:
        for key, raw in list(_persistent_registry.items()):
            try:
                raw.close()
            except DRIVER_ERRORS as exc:
                logger.debug(f'Error closing persistent connection: {exc}')
        _persistent_registry.clear()
        _persistent_holders.clear()
        logger.debug('All persistent connections disposed')


atexit.register(dispose_persistent_connections)
