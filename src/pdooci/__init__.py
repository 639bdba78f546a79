"""
Oracle adapter exposing the generic database-access connection interface.

Operations can be called either as:
- Connection methods: cn.exec(sql), cn.query(sql).fetchAll()
- Module functions: pdooci.execute(cn, sql), pdooci.select(cn, sql)
"""
__version__ = '0.1.0'

from typing import Any

from pdooci.attributes import Attribute
from pdooci.connection import DRIVER_NAME, Connection, OraErrorLogHandler
from pdooci.connection import connect, connect_with_options
from pdooci.exceptions import ConnectionError, DatabaseError, ErrorRecord
from pdooci.exceptions import ExecutionError, QueryError
from pdooci.native import DbConnectionError, IntegrityError, OperationalError
from pdooci.native import ProgrammingError, dispose_persistent_connections
from pdooci.options import OracleOptions
from pdooci.statement import Statement
from pdooci.transaction import Transaction as transaction


def execute(cn: Connection, sql: str) -> int:
    """Execute a SQL statement and return affected row count.
    """
    return cn.exec(sql)


delete = execute
insert = execute
update = execute


def select(cn: Connection, sql: str) -> list[dict[str, Any]]:
    """Execute a query and return every row as a dictionary.
    """
    stmt = cn.query(sql)
    try:
        return stmt.fetchAll()
    finally:
        stmt.closeCursor()


def select_scalar(cn: Connection, sql: str) -> Any:
    """Execute a query and return the first column of the first row.
    """
    stmt = cn.query(sql)
    try:
        return stmt.fetchColumn()
    finally:
        stmt.closeCursor()


__all__ = [
    'connect',
    'connect_with_options',
    'Connection',
    'Statement',
    'Attribute',
    'transaction',
    'OracleOptions',
    'OraErrorLogHandler',
    'DRIVER_NAME',
    'dispose_persistent_connections',
    'execute',
    'delete',
    'insert',
    'update',
    'select',
    'select_scalar',
    'ConnectionError',
    'DatabaseError',
    'ErrorRecord',
    'ExecutionError',
    'QueryError',
    'DbConnectionError',
    'IntegrityError',
    'OperationalError',
    'ProgrammingError',
]
