"""
Connection attribute identifiers.

Values match the generic database-access interface so callers can pass
either the enum member or the raw integer.
"""
import logging
from collections.abc import Mapping
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    'Attribute',
    'RECOGNIZED',
    'as_autocommit',
    'is_persistent',
    'lookup',
]


class Attribute(IntEnum):
    AUTOCOMMIT = 0
    PREFETCH = 1
    TIMEOUT = 2
    ERRMODE = 3
    SERVER_VERSION = 4
    CLIENT_VERSION = 5
    SERVER_INFO = 6
    CONNECTION_STATUS = 7
    CASE = 8
    CURSOR_NAME = 9
    CURSOR = 10
    ORACLE_NULLS = 11
    PERSISTENT = 12
    STATEMENT_CLASS = 13
    FETCH_TABLE_NAMES = 14
    FETCH_CATALOG_NAMES = 15
    DRIVER_NAME = 16
    STRINGIFY_FETCHES = 17
    MAX_COLUMN_LEN = 18
    DEFAULT_FETCH_MODE = 19
    EMULATE_PREPARES = 20


# Attributes the connection actually stores; everything else is ignored.
RECOGNIZED = frozenset({Attribute.AUTOCOMMIT})


def lookup(attr: Any) -> Attribute | None:
    """Resolve an attribute id (enum member or int) to an `Attribute`.
    """
    try:
        return Attribute(attr)
    except (ValueError, TypeError):
        return None


def as_autocommit(value: Any) -> bool:
    """Interpret an AUTOCOMMIT value.

    Only boolean ``True`` and the strings ``"on"``/``"true"`` (any case)
    switch autocommit on.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {'on', 'true'}
    return False


def is_persistent(options: Mapping | None) -> bool:
    """Check whether connect options request a persistent connection.
    """
    if not options:
        return False
    for key, value in options.items():
        if lookup(key) is Attribute.PERSISTENT:
            return bool(value)
    return False
