from dataclasses import dataclass
from typing import Any

from pdooci.attributes import Attribute

from libb import ConfigOptions, scriptname

__all__ = [
    'OracleOptions',
]


@dataclass
class OracleOptions(ConfigOptions):
    """Options

    Either `dsn` (Easy Connect string, TNS alias or any accepted data source)
    or `hostname` plus `database` (the service name) must be given.

    Session options:
    - persistent: Reuse a cached connection for these credentials (default: False)
    - autocommit: Commit after every statement (default: True)
    - timeout: TCP connect timeout in seconds, 0 for the driver default
    """
    hostname: str = None
    port: int = 1521
    database: str = None
    username: str = None
    password: str = None
    dsn: str = None
    persistent: bool = False
    autocommit: bool = True
    timeout: int = 0
    appname: str = None

    def __post_init__(self):
        if not self.dsn and not (self.hostname and self.database):
            raise ValueError('either dsn or hostname and database must be provided')
        if self.port is not None and self.port < 0:
            raise ValueError('port must be a non-negative integer')
        if self.timeout is not None and self.timeout < 0:
            raise ValueError('timeout must be a non-negative number of seconds')
        self.appname = self.appname or scriptname() or 'python_console'

    def to_attributes(self) -> dict[Attribute, Any]:
        """Connect options in attribute form.
        """
        attributes: dict[Attribute, Any] = {}
        if self.persistent:
            attributes[Attribute.PERSISTENT] = True
        return attributes
