import pathlib
import site

import pytest
from pdooci.native import dispose_persistent_connections

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_persistent_connections():
    """Empty the persistent connection registry around each test."""
    dispose_persistent_connections()
    yield
    dispose_persistent_connections()


pytest_plugins = [
    'tests.fixtures.native',
    'tests.fixtures.oracle',
]
