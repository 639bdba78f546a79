"""
Literal quoting and driver discovery.
"""
import pytest
from pdooci.connection import DRIVER_NAME, Connection


def _unquote(quoted):
    assert quoted.startswith("'") and quoted.endswith("'")
    body = quoted[1:-1]
    assert "'" not in body.replace("''", '')
    return body.replace("''", "'")


@pytest.mark.parametrize('value', [
    '',
    'plain',
    "O'Reilly",
    "''",
    "'",
    "it's a 'quoted' string",
    'back\\slash; drop table t; --',
    'unicode ü ñ 漢字',
])
def test_quote_round_trips(cn, value):
    quoted = cn.quote(value)
    assert _unquote(quoted) == value


def test_quote_doubles_single_quotes(cn):
    assert cn.quote("O'Reilly") == "'O''Reilly'"
    assert cn.quote('abc') == "'abc'"


def test_quote_ignores_type(cn):
    assert cn.quote('42', type=1) == "'42'"


def test_quote_non_strings(cn):
    assert cn.quote(42) == "'42'"
    assert cn.quote(None) == "''"


def test_available_drivers_include_oci(cn):
    drivers = cn.getAvailableDrivers()
    assert DRIVER_NAME in drivers
    assert drivers.count(DRIVER_NAME) == 1
    assert 'oracle' in drivers


def test_available_drivers_static():
    assert DRIVER_NAME in Connection.getAvailableDrivers()


def test_available_drivers_keeps_existing_entry(mocker):
    mocker.patch('pdooci.connection.sa_dialects.__all__', ('oracle', 'oci'))
    assert Connection.getAvailableDrivers() == ['oracle', 'oci']
