"""
End-to-end behavior against an Oracle Free container.
"""
import pdooci
import pytest
from pdooci.attributes import Attribute

pytestmark = pytest.mark.integration


def test_exec_returns_affected_rows(ora_conn):
    assert ora_conn.exec('DELETE FROM test_table') == 3
    assert pdooci.select_scalar(ora_conn, 'select count(*) from test_table') == 0


def test_query_clears_error_state(ora_conn):
    stmt = ora_conn.query('select name, value from test_table order by value')

    assert ora_conn.errorCode() is None
    assert ora_conn.errorInfo() is None
    assert [row['NAME'] for row in stmt.fetchAll()] == ['Alice', 'Bob', 'Charlie']
    stmt.closeCursor()


def test_malformed_sql_reports_native_error(ora_conn):
    with pytest.raises(pdooci.QueryError, match='ORA-00942'):
        ora_conn.query('select * from no_such_table')

    assert ora_conn.errorCode() == 942
    code, driver_code, message = ora_conn.errorInfo()
    assert code == driver_code == 942
    assert 'ORA-00942' in message


def test_rollback_discards_work(ora_conn):
    ora_conn.beginTransaction()
    ora_conn.exec("update test_table set value = 99 where name = 'Alice'")
    ora_conn.rollBack()

    assert ora_conn.errorCode() is None
    assert ora_conn.getAutoCommit() is False
    assert pdooci.select_scalar(ora_conn, "select value from test_table where name = 'Alice'") == 10


def test_commit_keeps_autocommit_off(ora_conn):
    ora_conn.beginTransaction()
    ora_conn.exec("update test_table set value = 11 where name = 'Alice'")
    ora_conn.commit()

    assert ora_conn.getAutoCommit() is False
    ora_conn.rollBack()
    assert pdooci.select_scalar(ora_conn, "select value from test_table where name = 'Alice'") == 11


def test_autocommit_string_form(ora_conn):
    ora_conn.beginTransaction()
    ora_conn.setAttribute(Attribute.AUTOCOMMIT, 'ON')
    assert ora_conn.getAutoCommit() is True

    ora_conn.exec("update test_table set value = 12 where name = 'Bob'")
    ora_conn.rollBack()
    assert pdooci.select_scalar(ora_conn, "select value from test_table where name = 'Bob'") == 12


def test_transaction_context_manager(ora_conn):
    with pytest.raises(RuntimeError):
        with pdooci.transaction(ora_conn) as tx:
            tx.execute('update test_table set value = :1 where name = :2', 0, 'Charlie')
            raise RuntimeError('abort')

    assert pdooci.select_scalar(ora_conn, "select value from test_table where name = 'Charlie'") == 30

    with pdooci.transaction(ora_conn) as tx:
        tx.execute('update test_table set value = :1 where name = :2', 31, 'Charlie')

    assert pdooci.select_scalar(ora_conn, "select value from test_table where name = 'Charlie'") == 31


def test_quote_is_accepted_by_server(ora_conn):
    value = "it's O'Reilly's"
    assert pdooci.select_scalar(ora_conn, f'select {ora_conn.quote(value)} from dual') == value


def test_prepared_statement_with_binds(ora_conn):
    stmt = ora_conn.prepare('select value from test_table where name = :name')
    stmt.bindValue(':name', 'Bob')
    stmt.execute()

    assert stmt.fetchColumn() == 20
    stmt.closeCursor()


def test_close_twice(ora_conn):
    ora_conn.close()
    ora_conn.close()
    assert ora_conn.closed
