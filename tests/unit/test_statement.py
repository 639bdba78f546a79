"""
Statement executor behavior as used by the connection adapter.
"""
import pytest
from pdooci.exceptions import ExecutionError


@pytest.fixture
def emp_cursor(fake_cursor):
    """Cursor returning a two-row result set."""
    fake_cursor.description = [('EMPNO',), ('ENAME',)]
    fake_cursor.fetchone.side_effect = [(7369, 'SMITH'), (7499, 'ALLEN'), None]
    fake_cursor.fetchall.return_value = [(7369, 'SMITH'), (7499, 'ALLEN')]
    fake_cursor.rowcount = 2
    return fake_cursor


def test_fetch_rows_as_dicts(cn, emp_cursor):
    stmt = cn.query('select empno, ename from emp')

    assert stmt.columnCount() == 2
    assert stmt.fetch() == {'EMPNO': 7369, 'ENAME': 'SMITH'}
    assert stmt.fetch() == {'EMPNO': 7499, 'ENAME': 'ALLEN'}
    assert stmt.fetch() is None


def test_fetch_all(cn, emp_cursor):
    stmt = cn.query('select empno, ename from emp')
    assert stmt.fetchAll() == [{'EMPNO': 7369, 'ENAME': 'SMITH'},
                               {'EMPNO': 7499, 'ENAME': 'ALLEN'}]


def test_iteration(cn, emp_cursor):
    stmt = cn.query('select empno, ename from emp')
    assert [row['ENAME'] for row in stmt] == ['SMITH', 'ALLEN']


def test_fetch_column(cn, emp_cursor):
    stmt = cn.query('select empno, ename from emp')
    assert stmt.fetchColumn(1) == 'SMITH'


def test_dml_has_no_rows(cn, fake_cursor):
    fake_cursor.rowcount = 4
    stmt = cn.query('update emp set sal = sal * 1.1')

    assert stmt.fetch() is None
    assert stmt.fetchAll() == []
    assert stmt.rowCount() == 4


def test_bind_named_values(cn, fake_cursor):
    stmt = cn.prepare('select * from emp where empno = :empno and deptno = :deptno')
    stmt.bindValue(':empno', 7369)
    stmt.bindValue('deptno', 20)

    stmt.execute()
    fake_cursor.execute.assert_called_once_with(None, {'empno': 7369, 'deptno': 20})


def test_bind_positional_values(cn, fake_cursor):
    stmt = cn.prepare('insert into t values (:1, :2)')
    stmt.bindValue(2, 'b')
    stmt.bindValue(1, 'a')

    stmt.execute()
    fake_cursor.execute.assert_called_once_with(None, ['a', 'b'])


def test_execute_params_override_bound(cn, fake_cursor):
    stmt = cn.prepare('insert into t values (:1)')
    stmt.bindValue(1, 'ignored')

    stmt.execute(('used',))
    fake_cursor.execute.assert_called_once_with(None, ['used'])


def test_execute_failure(cn, fake_cursor, ora_error):
    fake_cursor.execute.side_effect = ora_error(1, 'ORA-00001: unique constraint violated')
    stmt = cn.prepare("insert into t values ('dup')")

    with pytest.raises(ExecutionError, match='ORA-00001'):
        stmt.execute()
    assert stmt.errorCode() == 1
    assert stmt.errorInfo() == (1, 1, 'ORA-00001: unique constraint violated')


def test_close_cursor_is_idempotent(cn, fake_cursor):
    fake_cursor.rowcount = 5
    stmt = cn.query('delete from t')

    assert stmt.closeCursor() is True
    assert stmt.closeCursor() is True
    fake_cursor.close.assert_called_once()
    assert stmt.rowCount() == 5
    assert stmt.fetch() is None


def test_execute_after_close_reparses(cn, fake_raw_connection, fake_cursor):
    stmt = cn.query('delete from t')
    stmt.closeCursor()

    stmt.execute()

    assert fake_raw_connection.cursor.call_count == 2
    assert fake_cursor.execute.call_count == 2


def test_execution_is_counted(cn):
    cn.query('select 1 from dual')
    cn.exec('delete from t')
    assert cn.calls == 2


def test_execute_after_connection_close(cn, fake_cursor):
    stmt = cn.prepare('delete from t')
    cn.close()

    with pytest.raises(ExecutionError, match='Connection is closed'):
        stmt.execute()
    fake_cursor.execute.assert_not_called()
