"""oracle_executor.py 단위 테스트"""

from unittest.mock import MagicMock

import oracledb
import pytest

from partition_redefine.database.oracle_executor import OracleStatementExecutor, error_code


class OraError:
    """oracledb _Error 흉내 (code, message)"""

    def __init__(self, code, message):
        self.code = code
        self.message = message

    def __str__(self):
        return self.message


@pytest.fixture
def connection():
    return MagicMock()


@pytest.fixture
def cursor(connection):
    return connection.cursor.return_value.__enter__.return_value


class TestErrorCode:
    """오류 번호 추출 테스트"""

    def test_code_from_error_object(self):
        error = oracledb.DatabaseError(OraError(54, "ORA-00054: resource busy"))

        assert error_code(error) == 54

    def test_plain_message_has_no_code(self):
        assert error_code(oracledb.DatabaseError("connection lost")) is None


class TestOracleStatementExecutor:
    """SQL 실행기 테스트"""

    def test_success_commits(self, connection, cursor):
        cursor.rowcount = 1200

        result = OracleStatementExecutor(connection).execute("INSERT /*+ APPEND */ INTO T SELECT 1 FROM DUAL")

        assert result.ok is True
        assert result.rowcount == 1200
        cursor.execute.assert_called_once_with("INSERT /*+ APPEND */ INTO T SELECT 1 FROM DUAL")
        connection.commit.assert_called_once()
        connection.rollback.assert_not_called()

    @pytest.mark.parametrize("rowcount", [None, -1, 0])
    def test_ddl_rowcount_is_zero(self, connection, cursor, rowcount):
        cursor.rowcount = rowcount

        result = OracleStatementExecutor(connection).execute("ALTER TABLE APP.SALES READ ONLY")

        assert result.ok is True
        assert result.rowcount == 0

    def test_failure_rolls_back_and_returns_code(self, connection, cursor):
        cursor.execute.side_effect = oracledb.DatabaseError(
            OraError(955, "ORA-00955: name is already used by an existing object\n")
        )

        result = OracleStatementExecutor(connection).execute("CREATE INDEX APP.IX ON APP.T (A)")

        assert result.ok is False
        assert result.code == 955
        assert result.message == "ORA-00955: name is already used by an existing object"
        connection.rollback.assert_called_once()
        connection.commit.assert_not_called()

    def test_rollback_failure_is_swallowed(self, connection, cursor):
        cursor.execute.side_effect = oracledb.DatabaseError(OraError(3113, "ORA-03113: end-of-file"))
        connection.rollback.side_effect = oracledb.InterfaceError("not connected")

        result = OracleStatementExecutor(connection).execute("SELECT 1 FROM DUAL")

        assert result.ok is False
        assert result.code == 3113

    def test_interface_error_is_failure(self, connection):
        connection.cursor.side_effect = oracledb.InterfaceError("not connected")

        result = OracleStatementExecutor(connection).execute("SELECT 1 FROM DUAL")

        assert result.ok is False
        assert result.code is None
        assert "not connected" in result.message
