"""
python-oracledb 기반 SQL 실행기
"""

import logging

import oracledb

from partition_redefine.core.interfaces import StatementExecutor, StatementResult

logger = logging.getLogger(__name__)


def error_code(error: oracledb.Error):
    """oracledb 예외에서 ORA 오류 번호 추출 (없으면 None)"""
    if error.args and hasattr(error.args[0], "code"):
        return error.args[0].code
    return None


class OracleStatementExecutor(StatementExecutor):
    """단일 SQL 문 실행기

    재시도와 감사 기록은 오케스트레이터가 담당하며, 여기서는 실행 결과만 반환합니다.
    DML은 성공 시 commit, 실패 시 rollback 합니다 (DDL은 오라클이 자동 commit).
    """

    def __init__(self, connection):
        self.connection = connection

    def execute(self, statement: str) -> StatementResult:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(statement)
                rowcount = cursor.rowcount if cursor.rowcount and cursor.rowcount > 0 else 0
            self.connection.commit()
            return StatementResult.success(rowcount)

        except oracledb.Error as e:
            code = error_code(e)
            logger.debug(f"SQL 실행 실패 (ORA-{code}): {statement[:200]}")
            try:
                self.connection.rollback()
            except oracledb.Error as rollback_error:
                logger.warning(f"롤백 실패: {rollback_error}")
            return StatementResult.failure(code, str(e).strip())
