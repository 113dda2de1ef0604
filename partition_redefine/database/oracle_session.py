"""
Oracle 연결 세션

연결(재시도 포함), 버전 감지, 실행기/조회기 생성을 한곳에서 처리합니다.
"""

import logging
import time
from typing import Any, Optional

import oracledb

from partition_redefine.core.config import EngineConfig
from partition_redefine.database.oracle_catalog import OracleCatalogReader, detect_version
from partition_redefine.database.oracle_executor import OracleStatementExecutor
from partition_redefine.database.version_info import OraVersionInfo
from partition_redefine.models.profile import ConnectionProfile
from partition_redefine.utils.validators import VersionValidator

logger = logging.getLogger(__name__)


def connect_with_retry(
    user: str,
    password: str,
    dsn: str,
    max_attempts: int = 3,
    delay_sec: float = 2.0,
    sleep=time.sleep,
):
    """재시도를 포함한 Oracle 연결

    Raises:
        oracledb.Error: 모든 시도가 실패한 경우 마지막 오류
    """
    last_error = None
    for attempt in range(1, max_attempts + 1):
        try:
            connection = oracledb.connect(user=user, password=password, dsn=dsn)
            logger.debug(f"Oracle 연결 성공 (시도 {attempt})")
            return connection
        except oracledb.Error as e:
            last_error = e
            logger.warning(f"Oracle 연결 실패 ({attempt}/{max_attempts}): {e}")
            if attempt < max_attempts:
                sleep(delay_sec)
    raise last_error


class OracleSession:
    """변환 실행에 필요한 Oracle 협력 객체 묶음

    Attributes:
        connection: oracledb 연결
        version_info: 감지된 DB 버전
        executor: OracleStatementExecutor
        catalog: OracleCatalogReader
        config: 버전에 맞춘 EngineConfig

    Examples:
        >>> with OracleSession.open(profile) as session:
        ...     run_conversion(table, spec, boundaries, session.executor, session.catalog,
        ...                    config=session.config)
    """

    def __init__(self, connection, version_info: Optional[OraVersionInfo] = None, **config_overrides):
        self.connection = connection
        self.version_info = version_info or detect_version(connection)
        self.executor = OracleStatementExecutor(connection)
        self.catalog = OracleCatalogReader(connection, self.version_info)
        self.config = EngineConfig.for_version(self.version_info, **config_overrides)
        logger.info(f"Oracle 세션 준비: {self.version_info}")

    @classmethod
    def open(cls, profile_or_config, max_attempts: int = 3, **config_overrides) -> "OracleSession":
        """프로필 또는 연결 설정으로 세션 열기

        Args:
            profile_or_config: ConnectionProfile 또는 connection_config 딕셔너리
            max_attempts: 연결 시도 횟수
            **config_overrides: EngineConfig 덮어쓸 값

        Returns:
            OracleSession
        """
        params = cls._connect_params(profile_or_config)
        connection = connect_with_retry(max_attempts=max_attempts, **params)
        return cls(connection, **config_overrides)

    def check_spec_support(self, spec) -> list[str]:
        """감지된 DB 버전에서 파티션 명세 사용 가능 여부 확인

        Returns:
            경고 메시지 리스트 (로그에도 기록)
        """
        _, warnings = VersionValidator.validate_spec_support(spec, self.version_info)
        for warning in warnings:
            logger.warning(warning)
        return warnings

    @staticmethod
    def _connect_params(profile_or_config) -> dict[str, Any]:
        if hasattr(profile_or_config, "connect_params"):
            return profile_or_config.connect_params()

        return ConnectionProfile(connection_config=dict(profile_or_config)).connect_params()

    def close(self):
        """연결 종료"""
        if self.connection is not None:
            try:
                self.connection.close()
            except oracledb.Error as e:
                logger.warning(f"연결 종료 오류: {e}")
            self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
