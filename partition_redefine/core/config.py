"""
엔진 설정

오케스트레이터에 명시적으로 전달되는 상수 모음. 모듈 수준 전역 상태를 두지 않습니다.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from partition_redefine.database.version_info import OraVersionInfo

# 잠금 대기 시간 초과로 분류되는 오라클 오류 코드
# ORA-00054: resource busy, ORA-04021: timeout waiting for lock,
# ORA-30006: resource busy; acquire with WAIT timeout expired
LOCK_TIMEOUT_CODES = frozenset({54, 4021, 30006})


@dataclass(frozen=True)
class EngineConfig:
    """변환 엔진 설정"""

    identifier_max_length: int = 128
    ddl_lock_timeout_seconds: int = 30
    lock_retry_count: int = 3
    lock_retry_delay_seconds: float = 5.0
    version_label: str = "unknown"
    lock_timeout_codes: frozenset = field(default=LOCK_TIMEOUT_CODES)

    @classmethod
    def for_version(cls, version: "OraVersionInfo", **overrides) -> "EngineConfig":
        """DB 버전에 맞는 설정 생성

        Examples:
            >>> EngineConfig.for_version(parse_version_string("11.2.0.4.0")).identifier_max_length
            30
        """
        values = {
            "identifier_max_length": version.identifier_max_length,
            "version_label": str(version),
        }
        values.update(overrides)
        return cls(**values)

    def is_lock_timeout(self, code) -> bool:
        """잠금 대기 시간 초과 오류 여부"""
        return code in self.lock_timeout_codes
