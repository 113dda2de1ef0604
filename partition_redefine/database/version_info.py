"""
Oracle 버전 정보 데이터 클래스

지원 대상: Oracle 11g R2 ~ 23ai
미확인 버전은 안전을 위해 11g 프로파일(30자 식별자)로 취급
"""

import re
from dataclasses import dataclass
from enum import Enum


class OraVersionFamily(Enum):
    """Oracle 버전 패밀리"""

    ORA_11G = "11g"
    ORA_12C = "12c"
    ORA_19C = "19c"
    ORA_23AI = "23ai"
    UNKNOWN = "unknown"


@dataclass
class OraVersionInfo:
    """Oracle 버전 정보"""

    major: int
    minor: int
    full_version: str
    family: OraVersionFamily

    @property
    def is_legacy(self) -> bool:
        """12.2 이전(30자 식별자) 버전 여부"""
        return self.family == OraVersionFamily.UNKNOWN or (self.major, self.minor) < (12, 2)

    @property
    def supports_long_identifiers(self) -> bool:
        """128바이트 식별자 지원 여부 (12.2 이상)"""
        return not self.is_legacy

    @property
    def supports_auto_list(self) -> bool:
        """LIST AUTOMATIC 파티셔닝 지원 여부 (12.2 이상)"""
        return not self.is_legacy

    @property
    def supports_hash_composite(self) -> bool:
        """HASH 기반 복합 파티셔닝 지원 여부 (12.1 이상)"""
        return self.family != OraVersionFamily.UNKNOWN and self.major >= 12

    @property
    def identifier_max_length(self) -> int:
        """객체 이름 최대 길이"""
        return 128 if self.supports_long_identifiers else 30

    def __str__(self) -> str:
        return f"Oracle {self.major}.{self.minor} ({self.family.value})"


def parse_version_string(version_str: str) -> OraVersionInfo:
    """버전 문자열 파싱

    Args:
        version_str: v$version 배너 또는 드라이버가 보고하는 버전 문자열
            예: "Oracle Database 11g Enterprise Edition Release 11.2.0.4.0 - 64bit Production"
            예: "Oracle Database 19c Enterprise Edition Release 19.0.0.0.0 - Production Version 19.21.0.0.0"
            예: "19.21.0.0.0"

    Returns:
        OraVersionInfo: 파싱된 버전 정보
    """
    # 18c 이후 배너는 Release 19.0 뒤에 실제 Version이 붙음
    match = (
        re.search(r"Version (\d+)\.(\d+)", version_str)
        or re.search(r"Release (\d+)\.(\d+)", version_str)
        or re.match(r"\s*(\d+)\.(\d+)", version_str)
    )
    if match:
        major, minor = int(match.group(1)), int(match.group(2))

        if major == 11:
            family = OraVersionFamily.ORA_11G
        elif major == 12:
            family = OraVersionFamily.ORA_12C
        elif major in (18, 19, 21):
            family = OraVersionFamily.ORA_19C
        elif major >= 23:
            family = OraVersionFamily.ORA_23AI
        else:
            family = OraVersionFamily.UNKNOWN

        return OraVersionInfo(major, minor, version_str, family)

    return OraVersionInfo(0, 0, version_str, OraVersionFamily.UNKNOWN)
