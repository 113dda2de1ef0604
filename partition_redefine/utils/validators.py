"""
입력 검증 유틸리티
"""

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from partition_redefine.core.partition_types import PartitionSpec
    from partition_redefine.database.version_info import OraVersionInfo

# 따옴표 없는 오라클 식별자
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_$#]*$")


class ConnectionValidator:
    """연결 정보 검증"""

    @staticmethod
    def validate_connection_config(config: dict[str, Any]) -> tuple[bool, str]:
        """연결 설정 검증

        dsn 문자열 하나 또는 host/port/service_name 조합 중 하나가 필요합니다.
        """
        # 필수 필드 확인
        if not config.get("username"):
            return False, "username는 필수 입력 항목입니다."

        if not config.get("dsn"):
            for field in ["host", "port", "service_name"]:
                if config.get(field) in (None, ""):
                    return False, f"{field}는 필수 입력 항목입니다."

            # 호스트 검증
            host = config["host"]
            if len(host) > 255:
                return False, "올바른 호스트 주소를 입력하세요."

            # 포트 검증
            port = config["port"]
            if not isinstance(port, int) or port < 1 or port > 65535:
                return False, "포트는 1-65535 사이의 숫자여야 합니다."

            # 서비스명 검증
            if not re.match(r"^[a-zA-Z0-9_.\-]+$", config["service_name"]):
                return False, "서비스명은 영문자, 숫자, 언더스코어, 점, 하이픈만 사용 가능합니다."

        # 사용자명 검증
        username = config["username"]
        if not re.match(r"^[a-zA-Z0-9_$#]+$", username):
            return False, "사용자명은 영문자, 숫자, 언더스코어, $, #만 사용 가능합니다."

        return True, ""

    @staticmethod
    def validate_profile_name(name: str) -> tuple[bool, str]:
        """프로필 이름 검증"""
        if not name or not name.strip():
            return False, "프로필 이름을 입력하세요."

        if len(name) > 100:
            return False, "프로필 이름은 100자 이하여야 합니다."

        if not re.match(r"^[a-zA-Z0-9가-힣\s\-_]+$", name):
            return False, "프로필 이름에 특수문자를 사용할 수 없습니다."

        return True, ""


class SpecValidator:
    """파티션 명세 검증"""

    @staticmethod
    def validate_partition_spec(spec: "PartitionSpec") -> tuple[bool, str]:
        """파티션 명세 검증

        Args:
            spec: 파티션 명세

        Returns:
            (유효 여부, 오류 메시지)
        """
        from partition_redefine.core.partition_types import SUBPARTITION_METHODS, PartitionMethod

        if not spec.partition_method:
            return False, "파티션 방식은 필수입니다."

        if not spec.partition_key:
            return False, "파티션 키는 최소 1개 컬럼이 필요합니다."

        if spec.is_composite:
            if not spec.subpartition_method:
                return False, "복합 파티셔닝에는 서브파티션 방식이 필요합니다."
            if not spec.subpartition_key:
                return False, "복합 파티셔닝에는 서브파티션 키가 필요합니다."
            if spec.subpartition_method not in SUBPARTITION_METHODS:
                return False, (
                    f"서브파티션 방식으로 {spec.subpartition_method.value}는 사용할 수 없습니다. "
                    "RANGE, LIST, HASH만 허용됩니다."
                )
            if spec.partition_method == PartitionMethod.REFERENCE:
                return False, "REFERENCE 파티셔닝은 복합 파티셔닝을 지원하지 않습니다."
        elif spec.subpartition_method:
            return False, "단일 레벨 명세에 서브파티션 방식이 지정되어 있습니다."

        if spec.hash_partition_count is not None and spec.hash_partition_count < 1:
            return False, "해시 파티션 수는 1 이상이어야 합니다."

        return True, ""

    @staticmethod
    def validate_identifier(name: str, max_length: int = 128) -> tuple[bool, str]:
        """따옴표 없는 오라클 식별자 검증"""
        if not name or not IDENTIFIER_PATTERN.match(name):
            return False, f"올바르지 않은 식별자입니다: {name!r}"

        if len(name) > max_length:
            return False, f"식별자는 {max_length}자 이하여야 합니다: {name}"

        return True, ""


class VersionValidator:
    """Oracle 버전 호환성 검증"""

    @staticmethod
    def validate_spec_support(
        spec: "PartitionSpec",
        version: "OraVersionInfo",
    ) -> tuple[bool, list[str]]:
        """대상 DB 버전에서 파티션 명세 사용 가능 여부 검증

        Args:
            spec: 파티션 명세
            version: 대상 DB 버전 정보

        Returns:
            (경고 없음 여부, 경고 메시지 리스트)
        """
        from partition_redefine.core.partition_types import PartitionMethod
        from partition_redefine.database.version_info import OraVersionFamily

        warnings: list[str] = []

        if spec.partition_method == PartitionMethod.AUTO_LIST and not version.supports_auto_list:
            warnings.append(
                f"대상 DB({version})는 LIST AUTOMATIC 파티셔닝을 지원하지 않습니다. "
                "12.2 이상이 필요합니다."
            )

        if (
            spec.is_composite
            and spec.partition_method == PartitionMethod.HASH
            and not version.supports_hash_composite
        ):
            warnings.append(
                f"대상 DB({version})는 HASH 기반 복합 파티셔닝을 지원하지 않을 수 있습니다."
            )

        # UNKNOWN 버전 경고
        if version.family == OraVersionFamily.UNKNOWN:
            warnings.append(
                f"DB 버전({version.full_version})을 확인할 수 없습니다. "
                "11g 호환 모드(30자 식별자)로 처리됩니다."
            )

        return len(warnings) == 0, warnings
