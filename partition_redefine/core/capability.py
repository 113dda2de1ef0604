"""
온라인 변환 가능 여부 판단
"""

import logging
from dataclasses import dataclass, field

from .interfaces import CatalogReader
from .partition_types import PartitionMethod, PartitionSpec, TableId

logger = logging.getLogger(__name__)


@dataclass
class CapabilityReport:
    """온라인 변환 가능 여부 판단 결과"""

    online_capable: bool
    has_primary_key: bool = False
    has_lob_columns: bool = False
    reasons: list[str] = field(default_factory=list)


class CapabilityEvaluator:
    """온라인(저중단) 전략 사용 가능 여부 평가

    증분 동기화에는 안정적인 행 식별자가 필요하므로 기본키가 없는 테이블은
    명세에서 명시적으로 요구를 면제하지 않는 한 오프라인 전략으로 내려갑니다.
    """

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    def can_convert_online(self, table: TableId, spec: PartitionSpec) -> bool:
        """온라인 변환 가능 여부 (예외를 던지지 않음)"""
        return self.evaluate(table, spec).online_capable

    def evaluate(self, table: TableId, spec: PartitionSpec) -> CapabilityReport:
        """
        규칙 순서대로 평가

        1. AUTO_LIST: 기본키가 있거나 requires_primary_key가 False이면 가능
        2. HASH 기반 복합 파티셔닝: 1과 동일
        3. 그 외: 기본키가 있어야 가능

        카탈로그 조회 실패는 로깅 후 불가(False)로 처리합니다.

        Args:
            table: 대상 테이블
            spec: 파티션 명세

        Returns:
            CapabilityReport
        """
        try:
            has_pk = bool(self.catalog.has_primary_key(table))
        except Exception as e:
            logger.error(f"기본키 조회 실패 ({table}): {type(e).__name__}: {e}")
            return CapabilityReport(
                online_capable=False, reasons=[f"카탈로그 조회 실패: {e}"]
            )

        try:
            has_lob = bool(self.catalog.has_lob_columns(table))
        except Exception as e:
            # LOB 정보는 판단 규칙에 쓰이지 않으므로 기록만 남김
            logger.warning(f"LOB 컬럼 조회 실패 ({table}): {e}")
            has_lob = False

        report = CapabilityReport(
            online_capable=False, has_primary_key=has_pk, has_lob_columns=has_lob
        )

        waivable = spec.partition_method == PartitionMethod.AUTO_LIST or (
            spec.is_composite and spec.partition_method == PartitionMethod.HASH
        )

        if waivable:
            report.online_capable = has_pk or not spec.requires_primary_key
            if not has_pk and not spec.requires_primary_key:
                report.reasons.append("기본키 없음 - 명세에서 기본키 요구를 면제")
        else:
            report.online_capable = has_pk

        if not has_pk and not report.online_capable:
            report.reasons.append("기본키가 없어 증분 동기화 불가")
        if has_lob:
            report.reasons.append("LOB 컬럼 포함")

        logger.debug(
            f"온라인 변환 평가 ({table}, {spec.method_label}): "
            f"가능={report.online_capable}, 기본키={has_pk}, LOB={has_lob}"
        )
        return report
