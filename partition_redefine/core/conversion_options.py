"""
변환 옵션
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .errors import InvalidSpecification

if TYPE_CHECKING:
    from .change_tracker import ChangeTracker


class Strategy(str, Enum):
    """변환 전략"""
    ONLINE = "ONLINE"    # 대량 복사 중 원본 읽기/쓰기 가능, 짧은 컷오버
    OFFLINE = "OFFLINE"  # 복사 동안 원본 쓰기 차단


@dataclass
class ConversionOptions:
    """호출 단위 변환 옵션

    strategy가 None이면 CapabilityEvaluator가 결정합니다.
    """

    strategy: Optional[Strategy] = None
    shadow_suffix: str = "_NEW"
    retired_suffix: str = "_OLD"
    copy_constraints: bool = True
    copy_indexes: bool = True
    copy_triggers: bool = True
    validate_constraints: bool = True
    max_sync_iterations: int = 3
    enable_parallel: bool = False
    parallel_degree: int = 4
    local_indexes: bool = False
    offline_read_only: bool = True
    change_tracker: Optional["ChangeTracker"] = None

    def resolve(self, max_identifier_length: Optional[int] = None) -> "ConversionOptions":
        """
        기본값을 적용하고 검증한 사본 반환

        Args:
            max_identifier_length: 지정 시 접미사가 이 길이 안에 들어가는지 확인

        Returns:
            정규화된 ConversionOptions (원본은 변경하지 않음)

        Raises:
            InvalidSpecification: 옵션 값이 잘못된 경우
        """
        strategy = self.strategy
        if isinstance(strategy, str) and not isinstance(strategy, Strategy):
            try:
                strategy = Strategy(strategy.upper())
            except ValueError:
                raise InvalidSpecification(f"알 수 없는 변환 전략입니다: {self.strategy}")

        shadow_suffix = (self.shadow_suffix or "").upper()
        retired_suffix = (self.retired_suffix or "").upper()

        if not shadow_suffix or not retired_suffix:
            raise InvalidSpecification("섀도/보관 접미사는 비어 있을 수 없습니다")
        if shadow_suffix == retired_suffix:
            raise InvalidSpecification(
                f"섀도 접미사와 보관 접미사가 같습니다: {shadow_suffix}"
            )
        if max_identifier_length is not None:
            # 접미사 앞에 원래 이름이 최소 1자는 남아야 함
            for suffix in (shadow_suffix, retired_suffix):
                if len(suffix) >= max_identifier_length:
                    raise InvalidSpecification(
                        f"접미사가 최대 식별자 길이({max_identifier_length})보다 깁니다: {suffix}"
                    )
        if self.parallel_degree < 1:
            raise InvalidSpecification(
                f"병렬도는 1 이상이어야 합니다: {self.parallel_degree}"
            )
        if self.max_sync_iterations < 0:
            raise InvalidSpecification(
                f"동기화 반복 횟수는 0 이상이어야 합니다: {self.max_sync_iterations}"
            )

        return replace(
            self,
            strategy=strategy,
            shadow_suffix=shadow_suffix,
            retired_suffix=retired_suffix,
        )

    @property
    def parallel_hint(self) -> str:
        """INSERT 힌트 (APPEND [PARALLEL(n)])"""
        if self.enable_parallel:
            return f"/*+ APPEND PARALLEL({self.parallel_degree}) */"
        return "/*+ APPEND */"
