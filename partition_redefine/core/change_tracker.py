"""
증분 동기화(변경분 추적) 훅

ONLINE 전략에서 대량 적재 이후 원본에 들어온 변경분을 섀도 테이블에 반영합니다.
엔진은 변경 추적 방식을 강제하지 않으며 호출자가 ChangeTracker 구현을 넘깁니다.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, List, Optional

from .errors import ConvergenceIncomplete
from .interfaces import CatalogReader, StatementExecutor
from .object_replicator import insertable_columns

if TYPE_CHECKING:
    from .conversion_run import ConversionRun

logger = logging.getLogger(__name__)


class ChangeTracker(ABC):
    """변경분 동기화 인터페이스"""

    def prepare(
        self, run: "ConversionRun", executor: StatementExecutor, catalog: CatalogReader
    ) -> None:
        """대량 적재 시작 직전에 호출 (기준 시점 확보용)"""

    @abstractmethod
    def sync(self, run: "ConversionRun", iteration: int) -> int:
        """
        변경분 1회 동기화

        Args:
            run: 진행 중인 변환 실행
            iteration: 1부터 시작하는 반복 번호

        Returns:
            다시 동기화한 행 수 (0이면 수렴)
        """


class ModifiedSinceChangeTracker(ChangeTracker):
    """수정 시각 컬럼 기반 변경분 동기화

    기준 시점 이후 수정된 행을 기본키로 MERGE 합니다.
    기준 시점은 DB 서버 시계(SYSTIMESTAMP)에서 overlap_seconds만큼 앞당겨
    잡습니다. 수정 시각 컬럼도 서버에서 채워지므로 클라이언트 시계 차이에
    영향받지 않습니다. 삭제된 행은 추적하지 않습니다.

    Examples:
        >>> tracker = ModifiedSinceChangeTracker("UPDATED_AT")
        >>> options = ConversionOptions(strategy=Strategy.ONLINE, change_tracker=tracker)
    """

    def __init__(
        self,
        column: str,
        overlap_seconds: float = 1.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.column = column
        self.overlap = timedelta(seconds=overlap_seconds)
        self.clock = clock

        self.executor: Optional[StatementExecutor] = None
        self.catalog: Optional[CatalogReader] = None
        self.columns: List[str] = []
        self.key_columns: List[str] = []
        self.watermark: Optional[datetime] = None

    def prepare(self, run, executor, catalog) -> None:
        self.executor = executor
        self.catalog = catalog
        self.watermark = self.now() - self.overlap
        self.columns = insertable_columns(catalog.list_columns(run.table))
        self.key_columns = []
        for constraint in catalog.list_constraints(run.table):
            if constraint.constraint_type == "P":
                self.key_columns = list(constraint.columns)
                break

        logger.debug(
            f"변경분 추적 준비: {run.table} ({self.column} >= {self.watermark}), "
            f"키={self.key_columns}"
        )

    def sync(self, run, iteration: int) -> int:
        if self.executor is None or self.watermark is None:
            raise ConvergenceIncomplete(
                "변경분 추적기가 준비되지 않았습니다", table=run.table.qualified
            )
        if not self.key_columns:
            raise ConvergenceIncomplete(
                "기본키가 없어 변경분을 동기화할 수 없습니다", table=run.table.qualified
            )

        pass_started = self.now()
        statement = self.build_merge(run, self.watermark)
        result = self.executor.execute(statement)

        if not result.ok:
            raise ConvergenceIncomplete(
                f"변경분 동기화 실패: {result.message}",
                table=run.table.qualified,
                code=result.code,
            )

        self.watermark = pass_started - self.overlap
        return result.rowcount

    def now(self) -> datetime:
        """기준 시각 (clock 미지정 시 DB 서버 시계)"""
        if self.clock is not None:
            return self.clock()
        return self.catalog.current_timestamp()

    def build_merge(self, run, since: datetime) -> str:
        """기준 시점 이후 변경분 MERGE 문 생성"""
        non_key = [c for c in self.columns if c not in self.key_columns]
        column_list = ", ".join(self.columns)

        statement = (
            f"MERGE INTO {run.shadow.qualified} t "
            f"USING (SELECT {column_list} FROM {run.table.qualified} "
            f"WHERE {self.column} >= TO_TIMESTAMP('{since:%Y-%m-%d %H:%M:%S.%f}', "
            f"'YYYY-MM-DD HH24:MI:SS.FF6')) s "
            f"ON ({' AND '.join(f't.{k} = s.{k}' for k in self.key_columns)})"
        )
        if non_key:
            statement += (
                " WHEN MATCHED THEN UPDATE SET "
                + ", ".join(f"t.{c} = s.{c}" for c in non_key)
            )
        statement += (
            f" WHEN NOT MATCHED THEN INSERT ({column_list}) "
            f"VALUES ({', '.join(f's.{c}' for c in self.columns)})"
        )
        return statement
