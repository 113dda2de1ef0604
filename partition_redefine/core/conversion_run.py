"""
변환 실행 상태 및 단계 결과 수집
"""
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .conversion_options import Strategy
from .partition_types import TableId


class RunState(str, Enum):
    """변환 상태 머신 상태"""
    INIT = "INIT"
    SHADOW_CREATED = "SHADOW_CREATED"
    DEPENDENTS_COPIED = "DEPENDENTS_COPIED"
    BULK_LOADED = "BULK_LOADED"
    CONVERGED = "CONVERGED"
    CUTOVER = "CUTOVER"
    DONE = "DONE"
    NAMES_CLEANED = "NAMES_CLEANED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.NAMES_CLEANED, RunState.FAILED, RunState.CANCELLED)


# 정상 진행 순서 (NAMES_CLEANED는 별도 호출)
STATE_ORDER = [
    RunState.INIT,
    RunState.SHADOW_CREATED,
    RunState.DEPENDENTS_COPIED,
    RunState.BULK_LOADED,
    RunState.CONVERGED,
    RunState.CUTOVER,
    RunState.DONE,
]


@dataclass
class StepOutcome:
    """단계 또는 객체 단위 처리 결과"""
    step: str
    ok: bool
    object_name: Optional[str] = None
    message: str = ""
    error_kind: Optional[str] = None
    code: Optional[int] = None
    statement: Optional[str] = None
    rows: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_error(cls, step: str, error, statement: Optional[str] = None) -> "StepOutcome":
        """ConversionError로부터 실패 결과 생성"""
        return cls(
            step=step,
            ok=False,
            object_name=error.object_name,
            message=str(error),
            error_kind=error.kind,
            code=error.code,
            statement=statement,
        )


@dataclass
class ConversionRun:
    """호출 단위 변환 실행 정보 (코어에서는 저장하지 않음)"""
    table: TableId
    strategy: Optional[Strategy] = None
    shadow_name: Optional[str] = None
    retired_name: Optional[str] = None
    layout_ddl: str = ""
    state: RunState = RunState.INIT
    source_rows: Optional[int] = None
    copied_rows: int = 0
    sync_iterations: int = 0
    synced_rows: int = 0
    converged: bool = False
    success: bool = False
    error: Optional[str] = None
    history_id: Optional[int] = None
    outcomes: List[StepOutcome] = field(default_factory=list)
    created_constraints: List[str] = field(default_factory=list)
    created_triggers: List[str] = field(default_factory=list)
    read_only_applied: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    _start_clock: float = field(default_factory=time.time, repr=False)

    @property
    def shadow(self) -> TableId:
        return self.table.renamed(self.shadow_name)

    @property
    def retired(self) -> TableId:
        return self.table.renamed(self.retired_name)

    def advance(self, state: RunState) -> None:
        """상태 전이"""
        self.state = state

    def record(self, outcome: StepOutcome) -> StepOutcome:
        """단계 결과 추가"""
        self.outcomes.append(outcome)
        return outcome

    def finish(self, state: RunState, error: Optional[str] = None) -> None:
        """종료 상태 기록"""
        self.state = state
        self.success = state in (RunState.DONE, RunState.NAMES_CLEANED)
        self.error = error
        self.finished_at = datetime.now()

    def failures(self, error_kind: Optional[str] = None) -> List[StepOutcome]:
        """실패 결과 목록 (error_kind 지정 시 해당 종류만)"""
        return [
            o for o in self.outcomes
            if not o.ok and (error_kind is None or o.error_kind == error_kind)
        ]

    def get_stats(self) -> Dict[str, Any]:
        """실행 통계 반환"""
        end = self.finished_at.timestamp() if self.finished_at else time.time()
        elapsed_seconds = max(end - self._start_clock, 0)
        rows_per_sec = self.copied_rows / elapsed_seconds if elapsed_seconds > 0 else 0

        return {
            'table': self.table.qualified,
            'strategy': self.strategy.value if self.strategy else None,
            'state': self.state.value,
            'elapsed_seconds': elapsed_seconds,
            'elapsed_time': str(timedelta(seconds=int(elapsed_seconds))),
            'source_rows': self.source_rows,
            'copied_rows': self.copied_rows,
            'rows_per_sec': rows_per_sec,
            'sync_iterations': self.sync_iterations,
            'synced_rows': self.synced_rows,
            'converged': self.converged,
            'steps_ok': sum(1 for o in self.outcomes if o.ok),
            'steps_failed': sum(1 for o in self.outcomes if not o.ok),
        }

    def format_speed(self) -> str:
        """복사 속도를 보기 좋은 형식으로 포맷"""
        rows_per_sec = self.get_stats()['rows_per_sec']
        if rows_per_sec >= 1000000:
            return f"{rows_per_sec/1000000:.1f}M rows/sec"
        elif rows_per_sec >= 1000:
            return f"{rows_per_sec/1000:.1f}K rows/sec"
        return f"{rows_per_sec:.0f} rows/sec"
