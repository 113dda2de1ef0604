"""
변환 이력 모델 및 관리자
"""
from datetime import datetime
from typing import List, Optional

from partition_redefine.database.local_db import ConversionHistory, ConversionStep
from partition_redefine.database.repository import HistoryRepository, StepRepository

# RunState → 이력 status 값
STATUS_BY_STATE = {
    "DONE": "completed",
    "NAMES_CLEANED": "completed",
    "FAILED": "failed",
    "CANCELLED": "cancelled",
}


class ConversionHistoryItem:
    """변환 이력 데이터 클래스"""

    def __init__(self, id: Optional[int] = None, owner: str = "", table_name: str = "",
                 strategy: Optional[str] = None, shadow_name: Optional[str] = None,
                 retired_name: Optional[str] = None, status: str = "running",
                 state: str = "INIT", source_rows: Optional[int] = None,
                 copied_rows: int = 0, sync_iterations: int = 0,
                 error_message: str = "",
                 started_at: Optional[datetime] = None,
                 completed_at: Optional[datetime] = None):
        self.id = id
        self.owner = owner
        self.table_name = table_name
        self.strategy = strategy
        self.shadow_name = shadow_name
        self.retired_name = retired_name
        self.status = status
        self.state = state
        self.source_rows = source_rows
        self.copied_rows = copied_rows
        self.sync_iterations = sync_iterations
        self.error_message = error_message
        self.started_at = started_at
        self.completed_at = completed_at

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.table_name}"

    @classmethod
    def from_db_model(cls, db_history: ConversionHistory) -> 'ConversionHistoryItem':
        """DB 모델에서 생성"""
        return cls(
            id=db_history.id,
            owner=db_history.owner,
            table_name=db_history.table_name,
            strategy=db_history.strategy,
            shadow_name=db_history.shadow_name,
            retired_name=db_history.retired_name,
            status=db_history.status,
            state=db_history.state,
            source_rows=db_history.source_rows,
            copied_rows=db_history.copied_rows or 0,
            sync_iterations=db_history.sync_iterations or 0,
            error_message=db_history.error_message or "",
            started_at=db_history.started_at,
            completed_at=db_history.completed_at,
        )


class ConversionStepItem:
    """단계 결과 데이터 클래스"""

    def __init__(self, id: Optional[int] = None, history_id: int = 0, step: str = "",
                 object_name: Optional[str] = None, status: str = "completed",
                 error_kind: Optional[str] = None, error_code: Optional[int] = None,
                 message: str = "", rows_processed: int = 0):
        self.id = id
        self.history_id = history_id
        self.step = step
        self.object_name = object_name
        self.status = status
        self.error_kind = error_kind
        self.error_code = error_code
        self.message = message
        self.rows_processed = rows_processed

    @classmethod
    def from_db_model(cls, db_step: ConversionStep) -> 'ConversionStepItem':
        """DB 모델에서 생성"""
        return cls(
            id=db_step.id,
            history_id=db_step.history_id,
            step=db_step.step,
            object_name=db_step.object_name,
            status=db_step.status,
            error_kind=db_step.error_kind,
            error_code=db_step.error_code,
            message=db_step.message or "",
            rows_processed=db_step.rows_processed or 0,
        )


class ConversionHistoryManager:
    """변환 이력 관리자 (HistoryRepository/StepRepository 활용)

    ConversionOrchestrator에 history_manager로 주입하면
    실행 시작, 단계별 결과, 종료 상태가 로컬 DB에 기록됩니다.
    """

    def __init__(self, db=None):
        self.repo = HistoryRepository(db)
        self.step_repo = StepRepository(db)

    def create_history(self, run) -> int:
        """실행 시작 기록

        Args:
            run: ConversionRun

        Returns:
            이력 ID
        """
        db_history = self.repo.create(
            owner=run.table.owner,
            table_name=run.table.name,
            strategy=run.strategy.value if run.strategy else None,
            shadow_name=run.shadow_name,
            retired_name=run.retired_name,
            status="running",
            state=run.state.value,
            started_at=run.started_at,
        )
        return db_history.id

    def add_step(self, history_id: int, outcome) -> None:
        """단계 결과 기록

        Args:
            history_id: 이력 ID
            outcome: StepOutcome
        """
        self.step_repo.create(
            history_id=history_id,
            step=outcome.step,
            object_name=outcome.object_name,
            status="completed" if outcome.ok else "failed",
            error_kind=outcome.error_kind,
            error_code=outcome.code,
            message=outcome.message,
            statement=outcome.statement,
            rows_processed=outcome.rows,
            created_at=outcome.timestamp,
        )

    def complete_history(self, history_id: int, run) -> bool:
        """종료 상태 기록"""
        return self.repo.update_by_id(
            history_id,
            strategy=run.strategy.value if run.strategy else None,
            layout_ddl=run.layout_ddl,
            status=STATUS_BY_STATE.get(run.state.value, "running"),
            state=run.state.value,
            source_rows=run.source_rows,
            copied_rows=run.copied_rows,
            sync_iterations=run.sync_iterations,
            error_message=run.error,
            completed_at=run.finished_at or datetime.now(),
        )

    def get_history(self, history_id: int) -> Optional[ConversionHistoryItem]:
        """이력 조회"""
        db_history = self.repo.get_by_id(history_id)
        if db_history:
            return ConversionHistoryItem.from_db_model(db_history)
        return None

    def get_all_history(self) -> List[ConversionHistoryItem]:
        """모든 이력 조회 (최신순)"""
        return [ConversionHistoryItem.from_db_model(h) for h in self.repo.get_all_desc()]

    def get_table_history(self, owner: str, table_name: str) -> List[ConversionHistoryItem]:
        """테이블별 이력 조회 (최신순)"""
        return [
            ConversionHistoryItem.from_db_model(h)
            for h in self.repo.get_by_table(owner, table_name)
        ]

    def get_steps(self, history_id: int) -> List[ConversionStepItem]:
        """이력별 단계 결과 조회"""
        return [ConversionStepItem.from_db_model(s) for s in self.step_repo.get_by_history(history_id)]

    def get_failed_steps(self, history_id: int) -> List[ConversionStepItem]:
        """이력별 실패 단계 조회"""
        return [
            ConversionStepItem.from_db_model(s)
            for s in self.step_repo.get_failures_by_history(history_id)
        ]

    def mark_abandoned(self) -> int:
        """running 상태로 남은 이력을 failed로 정리 (프로세스 비정상 종료 후)

        Returns:
            정리한 이력 수
        """
        unfinished = self.repo.get_unfinished()
        for history in unfinished:
            self.repo.update_by_id(
                history.id,
                status="failed",
                error_message="프로세스 종료로 중단됨",
                completed_at=datetime.now(),
            )
        return len(unfinished)
