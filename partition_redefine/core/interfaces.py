"""
외부 협력 객체 인터페이스

- StatementExecutor: 단일 SQL 문 실행 (재시도/로깅 없음)
- CatalogReader: 딕셔너리 조회 (읽기 전용)
- AuditSink: 레벨별 감사 이벤트 수신 (fire-and-forget)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .partition_types import TableId

# 감사 이벤트 레벨
AUDIT_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StatementResult:
    """SQL 실행 결과 (성공 또는 코드+메시지를 가진 실패)"""

    ok: bool
    code: Optional[int] = None
    message: str = ""
    rowcount: int = 0

    @classmethod
    def success(cls, rowcount: int = 0) -> "StatementResult":
        return cls(ok=True, rowcount=rowcount)

    @classmethod
    def failure(cls, code: Optional[int], message: str) -> "StatementResult":
        return cls(ok=False, code=code, message=message)


@dataclass
class TableInfo:
    """테이블 저장 속성"""

    tablespace_name: Optional[str] = None
    partitioned: bool = False


@dataclass
class ColumnInfo:
    """컬럼 구조 정보"""

    name: str
    data_type: str
    data_length: Optional[int] = None
    data_precision: Optional[int] = None
    data_scale: Optional[int] = None
    nullable: bool = True
    data_default: Optional[str] = None
    virtual: bool = False
    char_length: Optional[int] = None
    char_used: Optional[str] = None  # C: 문자 단위, B: 바이트 단위


@dataclass
class ConstraintInfo:
    """제약조건 정보 (P: 기본키, U: 유니크, C: 체크, R: 참조)"""

    name: str
    constraint_type: str
    columns: list[str] = field(default_factory=list)
    condition: Optional[str] = None
    ref_owner: Optional[str] = None
    ref_table: Optional[str] = None
    ref_columns: list[str] = field(default_factory=list)


@dataclass
class IndexInfo:
    """제약조건에 속하지 않는 인덱스 정보

    columns에는 컬럼명 또는 함수 기반 인덱스의 표현식이 순서대로 들어가며,
    내림차순 컬럼은 "COL DESC" 형태로 표기합니다.
    """

    name: str
    columns: list[str] = field(default_factory=list)
    uniqueness: str = "NONUNIQUE"
    index_type: str = "NORMAL"
    tablespace_name: Optional[str] = None

    @property
    def is_unique(self) -> bool:
        return self.uniqueness == "UNIQUE"

    @property
    def is_bitmap(self) -> bool:
        return "BITMAP" in (self.index_type or "")


@dataclass
class TriggerInfo:
    """트리거 정보 (ALL_TRIGGERS.DESCRIPTION / WHEN_CLAUSE / TRIGGER_BODY)"""

    name: str
    description: str
    body: str
    when_clause: Optional[str] = None


@dataclass
class AuditEvent:
    """감사 이벤트"""

    level: str
    action: str
    message: str
    table: Optional[str] = None
    object_name: Optional[str] = None
    error_kind: Optional[str] = None
    code: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)


class StatementExecutor(ABC):
    """SQL 문 실행기

    구현체는 재시도나 로깅을 하지 않고 결과만 반환합니다.
    """

    @abstractmethod
    def execute(self, statement: str) -> StatementResult:
        """단일 SQL 문 실행

        Args:
            statement: 실행할 SQL 문

        Returns:
            StatementResult (실패 시 ok=False, 오류 코드/메시지 포함)
        """


class CatalogReader(ABC):
    """데이터 딕셔너리 조회기 (부작용 없음)"""

    @abstractmethod
    def table_exists(self, table: TableId) -> bool:
        """테이블 존재 여부"""

    @abstractmethod
    def object_exists(self, owner: str, name: str, kind: str = "TABLE") -> bool:
        """스키마 내 동일 이름 객체 존재 여부

        오라클은 테이블, 인덱스, 제약조건, 트리거의 이름공간이 서로 다르므로
        kind(TABLE, INDEX, CONSTRAINT, TRIGGER)별로 확인합니다.
        """

    @abstractmethod
    def has_primary_key(self, table: TableId) -> bool:
        """기본키 존재 여부"""

    @abstractmethod
    def has_lob_columns(self, table: TableId) -> bool:
        """LOB/LONG 컬럼 존재 여부"""

    @abstractmethod
    def get_table_info(self, table: TableId) -> Optional[TableInfo]:
        """테이블 저장 속성 (없으면 None)"""

    @abstractmethod
    def list_columns(self, table: TableId) -> list[ColumnInfo]:
        """컬럼 목록 (정의 순서)"""

    @abstractmethod
    def list_constraints(self, table: TableId) -> list[ConstraintInfo]:
        """제약조건 목록 (시스템 NOT NULL 제외)"""

    @abstractmethod
    def list_indexes(
        self, table: TableId, include_constraint_indexes: bool = False
    ) -> list[IndexInfo]:
        """인덱스 목록 (기본값은 기본키/유니크 제약조건용 인덱스 제외)"""

    @abstractmethod
    def list_triggers(self, table: TableId) -> list[TriggerInfo]:
        """트리거 목록"""

    @abstractmethod
    def count_rows(self, table: TableId) -> int:
        """행 수"""

    @abstractmethod
    def current_timestamp(self) -> datetime:
        """DB 서버 현재 시각 (변경분 추적 기준 시점용)"""


class AuditSink(ABC):
    """감사 이벤트 수신기"""

    @abstractmethod
    def emit(self, event: AuditEvent) -> None:
        """이벤트 기록 (실패해도 변환 단계를 중단시키지 않아야 함)"""
