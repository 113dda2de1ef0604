"""
파티션 재정의 오류 분류

모든 오류는 ConversionError를 상속하며 감사 로그에 남길 컨텍스트
(테이블, 객체명, 오라클 오류 코드, 단계)를 함께 보관합니다.
"""

from typing import Optional


class ConversionError(Exception):
    """변환 오류 기반 클래스"""

    kind = "ConversionError"

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        object_name: Optional[str] = None,
        code: Optional[int] = None,
        step: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.table = table
        self.object_name = object_name
        self.code = code
        self.step = step

    def context(self) -> dict:
        """감사 이벤트용 컨텍스트"""
        return {
            "kind": self.kind,
            "table": self.table,
            "object_name": self.object_name,
            "code": self.code,
            "step": self.step,
        }

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (ORA-{self.code:05d})"
        return self.message


class InvalidSpecification(ConversionError):
    """호출자 오류: 잘못된 파티션 명세 (재시도 없음)"""

    kind = "InvalidSpecification"


class GenerationFailure(ConversionError):
    """경계 정의 순서/내용 오류로 DDL 생성 실패 (재시도 없음)"""

    kind = "GenerationFailure"


class PreconditionFailure(ConversionError):
    """변환 시작 전 사전 조건 불충족 (DDL 미실행)"""

    kind = "PreconditionFailure"


class DependentObjectCopyFailure(ConversionError):
    """제약조건/인덱스/트리거 복제 실패 (복구 가능, 실행 계속)"""

    kind = "DependentObjectCopyFailure"


class LoadFailure(ConversionError):
    """섀도 테이블 생성 또는 데이터 적재 실패 (치명적, 섀도 테이블 보존)"""

    kind = "LoadFailure"


class ConvergenceIncomplete(ConversionError):
    """증분 동기화 미수렴 (경고만, 컷오버 진행)"""

    kind = "ConvergenceIncomplete"


class ConstraintValidationFailure(DependentObjectCopyFailure):
    """제약조건 활성화/검증 실패 (복구 가능, 제약조건은 비활성 상태로 남음)"""

    kind = "ConstraintValidationFailure"


class CutoverFailure(ConversionError):
    """컷오버(이름 교체) 실패 - 가장 심각, 수동 조치 필요"""

    kind = "CutoverFailure"


class CleanupFailure(ConversionError):
    """이름 정리 실패 (객체 단위, 건너뜀)"""

    kind = "CleanupFailure"
