"""
파티션 재정의 호출 인터페이스

스케줄러/설정 카탈로그가 호출하는 진입점입니다. 변환 함수는 성공 여부(bool)를
반환하며 CutoverFailure와 분류되지 않은 오류만 호출자에게 전달됩니다.
명세 종류가 진입점과 맞지 않으면 error 감사 후 False를 반환합니다.

Examples:
    >>> spec = PartitionSpec.single_level(PartitionMethod.RANGE, ["SALE_DATE"])
    >>> boundaries = [
    ...     BoundaryDefinition.partition("P2024Q1", "DATE '2024-04-01'"),
    ...     BoundaryDefinition.partition("PMAX", "MAXVALUE"),
    ... ]
    >>> convert_to_single_level(TableId("SALES", "ORDERS"), spec, boundaries, executor, catalog)
    True
"""

from typing import List, Optional, Sequence

from .capability import CapabilityEvaluator
from .config import EngineConfig
from .conversion_options import ConversionOptions
from .conversion_run import ConversionRun, StepOutcome
from .ddl_generator import generate
from .errors import InvalidSpecification
from .interfaces import AuditEvent, AuditSink, CatalogReader, StatementExecutor
from .orchestrator import ConversionOrchestrator
from .partition_types import BoundaryDefinition, PartitionSpec, TableId


def generate_partition_ddl(spec: PartitionSpec, boundaries: Sequence[BoundaryDefinition]) -> str:
    """파티션 레이아웃 DDL 미리보기 (DB 접근 없음)"""
    return generate(spec, boundaries)


def is_online_capable(table: TableId, spec: PartitionSpec, catalog: CatalogReader) -> bool:
    """온라인 변환 가능 여부 (예외를 던지지 않음)"""
    return CapabilityEvaluator(catalog).can_convert_online(table, spec)


def run_conversion(
    table: TableId,
    spec: PartitionSpec,
    boundaries: Sequence[BoundaryDefinition],
    executor: StatementExecutor,
    catalog: CatalogReader,
    options: Optional[ConversionOptions] = None,
    audit_sink: Optional[AuditSink] = None,
    config: Optional[EngineConfig] = None,
    history_manager=None,
    require_partitioned_source: bool = False,
) -> ConversionRun:
    """
    변환 실행 후 실행 정보 반환

    Returns:
        ConversionRun (상태, 행 수, 단계별 결과 포함)

    Raises:
        CutoverFailure: 이름 교체 실패
    """
    orchestrator = ConversionOrchestrator(
        executor, catalog, audit_sink=audit_sink, config=config, history_manager=history_manager
    )
    return orchestrator.run(
        table, spec, boundaries, options, require_partitioned_source=require_partitioned_source
    )


def _reject(table: TableId, message: str, kwargs: dict) -> bool:
    """진입점과 맞지 않는 명세를 error로 감사하고 False 반환"""
    audit_sink = kwargs.get("audit_sink")
    if audit_sink is None:
        from partition_redefine.utils.enhanced_logger import get_audit_sink

        audit_sink = get_audit_sink()

    error = InvalidSpecification(message, table=table.qualified, step="init")
    audit_sink.emit(
        AuditEvent(
            level="ERROR",
            action="init",
            message=f"변환 실패: {error}",
            table=table.qualified,
            error_kind=error.kind,
        )
    )
    return False


def convert_to_single_level(
    table: TableId,
    spec: PartitionSpec,
    boundaries: Sequence[BoundaryDefinition],
    executor: StatementExecutor,
    catalog: CatalogReader,
    options: Optional[ConversionOptions] = None,
    **kwargs,
) -> bool:
    """단일 레벨 파티션 테이블로 변환"""
    if spec.is_composite:
        return _reject(table, "단일 레벨 변환에 복합 파티션 명세가 전달되었습니다", kwargs)
    return run_conversion(table, spec, boundaries, executor, catalog, options, **kwargs).success


def convert_to_composite(
    table: TableId,
    spec: PartitionSpec,
    boundaries: Sequence[BoundaryDefinition],
    executor: StatementExecutor,
    catalog: CatalogReader,
    options: Optional[ConversionOptions] = None,
    **kwargs,
) -> bool:
    """복합(2단계) 파티션 테이블로 변환"""
    if not spec.is_composite:
        return _reject(table, "복합 파티션 변환에 단일 레벨 명세가 전달되었습니다", kwargs)
    return run_conversion(table, spec, boundaries, executor, catalog, options, **kwargs).success


def convert_single_to_composite(
    table: TableId,
    spec: PartitionSpec,
    boundaries: Sequence[BoundaryDefinition],
    executor: StatementExecutor,
    catalog: CatalogReader,
    options: Optional[ConversionOptions] = None,
    **kwargs,
) -> bool:
    """이미 파티션된 테이블에 서브파티션 단계를 추가 (원본이 파티션 테이블이어야 함)"""
    if not spec.is_composite:
        return _reject(table, "복합 파티션 변환에 단일 레벨 명세가 전달되었습니다", kwargs)
    kwargs["require_partitioned_source"] = True
    return run_conversion(table, spec, boundaries, executor, catalog, options, **kwargs).success


def cleanup_names(
    table: TableId,
    executor: StatementExecutor,
    catalog: CatalogReader,
    options: Optional[ConversionOptions] = None,
    audit_sink: Optional[AuditSink] = None,
    config: Optional[EngineConfig] = None,
) -> List[StepOutcome]:
    """컷오버 후 종속 객체 이름 정리 (반복 호출 안전)"""
    orchestrator = ConversionOrchestrator(executor, catalog, audit_sink=audit_sink, config=config)
    return orchestrator.cleanup_names(table, options)
