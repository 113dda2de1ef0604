"""
파티션 레이아웃 DDL 생성 모듈

파티션 명세와 경계 정의 목록으로 CREATE TABLE 뒤에 붙는
PARTITION BY ... 절을 생성합니다. 경계 정의는 입력 순서 그대로
사용하며 절대 정렬하지 않습니다.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .errors import GenerationFailure
from .partition_types import BoundaryDefinition, PartitionMethod, PartitionSpec, validate

INDENT = "    "


@dataclass
class PartitionGroup:
    """파티션 하나와 그에 속한 서브파티션 그룹"""

    partition: BoundaryDefinition
    subpartitions: list[BoundaryDefinition] = field(default_factory=list)


@dataclass
class PartitionLayout:
    """렌더링 전의 구조화된 파티션 레이아웃"""

    spec: PartitionSpec
    groups: list[PartitionGroup] = field(default_factory=list)

    @property
    def partition_names(self) -> list[str]:
        return [group.partition.name for group in self.groups]


def build_layout(spec: PartitionSpec, boundaries: Sequence[BoundaryDefinition]) -> PartitionLayout:
    """
    경계 정의 목록을 파티션 그룹으로 묶기

    PARTITION 항목마다 새 그룹을 열고(이전 그룹은 닫힘),
    SUBPARTITION 항목은 현재 열린 그룹에 추가합니다.

    Args:
        spec: 파티션 명세
        boundaries: 호출자가 지정한 순서의 경계 정의

    Returns:
        PartitionLayout

    Raises:
        InvalidSpecification: 명세가 잘못된 경우
        GenerationFailure: 경계 순서/내용이 잘못된 경우
    """
    validate(spec)

    if not boundaries and not spec.partition_method.allows_empty_boundaries:
        raise GenerationFailure(
            f"{spec.partition_method.value} 파티셔닝은 최소 1개의 경계 정의가 필요합니다"
        )

    layout = PartitionLayout(spec=spec)
    current: Optional[PartitionGroup] = None

    for position, boundary in enumerate(boundaries, start=1):
        if boundary.is_subpartition:
            if not spec.is_composite:
                raise GenerationFailure(
                    f"단일 레벨 명세에 서브파티션 정의가 있습니다: {boundary.name}",
                    object_name=boundary.name,
                )
            if current is None:
                raise GenerationFailure(
                    f"서브파티션 {boundary.name}({position}번째)이 "
                    "파티션 정의보다 먼저 나왔습니다",
                    object_name=boundary.name,
                )
            _check_boundary_value(spec.subpartition_method, boundary)
            current.subpartitions.append(boundary)
        else:
            _check_boundary_value(spec.partition_method, boundary)
            current = PartitionGroup(partition=boundary)
            layout.groups.append(current)

    return layout


def generate(spec: PartitionSpec, boundaries: Sequence[BoundaryDefinition]) -> str:
    """
    파티션 레이아웃 DDL 생성

    Args:
        spec: 파티션 명세
        boundaries: 호출자가 지정한 순서의 경계 정의

    Returns:
        PARTITION BY ... 절 텍스트

    Raises:
        InvalidSpecification: 명세가 잘못된 경우
        GenerationFailure: 경계 순서/내용이 잘못된 경우

    Examples:
        >>> spec = PartitionSpec.single_level(PartitionMethod.RANGE, ["SALE_DATE"])
        >>> generate(spec, [BoundaryDefinition.partition("P1", "DATE '2024-04-01'")])
        "PARTITION BY RANGE (SALE_DATE) (\\n    PARTITION P1 VALUES LESS THAN (DATE '2024-04-01')\\n)"
    """
    return render_layout(build_layout(spec, boundaries))


def render_layout(layout: PartitionLayout) -> str:
    """구조화된 레이아웃을 DDL 텍스트로 변환 (조각을 모아 한 번에 결합)"""
    spec = layout.spec
    header = [partition_by_clause(spec)]

    if spec.is_composite:
        header.append(
            f"SUBPARTITION BY {spec.subpartition_method.base_method} "
            f"({', '.join(spec.subpartition_key)})"
        )

    if not layout.groups:
        if spec.partition_method == PartitionMethod.HASH and spec.hash_partition_count:
            header.append(f"PARTITIONS {spec.hash_partition_count}")
        return " ".join(header)

    partition_clauses = []
    for group in layout.groups:
        clause = _boundary_clause("PARTITION", spec.partition_method, group.partition, INDENT)
        if group.subpartitions:
            sub_clauses = [
                _boundary_clause("SUBPARTITION", spec.subpartition_method, sub, INDENT * 2)
                for sub in group.subpartitions
            ]
            clause += " (\n" + ",\n".join(sub_clauses) + f"\n{INDENT})"
        partition_clauses.append(clause)

    return " ".join(header) + " (\n" + ",\n".join(partition_clauses) + "\n)"


def partition_by_clause(spec: PartitionSpec) -> str:
    """PARTITION BY 절 (자동 리스트/자동 범위는 별도 처리)"""
    method = spec.partition_method
    key = ", ".join(spec.partition_key)

    if method == PartitionMethod.AUTO_LIST:
        return f"PARTITION BY LIST ({key}) AUTOMATIC"
    if method == PartitionMethod.INTERVAL:
        return f"PARTITION BY RANGE ({key}) INTERVAL ({spec.interval_expression})"
    if method == PartitionMethod.REFERENCE:
        # REFERENCE 파티셔닝의 키는 참조 제약조건 이름
        return f"PARTITION BY REFERENCE ({spec.partition_key[0]})"
    return f"PARTITION BY {method.base_method} ({key})"


def _boundary_clause(
    keyword: str, method: PartitionMethod, boundary: BoundaryDefinition, indent: str
) -> str:
    """PARTITION/SUBPARTITION 단일 절 생성"""
    parts = [f"{indent}{keyword} {boundary.name}"]

    if method.value_clause:
        parts.append(f"{method.value_clause} ({boundary.boundary_value})")

    if boundary.target_container:
        parts.append(f"TABLESPACE {boundary.target_container}")

    return " ".join(parts)


def _check_boundary_value(method: PartitionMethod, boundary: BoundaryDefinition):
    """값 절이 필요한 방식인데 경계값이 비어 있으면 실패"""
    if method.value_clause and not (boundary.boundary_value or "").strip():
        raise GenerationFailure(
            f"{method.value} 방식의 {boundary.level.value.lower()} {boundary.name}에 "
            "경계값이 없습니다",
            object_name=boundary.name,
        )
