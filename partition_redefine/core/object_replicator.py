"""
섀도 테이블 및 종속 객체 DDL 생성 모듈

원본 테이블의 컬럼/제약조건/인덱스/트리거 정보를 받아
섀도 테이블용 문장을 만듭니다. 실행은 오케스트레이터가 담당합니다.
"""
import re
from typing import Dict, List, Optional, Sequence

from .interfaces import ColumnInfo, ConstraintInfo, IndexInfo, TableInfo, TriggerInfo
from .partition_types import TableId

# 길이를 붙이는 문자/바이너리 타입
LENGTH_TYPES = {"VARCHAR2", "NVARCHAR2", "CHAR", "NCHAR", "RAW", "VARCHAR"}

# 길이가 항상 문자 수인 국가 문자셋 타입
NATIONAL_CHAR_TYPES = {"NVARCHAR2", "NCHAR"}

# CHAR_USED에 따라 문자/바이트 길이 의미가 갈리는 타입
SEMANTICS_TYPES = {"VARCHAR2", "CHAR", "VARCHAR"}

# 제약조건 타입별 절
CONSTRAINT_KEYWORDS = {
    "P": "PRIMARY KEY",
    "U": "UNIQUE",
}


def suffixed_name(base: str, suffix: str, max_length: int) -> str:
    """
    접미사를 붙인 객체 이름 (길이 초과 시 기본 이름을 잘라냄)

    접미사는 항상 유지되므로 원본/섀도/보관 이름이 서로 겹치지 않습니다.

    Examples:
        >>> suffixed_name("ORDERS", "_NEW", 128)
        'ORDERS_NEW'
        >>> suffixed_name("A" * 30, "_NEW", 30)
        'AAAAAAAAAAAAAAAAAAAAAAAAAA_NEW'
    """
    room = max_length - len(suffix)
    if room < 1:
        raise ValueError(f"접미사가 최대 식별자 길이({max_length})보다 깁니다: {suffix}")
    return base[:room] + suffix


def strip_suffix(name: str, suffix: str) -> Optional[str]:
    """접미사 제거 (접미사로 끝나지 않으면 None)"""
    if suffix and name.upper().endswith(suffix.upper()) and len(name) > len(suffix):
        return name[: -len(suffix)]
    return None


def column_type(column: ColumnInfo) -> str:
    """ALL_TAB_COLUMNS 정보로 컬럼 타입 문자열 생성"""
    data_type = column.data_type

    if data_type == "NUMBER":
        if column.data_precision is not None:
            if column.data_scale:
                return f"NUMBER({column.data_precision},{column.data_scale})"
            return f"NUMBER({column.data_precision})"
        if column.data_scale == 0:
            return "INTEGER"
        return "NUMBER"

    if data_type == "FLOAT" and column.data_precision:
        return f"FLOAT({column.data_precision})"

    # DATA_LENGTH는 바이트 수이므로 문자 타입은 CHAR_LENGTH 사용
    if data_type in NATIONAL_CHAR_TYPES and (column.char_length or column.data_length):
        return f"{data_type}({column.char_length or column.data_length})"

    if data_type in SEMANTICS_TYPES:
        if column.char_used == "C" and column.char_length:
            return f"{data_type}({column.char_length} CHAR)"
        if column.char_used == "B" and column.data_length:
            return f"{data_type}({column.data_length} BYTE)"

    if data_type in LENGTH_TYPES and column.data_length:
        return f"{data_type}({column.data_length})"

    # DATE, TIMESTAMP(6), CLOB, BLOB 등은 딕셔너리 표기 그대로 사용
    return data_type


def column_definition(column: ColumnInfo) -> str:
    """컬럼 정의 절 생성 (제약조건 제외, NOT NULL만 포함)"""
    col_def = f"{column.name} {column_type(column)}"

    if column.virtual:
        return f"{col_def} GENERATED ALWAYS AS ({column.data_default.strip()}) VIRTUAL"

    if column.data_default and column.data_default.strip():
        col_def += f" DEFAULT {column.data_default.strip()}"

    if not column.nullable:
        col_def += " NOT NULL"

    return col_def


def insertable_columns(columns: Sequence[ColumnInfo]) -> List[str]:
    """INSERT/MERGE 대상 컬럼 (가상 컬럼 제외)"""
    return [c.name for c in columns if not c.virtual]


class ObjectReplicator:
    """섀도 테이블 및 종속 객체 DDL 생성 클래스"""

    def __init__(self, table: TableId, shadow_suffix: str, max_length: int):
        self.table = table
        self.shadow_suffix = shadow_suffix
        self.max_length = max_length

    def shadow_name_for(self, name: str) -> str:
        """종속 객체의 섀도용 이름"""
        return suffixed_name(name, self.shadow_suffix, self.max_length)

    def create_shadow_table(
        self,
        shadow: TableId,
        columns: Sequence[ColumnInfo],
        table_info: Optional[TableInfo],
        layout_ddl: str,
        reference_constraint: Optional[ConstraintInfo] = None,
    ) -> str:
        """
        섀도 테이블 CREATE TABLE 문 생성

        Args:
            shadow: 섀도 테이블
            columns: 원본 컬럼 목록
            table_info: 원본 저장 속성 (테이블스페이스 승계)
            layout_ddl: PARTITION BY ... 절
            reference_constraint: REFERENCE 파티셔닝 시 인라인 선언할 참조 제약조건

        Returns:
            CREATE TABLE 문
        """
        column_defs = [f"    {column_definition(col)}" for col in columns]

        if reference_constraint is not None:
            column_defs.append(f"    {self.inline_foreign_key(reference_constraint)}")

        create_sql = f"CREATE TABLE {shadow.qualified} (\n"
        create_sql += ",\n".join(column_defs)
        create_sql += "\n)"

        if table_info and table_info.tablespace_name:
            create_sql += f" TABLESPACE {table_info.tablespace_name}"

        return f"{create_sql}\n{layout_ddl}"

    def inline_foreign_key(self, constraint: ConstraintInfo) -> str:
        """REFERENCE 파티셔닝용 인라인 참조 제약조건 절"""
        ref_owner = constraint.ref_owner or self.table.owner
        return (
            f"CONSTRAINT {self.shadow_name_for(constraint.name)} "
            f"FOREIGN KEY ({', '.join(constraint.columns)}) "
            f"REFERENCES {ref_owner}.{constraint.ref_table} ({', '.join(constraint.ref_columns)})"
        )

    def add_constraint(self, shadow: TableId, constraint: ConstraintInfo) -> Optional[str]:
        """
        비활성(DISABLE NOVALIDATE) 상태로 제약조건 추가하는 문 생성

        Returns:
            ALTER TABLE 문 (복제 대상이 아닌 타입이면 None)
        """
        new_name = self.shadow_name_for(constraint.name)
        kind = constraint.constraint_type

        if kind in CONSTRAINT_KEYWORDS:
            body = f"{CONSTRAINT_KEYWORDS[kind]} ({', '.join(constraint.columns)})"
        elif kind == "C" and constraint.condition:
            body = f"CHECK ({constraint.condition.strip()})"
        else:
            return None

        return (
            f"ALTER TABLE {shadow.qualified} ADD CONSTRAINT {new_name} "
            f"{body} DISABLE NOVALIDATE"
        )

    def enable_constraint(self, shadow: TableId, name: str) -> str:
        """제약조건 활성화 및 검증 문"""
        return f"ALTER TABLE {shadow.qualified} ENABLE VALIDATE CONSTRAINT {name}"

    def create_index(
        self,
        shadow: TableId,
        index: IndexInfo,
        parallel_degree: Optional[int] = None,
        local: bool = False,
    ) -> List[str]:
        """
        인덱스 생성 문 목록

        병렬 생성 시 PARALLEL n으로 만든 뒤 NOPARALLEL로 되돌리는 문을 함께 반환합니다.
        비트맵 인덱스는 파티션 테이블에서 LOCAL만 허용됩니다.

        Returns:
            실행 순서대로의 문 목록
        """
        new_name = f"{shadow.owner}.{self.shadow_name_for(index.name)}"

        if index.is_unique:
            kind = "UNIQUE INDEX"
        elif index.is_bitmap:
            kind = "BITMAP INDEX"
        else:
            kind = "INDEX"

        create_sql = f"CREATE {kind} {new_name} ON {shadow.qualified} ({', '.join(index.columns)})"

        if index.is_bitmap or (local and not index.is_unique):
            create_sql += " LOCAL"
        if index.tablespace_name:
            create_sql += f" TABLESPACE {index.tablespace_name}"

        if not parallel_degree:
            return [create_sql]

        return [
            f"{create_sql} PARALLEL {parallel_degree}",
            f"ALTER INDEX {new_name} NOPARALLEL",
        ]

    def create_trigger(self, shadow: TableId, trigger: TriggerInfo) -> str:
        """
        비활성 상태로 트리거를 생성하는 문

        ALL_TRIGGERS.DESCRIPTION의 트리거 이름과 대상 테이블을 섀도용으로 바꾸고,
        DISABLE, WHEN 절, 본문 순으로 붙입니다.
        """
        new_name = f"{shadow.owner}.{self.shadow_name_for(trigger.name)}"

        description = re.sub(
            r'^\s*("?[\w$#]+"?\.)?"?[\w$#]+"?',
            new_name,
            trigger.description.strip(),
            count=1,
        )
        description = re.sub(
            rf'\bON\s+("?[\w$#]+"?\.)?"?{re.escape(self.table.name)}"?(?=\s|$)',
            f"ON {shadow.qualified}",
            description,
            count=1,
            flags=re.IGNORECASE,
        )

        parts = [f"CREATE OR REPLACE TRIGGER {description}", "DISABLE"]
        if trigger.when_clause and trigger.when_clause.strip():
            parts.append(f"WHEN ({trigger.when_clause.strip()})")
        parts.append(trigger.body.strip())

        return "\n".join(parts)

    def enable_trigger(self, owner: str, name: str) -> str:
        """트리거 활성화 문"""
        return f"ALTER TRIGGER {owner}.{name} ENABLE"

    def bulk_insert(
        self,
        shadow: TableId,
        columns: Sequence[ColumnInfo],
        hint: str,
    ) -> str:
        """직접 경로 INSERT ... SELECT 문"""
        column_list = ", ".join(insertable_columns(columns))
        return (
            f"INSERT {hint} INTO {shadow.qualified} ({column_list}) "
            f"SELECT {column_list} FROM {self.table.qualified}"
        )


def rename_statement(kind: str, owner: str, table: str, old: str, new: str) -> str:
    """
    객체 이름 변경 문 생성

    Args:
        kind: TABLE, CONSTRAINT, INDEX, TRIGGER
        owner: 스키마
        table: 제약조건이 속한 테이블 (CONSTRAINT일 때만 사용)
        old: 현재 이름
        new: 새 이름
    """
    if kind == "TABLE":
        return f"ALTER TABLE {owner}.{old} RENAME TO {new}"
    if kind == "CONSTRAINT":
        return f"ALTER TABLE {owner}.{table} RENAME CONSTRAINT {old} TO {new}"
    if kind == "INDEX":
        return f"ALTER INDEX {owner}.{old} RENAME TO {new}"
    if kind == "TRIGGER":
        return f"ALTER TRIGGER {owner}.{old} RENAME TO {new}"
    raise ValueError(f"지원하지 않는 객체 종류: {kind}")


def names_by_kind(
    constraints: Sequence[ConstraintInfo],
    indexes: Sequence[IndexInfo],
    triggers: Sequence[TriggerInfo],
) -> Dict[str, List[str]]:
    """종류별 객체 이름 목록 (이름 정리 순서: 제약조건, 인덱스, 트리거)"""
    return {
        "CONSTRAINT": [c.name for c in constraints],
        "INDEX": [i.name for i in indexes],
        "TRIGGER": [t.name for t in triggers],
    }
