"""
Oracle 데이터 딕셔너리 조회 SQL 템플릿

지원 대상: Oracle 11g R2 ~ 23ai
ALL_* 뷰만 사용하므로 DBA 권한 없이 조회 가능한 범위에서 동작합니다.
바인드 변수: :o (소유자), :t (테이블), :n (객체 이름)
"""

from partition_redefine.database.version_info import OraVersionFamily, OraVersionInfo

# 공통 SQL 템플릿
CATALOG_SQL: dict[str, str] = {
    "table_exists": """
        SELECT COUNT(*) FROM all_tables
        WHERE owner = :o AND table_name = :t
    """,
    "table_info": """
        SELECT tablespace_name, partitioned
        FROM all_tables
        WHERE owner = :o AND table_name = :t
    """,
    "has_primary_key": """
        SELECT COUNT(*) FROM all_constraints
        WHERE owner = :o AND table_name = :t AND constraint_type = 'P'
    """,
    "has_lob_columns": """
        SELECT COUNT(*) FROM all_tab_columns
        WHERE owner = :o AND table_name = :t
          AND data_type IN ('CLOB', 'NCLOB', 'BLOB', 'BFILE', 'LONG', 'LONG RAW')
    """,
    "constraints": """
        SELECT c.constraint_name, c.constraint_type, c.search_condition,
               c.r_owner, c.r_constraint_name, c.generated
        FROM all_constraints c
        WHERE c.owner = :o AND c.table_name = :t
          AND c.constraint_type IN ('P', 'U', 'C', 'R')
        ORDER BY c.constraint_type, c.constraint_name
    """,
    "constraint_columns": """
        SELECT column_name FROM all_cons_columns
        WHERE owner = :o AND constraint_name = :n
        ORDER BY position
    """,
    "constraint_table": """
        SELECT table_name FROM all_constraints
        WHERE owner = :o AND constraint_name = :n
    """,
    "constraint_indexes": """
        SELECT index_name FROM all_constraints
        WHERE owner = :o AND table_name = :t
          AND constraint_type IN ('P', 'U')
          AND index_name IS NOT NULL
    """,
    "indexes": """
        SELECT index_name, index_type, uniqueness, tablespace_name
        FROM all_indexes
        WHERE table_owner = :o AND table_name = :t
          AND index_type <> 'LOB'
          AND index_name NOT LIKE 'BIN$%'
        ORDER BY index_name
    """,
    "index_columns": """
        SELECT column_name, column_position, descend
        FROM all_ind_columns
        WHERE index_owner = :o AND index_name = :n
        ORDER BY column_position
    """,
    "index_expressions": """
        SELECT column_expression, column_position
        FROM all_ind_expressions
        WHERE index_owner = :o AND index_name = :n
        ORDER BY column_position
    """,
    "triggers": """
        SELECT trigger_name, description, when_clause, trigger_body
        FROM all_triggers
        WHERE table_owner = :o AND table_name = :t
          AND base_object_type = 'TABLE'
        ORDER BY trigger_name
    """,
    # 객체 종류별 이름 존재 여부 (오라클 이름공간 분리)
    "object_exists_table": """
        SELECT COUNT(*) FROM all_objects
        WHERE owner = :o AND object_name = :n
          AND object_type NOT IN ('INDEX', 'TRIGGER', 'TABLE PARTITION',
                                  'TABLE SUBPARTITION', 'INDEX PARTITION',
                                  'INDEX SUBPARTITION', 'LOB', 'LOB PARTITION',
                                  'PACKAGE BODY', 'TYPE BODY')
    """,
    "object_exists_index": """
        SELECT COUNT(*) FROM all_indexes
        WHERE owner = :o AND index_name = :n
    """,
    "object_exists_constraint": """
        SELECT COUNT(*) FROM all_constraints
        WHERE owner = :o AND constraint_name = :n
    """,
    "object_exists_trigger": """
        SELECT COUNT(*) FROM all_triggers
        WHERE owner = :o AND trigger_name = :n
    """,
    "version_banner": """
        SELECT banner FROM v$version WHERE ROWNUM = 1
    """,
    "db_timestamp": """
        SELECT CAST(SYSTIMESTAMP AS TIMESTAMP) FROM dual
    """,
}

# 버전별로 달라지는 컬럼 조회
COLUMN_SQL: dict[str, str] = {
    # 11g: 숨김 컬럼 구분만 가능
    "11g": """
        SELECT column_name, data_type, data_length, data_precision, data_scale,
               nullable, data_default, virtual_column, char_length, char_used
        FROM all_tab_cols
        WHERE owner = :o AND table_name = :t
          AND hidden_column = 'NO'
        ORDER BY column_id
    """,
    # 12c 이상: 시스템 생성 컬럼(user_generated = 'NO') 제외
    "12c": """
        SELECT column_name, data_type, data_length, data_precision, data_scale,
               nullable, data_default, virtual_column, char_length, char_used
        FROM all_tab_cols
        WHERE owner = :o AND table_name = :t
          AND hidden_column = 'NO'
          AND user_generated = 'YES'
        ORDER BY column_id
    """,
}

# 행 수 (병렬 힌트는 대용량 테이블에서만 의미가 있어 두지 않음)
COUNT_ROWS_SQL = "SELECT COUNT(*) FROM {table}"

OBJECT_KINDS = ("TABLE", "INDEX", "CONSTRAINT", "TRIGGER")


def get_sql(query_name: str) -> str:
    """공통 SQL 템플릿 반환

    Raises:
        KeyError: 존재하지 않는 query_name
    """
    return CATALOG_SQL[query_name]


def get_object_exists_sql(kind: str) -> str:
    """객체 종류별 존재 여부 SQL

    Raises:
        ValueError: 지원하지 않는 kind
    """
    kind = (kind or "TABLE").upper()
    if kind not in OBJECT_KINDS:
        raise ValueError(f"지원하지 않는 객체 종류: {kind}")
    return CATALOG_SQL[f"object_exists_{kind.lower()}"]


def get_column_sql(version_info: OraVersionInfo) -> str:
    """버전에 맞는 컬럼 조회 SQL 반환

    Args:
        version_info: Oracle 버전 정보

    Returns:
        해당 버전에 적합한 SQL 템플릿
    """
    # 11g 또는 UNKNOWN은 11g 템플릿 사용
    if version_info.family in (OraVersionFamily.ORA_11G, OraVersionFamily.UNKNOWN):
        return COLUMN_SQL["11g"]
    return COLUMN_SQL["12c"]
