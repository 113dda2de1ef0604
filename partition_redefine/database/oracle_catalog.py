"""
python-oracledb 기반 데이터 딕셔너리 조회기

- ALL_* 뷰 조회 (바인드 변수 사용)
- LOB 컬럼(data_default, search_condition, trigger_body 등) 읽기
- 시스템 생성 NOT NULL 체크 제약조건 제외
- 버전 감지
"""

import logging
import re
from datetime import datetime
from typing import Optional

import oracledb

from partition_redefine.core.interfaces import (
    CatalogReader,
    ColumnInfo,
    ConstraintInfo,
    IndexInfo,
    TableInfo,
    TriggerInfo,
)
from partition_redefine.core.partition_types import TableId
from partition_redefine.database.catalog_sql import (
    COUNT_ROWS_SQL,
    get_column_sql,
    get_object_exists_sql,
    get_sql,
)
from partition_redefine.database.version_info import (
    OraVersionFamily,
    OraVersionInfo,
    parse_version_string,
)

logger = logging.getLogger(__name__)

# NOT NULL 제약조건이 체크 제약조건으로 보고되는 형태: "COL" IS NOT NULL
_NOT_NULL_CONDITION = re.compile(r'^"?[\w$#]+"?\s+IS\s+NOT\s+NULL$', re.IGNORECASE)


def read_lob(value) -> Optional[str]:
    """LOB/LONG 값을 문자열로 읽기 (앞뒤 공백 제거)"""
    if value is not None and hasattr(value, "read"):
        value = value.read()
    if value is None:
        return None
    return value.strip()


def detect_version(connection) -> OraVersionInfo:
    """연결된 DB 버전 감지

    드라이버가 보고하는 버전을 우선 사용하고, 없으면 v$version 배너를 조회합니다.

    Returns:
        OraVersionInfo: 감지된 버전 정보 (실패 시 UNKNOWN)
    """
    version_str = getattr(connection, "version", None)
    if version_str:
        return parse_version_string(version_str)

    try:
        with connection.cursor() as cursor:
            cursor.execute(get_sql("version_banner"))
            row = cursor.fetchone()
            if row:
                return parse_version_string(row[0])
    except oracledb.Error as e:
        logger.warning(f"버전 감지 실패: {e}")

    return OraVersionInfo(0, 0, "unknown", OraVersionFamily.UNKNOWN)


class OracleCatalogReader(CatalogReader):
    """ALL_* 뷰 기반 CatalogReader 구현

    조회 오류(oracledb.Error)는 그대로 전파합니다. 호출 측(오케스트레이터)이
    단계별로 치명/비치명을 판단합니다.

    Examples:
        >>> catalog = OracleCatalogReader(connection)
        >>> catalog.has_primary_key(TableId("APP", "ORDERS"))
        True
    """

    def __init__(self, connection, version_info: Optional[OraVersionInfo] = None):
        self.connection = connection
        self.version_info = version_info or detect_version(connection)

    def _fetch_all(self, sql: str, binds: dict) -> list:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, binds)
            return cursor.fetchall()

    def _fetch_one(self, sql: str, binds: dict):
        with self.connection.cursor() as cursor:
            cursor.execute(sql, binds)
            return cursor.fetchone()

    def _count(self, sql: str, binds: dict) -> int:
        row = self._fetch_one(sql, binds)
        return int(row[0]) if row else 0

    @staticmethod
    def _binds(table: TableId) -> dict:
        return {"o": table.owner.upper(), "t": table.name.upper()}

    def table_exists(self, table: TableId) -> bool:
        return self._count(get_sql("table_exists"), self._binds(table)) > 0

    def object_exists(self, owner: str, name: str, kind: str = "TABLE") -> bool:
        return self._count(get_object_exists_sql(kind), {"o": owner.upper(), "n": name.upper()}) > 0

    def has_primary_key(self, table: TableId) -> bool:
        return self._count(get_sql("has_primary_key"), self._binds(table)) > 0

    def has_lob_columns(self, table: TableId) -> bool:
        return self._count(get_sql("has_lob_columns"), self._binds(table)) > 0

    def get_table_info(self, table: TableId) -> Optional[TableInfo]:
        row = self._fetch_one(get_sql("table_info"), self._binds(table))
        if not row:
            return None
        return TableInfo(tablespace_name=row[0], partitioned=(row[1] == "YES"))

    def list_columns(self, table: TableId) -> list[ColumnInfo]:
        columns = []
        for row in self._fetch_all(get_column_sql(self.version_info), self._binds(table)):
            columns.append(
                ColumnInfo(
                    name=row[0],
                    data_type=row[1],
                    data_length=row[2],
                    data_precision=row[3],
                    data_scale=row[4],
                    nullable=(row[5] != "N"),
                    data_default=read_lob(row[6]) or None,
                    virtual=(row[7] == "YES"),
                    char_length=row[8] or None,
                    char_used=row[9],
                )
            )
        return columns

    def _constraint_columns(self, owner: str, name: str) -> list[str]:
        rows = self._fetch_all(get_sql("constraint_columns"), {"o": owner, "n": name})
        return [r[0] for r in rows]

    def list_constraints(self, table: TableId) -> list[ConstraintInfo]:
        """제약조건 목록

        시스템 생성 NOT NULL 체크는 컬럼 정의(nullable)로 복제되므로 제외합니다.
        참조 제약조건은 참조 대상 테이블/컬럼까지 채웁니다.
        """
        owner = table.owner.upper()
        constraints = []

        for name, con_type, search_cond, r_owner, r_con_name, generated in self._fetch_all(
            get_sql("constraints"), self._binds(table)
        ):
            condition = None
            if con_type == "C":
                condition = read_lob(search_cond)
                if (
                    generated == "GENERATED NAME"
                    and condition
                    and _NOT_NULL_CONDITION.match(condition)
                ):
                    continue

            constraint = ConstraintInfo(
                name=name,
                constraint_type=con_type,
                columns=self._constraint_columns(owner, name),
                condition=condition,
            )

            if con_type == "R" and r_owner and r_con_name:
                ref_row = self._fetch_one(get_sql("constraint_table"), {"o": r_owner, "n": r_con_name})
                constraint.ref_owner = r_owner
                constraint.ref_table = ref_row[0] if ref_row else None
                constraint.ref_columns = self._constraint_columns(r_owner, r_con_name)

            constraints.append(constraint)

        return constraints

    def _index_columns(self, owner: str, name: str, index_type: str) -> list[str]:
        """인덱스 컬럼 (함수 기반 인덱스는 표현식으로 대체, DESC 표기)"""
        expressions = {}
        if index_type.startswith("FUNCTION-BASED"):
            for expr, position in self._fetch_all(get_sql("index_expressions"), {"o": owner, "n": name}):
                expressions[position] = read_lob(expr)

        columns = []
        for column_name, position, descend in self._fetch_all(
            get_sql("index_columns"), {"o": owner, "n": name}
        ):
            column = expressions.get(position) or column_name
            if descend == "DESC":
                column = f"{column} DESC"
            columns.append(column)
        return columns

    def list_indexes(
        self, table: TableId, include_constraint_indexes: bool = False
    ) -> list[IndexInfo]:
        binds = self._binds(table)
        excluded = set()
        if not include_constraint_indexes:
            excluded = {r[0] for r in self._fetch_all(get_sql("constraint_indexes"), binds)}

        indexes = []
        for name, index_type, uniqueness, tablespace in self._fetch_all(get_sql("indexes"), binds):
            if name in excluded:
                continue
            indexes.append(
                IndexInfo(
                    name=name,
                    columns=self._index_columns(binds["o"], name, index_type or ""),
                    uniqueness=uniqueness,
                    index_type=index_type,
                    tablespace_name=tablespace,
                )
            )
        return indexes

    def list_triggers(self, table: TableId) -> list[TriggerInfo]:
        triggers = []
        for name, description, when_clause, body in self._fetch_all(
            get_sql("triggers"), self._binds(table)
        ):
            triggers.append(
                TriggerInfo(
                    name=name,
                    description=read_lob(description) or "",
                    body=read_lob(body) or "",
                    when_clause=read_lob(when_clause) or None,
                )
            )
        return triggers

    def count_rows(self, table: TableId) -> int:
        row = self._fetch_one(COUNT_ROWS_SQL.format(table=table.qualified), {})
        return int(row[0]) if row else 0

    def current_timestamp(self) -> datetime:
        row = self._fetch_one(get_sql("db_timestamp"), {})
        return row[0]
