"""
pytest 설정 및 공통 픽스처

- 임시 로컬 DB
- 메모리 기반 Oracle 시뮬레이터 (실행기 + 딕셔너리 조회기)
- 감사 이벤트 수집 싱크
"""

import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from partition_redefine.core.config import EngineConfig
from partition_redefine.core.interfaces import (
    AuditSink,
    CatalogReader,
    ColumnInfo,
    ConstraintInfo,
    IndexInfo,
    StatementExecutor,
    StatementResult,
    TableInfo,
    TriggerInfo,
)
from partition_redefine.core.orchestrator import ConversionOrchestrator
from partition_redefine.core.partition_types import TableId
from partition_redefine.database.local_db import Base, LocalDatabase
from partition_redefine.utils.app_paths import AppPaths

OWNER = "APP"

# ORA-00942: table or view does not exist, ORA-00955: name is already used
TABLE_NOT_FOUND = 942
NAME_IN_USE = 955


@dataclass
class FakeTable:
    """시뮬레이터 테이블"""

    columns: list = field(default_factory=list)
    constraints: list = field(default_factory=list)
    indexes: list = field(default_factory=list)
    triggers: list = field(default_factory=list)
    rows: int = 0
    tablespace: Optional[str] = "USERS"
    partitioned: bool = False
    partitions: list = field(default_factory=list)
    subpartitions: list = field(default_factory=list)
    read_only: bool = False
    ddl: str = ""


@dataclass
class FailureRule:
    """패턴과 일치하는 문장을 실패시키는 규칙 (times가 None이면 항상)"""

    pattern: str
    code: int
    message: str
    times: Optional[int] = None


class FakeOracle:
    """DDL 일부를 해석해 딕셔너리 상태를 바꾸는 메모리 Oracle"""

    def __init__(self, owner: str = OWNER):
        self.owner = owner
        self.tables: dict[str, FakeTable] = {}

    def add_table(self, name: str, **kwargs) -> FakeTable:
        table = FakeTable(**kwargs)
        # 기본키/유니크 제약조건은 같은 이름의 인덱스를 가짐
        for constraint in table.constraints:
            if constraint.constraint_type in ("P", "U"):
                table.indexes.append(
                    _ConstraintIndex(name=constraint.name, columns=list(constraint.columns),
                                     uniqueness="UNIQUE")
                )
        self.tables[name] = table
        return table

    def table(self, name: str) -> FakeTable:
        return self.tables[name]

    def find_object(self, name: str, kind: str):
        """(테이블명, 객체) 반환 (없으면 (None, None))"""
        for table_name, table in self.tables.items():
            objects = {
                "CONSTRAINT": table.constraints,
                "INDEX": table.indexes,
                "TRIGGER": table.triggers,
            }[kind]
            for obj in objects:
                if obj.name == name:
                    return table_name, obj
        return None, None


@dataclass
class _ConstraintIndex(IndexInfo):
    """기본키/유니크 제약조건이 만든 인덱스"""

    constraint_index: bool = True


class FakeExecutor(StatementExecutor):
    """FakeOracle 상태를 바꾸는 실행기

    실패 규칙이 우선 적용되며, 해석하지 못한 문장은 성공으로 처리합니다.
    """

    def __init__(self, db: FakeOracle):
        self.db = db
        self.statements: list[str] = []
        self.rules: list[FailureRule] = []
        self.rowcounts: dict[str, list] = {}

    def fail_on(self, pattern: str, code: int = 1, message: str = "ORA-00001: forced failure",
                times: Optional[int] = None):
        self.rules.append(FailureRule(pattern, code, message, times))

    def set_rowcounts(self, pattern: str, *counts: int):
        """패턴과 일치하는 문장의 rowcount를 순서대로 지정 (마지막 값은 반복)"""
        self.rowcounts[pattern] = list(counts)

    def executed(self, pattern: str) -> list[str]:
        return [s for s in self.statements if pattern in s]

    def execute(self, statement: str) -> StatementResult:
        self.statements.append(statement)

        for rule in self.rules:
            if rule.pattern in statement and (rule.times is None or rule.times > 0):
                if rule.times is not None:
                    rule.times -= 1
                return StatementResult.failure(rule.code, rule.message)

        for pattern, counts in self.rowcounts.items():
            if pattern in statement:
                count = counts.pop(0) if len(counts) > 1 else counts[0]
                return StatementResult.success(count)

        return self._apply(statement)

    def _apply(self, statement: str) -> StatementResult:
        db = self.db
        o = re.escape(db.owner)

        match = re.match(rf"CREATE TABLE {o}\.(\w+) \(", statement)
        if match:
            name = match.group(1)
            if name in db.tables:
                return StatementResult.failure(NAME_IN_USE, "ORA-00955: name is already used")
            db.tables[name] = FakeTable(
                partitioned="PARTITION BY" in statement,
                partitions=re.findall(r"^    PARTITION (\w+)", statement, re.M),
                subpartitions=re.findall(r"^        SUBPARTITION (\w+)", statement, re.M),
                ddl=statement,
            )
            return StatementResult.success()

        match = re.match(rf"ALTER TABLE {o}\.(\w+) RENAME TO (\w+)$", statement)
        if match:
            old, new = match.groups()
            if old not in db.tables:
                return StatementResult.failure(TABLE_NOT_FOUND, "ORA-00942: table or view does not exist")
            if new in db.tables:
                return StatementResult.failure(NAME_IN_USE, "ORA-00955: name is already used")
            db.tables[new] = db.tables.pop(old)
            return StatementResult.success()

        match = re.match(
            rf"ALTER TABLE {o}\.(\w+) ADD CONSTRAINT (\w+) (PRIMARY KEY|UNIQUE|CHECK) \((.*)\) DISABLE",
            statement,
        )
        if match:
            table_name, name, kind, body = match.groups()
            if db.find_object(name, "CONSTRAINT")[1] is not None:
                return StatementResult.failure(2264, "ORA-02264: name already used by an existing constraint")
            con_type = {"PRIMARY KEY": "P", "UNIQUE": "U", "CHECK": "C"}[kind]
            columns = [c.strip() for c in body.split(",")] if con_type != "C" else []
            table = db.tables[table_name]
            table.constraints.append(
                ConstraintInfo(name=name, constraint_type=con_type, columns=columns,
                               condition=body if con_type == "C" else None)
            )
            if con_type in ("P", "U"):
                table.indexes.append(_ConstraintIndex(name=name, columns=columns, uniqueness="UNIQUE"))
            return StatementResult.success()

        match = re.match(
            rf"CREATE (UNIQUE |BITMAP )?INDEX {o}\.(\w+) ON {o}\.(\w+) \((.*?)\)", statement
        )
        if match:
            kind, name, table_name, columns = match.groups()
            if db.find_object(name, "INDEX")[1] is not None:
                return StatementResult.failure(NAME_IN_USE, "ORA-00955: name is already used")
            db.tables[table_name].indexes.append(
                IndexInfo(
                    name=name,
                    columns=[c.strip() for c in columns.split(",")],
                    uniqueness="UNIQUE" if kind == "UNIQUE " else "NONUNIQUE",
                    index_type="BITMAP" if kind == "BITMAP " else "NORMAL",
                )
            )
            return StatementResult.success()

        match = re.match(rf"CREATE OR REPLACE TRIGGER {o}\.(\w+) .*? ON {o}\.(\w+)", statement, re.S)
        if match:
            name, table_name = match.groups()
            db.tables[table_name].triggers.append(
                TriggerInfo(name=name, description=statement.splitlines()[0], body="BEGIN NULL; END;")
            )
            return StatementResult.success()

        match = re.match(rf"INSERT .*? INTO {o}\.(\w+) \(.*\) SELECT .* FROM {o}\.(\w+)$", statement)
        if match:
            target, source = match.groups()
            rows = db.tables[source].rows
            db.tables[target].rows = rows
            return StatementResult.success(rows)

        match = re.match(rf"ALTER TABLE {o}\.(\w+) (READ ONLY|READ WRITE)$", statement)
        if match:
            table_name, mode = match.groups()
            if table_name not in db.tables:
                return StatementResult.failure(TABLE_NOT_FOUND, "ORA-00942: table or view does not exist")
            db.tables[table_name].read_only = mode == "READ ONLY"
            return StatementResult.success()

        match = re.match(rf"ALTER TABLE {o}\.(\w+) RENAME CONSTRAINT (\w+) TO (\w+)$", statement)
        if match:
            return self._rename_object("CONSTRAINT", match.group(2), match.group(3))

        match = re.match(rf"ALTER (INDEX|TRIGGER) {o}\.(\w+) RENAME TO (\w+)$", statement)
        if match:
            return self._rename_object(match.group(1), match.group(2), match.group(3))

        return StatementResult.success()

    def _rename_object(self, kind: str, old: str, new: str) -> StatementResult:
        _, obj = self.db.find_object(old, kind)
        if obj is None:
            return StatementResult.failure(4080, f"ORA-04080: {kind} {old} does not exist")
        if self.db.find_object(new, kind)[1] is not None:
            return StatementResult.failure(NAME_IN_USE, "ORA-00955: name is already used")
        obj.name = new
        return StatementResult.success()


class FakeCatalog(CatalogReader):
    """FakeOracle 상태를 읽는 딕셔너리 조회기"""

    def __init__(self, db: FakeOracle):
        self.db = db
        # DB 서버 시계 (테스트에서 직접 지정)
        self.db_time = datetime(2024, 5, 1, 12, 0, 0)

    def _get(self, table: TableId) -> FakeTable:
        return self.db.tables[table.name]

    def table_exists(self, table):
        return table.name in self.db.tables

    def object_exists(self, owner, name, kind="TABLE"):
        if kind == "TABLE":
            return name in self.db.tables
        return self.db.find_object(name, kind)[1] is not None

    def has_primary_key(self, table):
        return any(c.constraint_type == "P" for c in self._get(table).constraints)

    def has_lob_columns(self, table):
        return any(c.data_type in ("CLOB", "BLOB", "NCLOB") for c in self._get(table).columns)

    def get_table_info(self, table):
        if table.name not in self.db.tables:
            return None
        fake = self._get(table)
        return TableInfo(tablespace_name=fake.tablespace, partitioned=fake.partitioned)

    def list_columns(self, table):
        return list(self._get(table).columns)

    def list_constraints(self, table):
        return list(self._get(table).constraints)

    def list_indexes(self, table, include_constraint_indexes=False):
        indexes = self._get(table).indexes
        if include_constraint_indexes:
            return list(indexes)
        return [i for i in indexes if not getattr(i, "constraint_index", False)]

    def list_triggers(self, table):
        return list(self._get(table).triggers)

    def count_rows(self, table):
        return self._get(table).rows

    def current_timestamp(self):
        return self.db_time


class RecordingAuditSink(AuditSink):
    """감사 이벤트 수집 싱크"""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def by_kind(self, error_kind: str) -> list:
        return [e for e in self.events if e.error_kind == error_kind]

    def by_level(self, level: str) -> list:
        return [e for e in self.events if e.level == level]

    def by_action(self, action: str) -> list:
        return [e for e in self.events if e.action == action]


def sales_columns() -> list[ColumnInfo]:
    """표준 테스트 테이블 컬럼"""
    return [
        ColumnInfo("ID", "NUMBER", data_precision=10, data_scale=0, nullable=False),
        ColumnInfo("SALE_DATE", "DATE", nullable=False),
        ColumnInfo("REGION", "VARCHAR2", data_length=10),
        ColumnInfo("AMOUNT", "NUMBER", data_precision=12, data_scale=2),
        ColumnInfo("UPDATED_AT", "TIMESTAMP(6)", data_default="SYSTIMESTAMP"),
    ]


# ---------------------------------------------------------------------------
# 픽스처
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_app_paths(tmp_path):
    """앱 데이터 경로를 테스트 임시 디렉토리로 격리 (자동 적용)"""
    AppPaths.set_custom_root(tmp_path / "app_data")
    yield tmp_path / "app_data"
    AppPaths.set_custom_root(None)


@pytest.fixture(autouse=True)
def mock_default_audit_sink():
    """기본 감사 싱크 대신 수집 싱크 사용 (DB 로그 스레드 생성 방지)"""
    sink = RecordingAuditSink()
    with patch("partition_redefine.utils.enhanced_logger.get_audit_sink", return_value=sink):
        yield sink


@pytest.fixture(scope="function")
def temp_db():
    """임시 테스트 데이터베이스 픽스처"""
    temp_fd, temp_path = tempfile.mkstemp(suffix=".db")

    test_db = LocalDatabase(db_path=temp_path)
    try:
        test_db.engine = create_engine(f"sqlite:///{temp_path}", echo=False)
        Base.metadata.create_all(test_db.engine)
        test_db.Session = sessionmaker(bind=test_db.engine)

        yield test_db

    finally:
        if test_db.engine:
            test_db.engine.dispose()
        os.close(temp_fd)
        os.unlink(temp_path)


@pytest.fixture
def sample_profile_data():
    """샘플 프로필 데이터"""
    return {
        "name": "Test Profile",
        "connection_config": {
            "host": "db.example.com",
            "port": 1521,
            "service_name": "ORCLPDB1",
            "username": "app_owner",
            "password": "app_secret",
        },
    }


@pytest.fixture
def fake_db():
    """PK와 인덱스 하나를 가진 APP.SALES 테이블이 있는 시뮬레이터"""
    db = FakeOracle()
    db.add_table(
        "SALES",
        columns=sales_columns(),
        constraints=[ConstraintInfo("SALES_PK", "P", ["ID"])],
        indexes=[IndexInfo("SALES_DATE_IX", ["SALE_DATE"])],
        rows=1200,
    )
    return db


@pytest.fixture
def executor(fake_db):
    return FakeExecutor(fake_db)


@pytest.fixture
def catalog(fake_db):
    return FakeCatalog(fake_db)


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def sleeps():
    """잠금 재시도 대기 호출 기록"""
    return []


@pytest.fixture
def orchestrator(executor, catalog, audit_sink, sleeps):
    return ConversionOrchestrator(
        executor,
        catalog,
        audit_sink=audit_sink,
        config=EngineConfig(lock_retry_delay_seconds=0.5),
        sleep=sleeps.append,
    )


@pytest.fixture
def sales():
    return TableId(OWNER, "SALES")
