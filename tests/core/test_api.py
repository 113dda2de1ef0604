"""
api.py 테스트 - 호출 인터페이스와 대표 시나리오
"""

import pytest

from partition_redefine import (
    BoundaryDefinition,
    ConversionOptions,
    PartitionMethod,
    PartitionSpec,
    Strategy,
    TableId,
)
from partition_redefine.core import api
from partition_redefine.core.conversion_run import RunState
from partition_redefine.core.errors import GenerationFailure
from partition_redefine.core.interfaces import ConstraintInfo, IndexInfo
from tests.conftest import FakeCatalog, FakeExecutor, FakeOracle, sales_columns

P = BoundaryDefinition.partition
S = BoundaryDefinition.subpartition

RANGE_SPEC = PartitionSpec.single_level(PartitionMethod.RANGE, ["SALE_DATE"])
QUARTERS = [P("P2024Q1", "DATE '2024-04-01'"), P("P2024Q2", "DATE '2024-07-01'")]
RANGE_HASH = PartitionSpec.composite(
    PartitionMethod.RANGE, ["SALE_DATE"], PartitionMethod.HASH, ["ID"]
)


class TestScenarios:
    """대표 변환 시나리오"""

    def test_range_with_primary_key(self, executor, catalog, fake_db, sales, audit_sink):
        """시나리오 A: PK가 있는 테이블의 RANGE 변환"""
        # Given
        assert api.is_online_capable(sales, RANGE_SPEC, catalog) is True

        # When
        ok = api.convert_to_single_level(
            sales, RANGE_SPEC, QUARTERS, executor, catalog, audit_sink=audit_sink
        )

        # Then
        assert ok is True
        assert fake_db.table("SALES").partitions == ["P2024Q1", "P2024Q2"]
        assert fake_db.table("SALES_OLD").rows == 1200
        assert audit_sink.by_action("cutover")[-1].level == "INFO"

    def test_no_primary_key_runs_offline(self, audit_sink):
        """시나리오 B: PK 없는 테이블은 OFFLINE으로 변환되고 증분 동기화 없음"""
        # Given
        db = FakeOracle()
        db.add_table("EVENTS", columns=sales_columns(), rows=300)
        executor, catalog = FakeExecutor(db), FakeCatalog(db)
        table = TableId("APP", "EVENTS")

        # When
        capable = api.is_online_capable(table, RANGE_SPEC, catalog)
        run = api.run_conversion(table, RANGE_SPEC, QUARTERS, executor, catalog,
                                 audit_sink=audit_sink)

        # Then
        assert capable is False
        assert run.success is True
        assert run.strategy == Strategy.OFFLINE
        assert not [o for o in run.outcomes if o.step == "sync"]
        assert executor.executed("ALTER TABLE APP.EVENTS READ ONLY")
        assert db.table("EVENTS").rows == 300

    def test_orphan_subpartition_fails_before_any_ddl(self, executor, catalog, sales, audit_sink):
        """시나리오 C: 파티션보다 먼저 나온 서브파티션은 생성 실패, DDL 미실행"""
        boundaries = [S("ORPHAN_S1"), P("P1", "MAXVALUE")]

        with pytest.raises(GenerationFailure):
            api.generate_partition_ddl(RANGE_HASH, boundaries)

        ok = api.convert_to_composite(
            sales, RANGE_HASH, boundaries, executor, catalog, audit_sink=audit_sink
        )

        assert ok is False
        assert executor.statements == []
        assert audit_sink.by_kind("GenerationFailure")[0].object_name == "ORPHAN_S1"

    def test_duplicate_index_name_is_isolated(self, audit_sink):
        """시나리오 D: 인덱스 3개 중 1개 이름 충돌 → 경고 1건, 나머지 2개는 생성"""
        # Given
        db = FakeOracle()
        db.add_table(
            "SALES",
            columns=sales_columns(),
            constraints=[ConstraintInfo("SALES_PK", "P", ["ID"])],
            indexes=[
                IndexInfo("IX_A", ["REGION"]),
                IndexInfo("IX_B", ["AMOUNT"]),
                IndexInfo("IX_C", ["SALE_DATE"]),
            ],
            rows=10,
        )
        db.add_table("LEGACY", indexes=[IndexInfo("IX_B_NEW", ["X"])])
        executor, catalog = FakeExecutor(db), FakeCatalog(db)
        table = TableId("APP", "SALES")

        # When
        ok = api.convert_to_single_level(
            table, RANGE_SPEC, QUARTERS, executor, catalog, audit_sink=audit_sink
        )
        outcomes = api.cleanup_names(table, executor, catalog, audit_sink=audit_sink)

        # Then
        assert ok is True
        failures = audit_sink.by_kind("DependentObjectCopyFailure")
        assert len(failures) == 1
        assert failures[0].object_name == "IX_B_NEW"
        assert all(o.ok for o in outcomes)
        names = {i.name for i in db.table("SALES").indexes}
        assert {"IX_A", "IX_C", "SALES_PK"} <= names
        assert "IX_B" not in names
        retired = {i.name for i in db.table("SALES_OLD").indexes}
        assert {"IX_A_OLD", "IX_B", "IX_C_OLD", "SALES_PK_OLD"} == retired

        # 두 번째 정리는 변경 없음
        assert api.cleanup_names(table, executor, catalog, audit_sink=audit_sink) == []


class TestEntryPoints:
    """진입점 검증 테스트"""

    def test_single_level_rejects_composite_spec(self, executor, catalog, sales, audit_sink):
        """명세 종류 불일치는 예외 없이 False와 error 감사 1건"""
        # When
        ok = api.convert_to_single_level(
            sales, RANGE_HASH, QUARTERS, executor, catalog, audit_sink=audit_sink
        )

        # Then
        assert ok is False
        assert executor.statements == []
        errors = audit_sink.by_level("ERROR")
        assert len(errors) == 1
        assert errors[0].error_kind == "InvalidSpecification"
        assert errors[0].table == "APP.SALES"

    def test_composite_rejects_single_level_spec(self, executor, catalog, sales, audit_sink):
        ok = api.convert_to_composite(
            sales, RANGE_SPEC, QUARTERS, executor, catalog, audit_sink=audit_sink
        )

        assert ok is False
        assert len(audit_sink.by_kind("InvalidSpecification")) == 1
        assert executor.statements == []

    def test_convert_to_composite(self, executor, catalog, fake_db, sales, audit_sink):
        boundaries = [P("P1", "DATE '2024-04-01'"), S("P1_H1"), S("P1_H2"), P("PMAX", "MAXVALUE")]

        ok = api.convert_to_composite(sales, RANGE_HASH, boundaries, executor, catalog,
                                      audit_sink=audit_sink)

        assert ok is True
        assert fake_db.table("SALES").subpartitions == ["P1_H1", "P1_H2"]

    def test_single_to_composite_requires_partitioned_source(
        self, executor, catalog, sales, audit_sink
    ):
        ok = api.convert_single_to_composite(
            sales, RANGE_HASH, QUARTERS, executor, catalog, audit_sink=audit_sink
        )

        assert ok is False
        assert audit_sink.by_kind("PreconditionFailure")
        assert executor.statements == []

    def test_single_to_composite(self, executor, catalog, fake_db, sales, audit_sink):
        fake_db.table("SALES").partitioned = True
        fake_db.table("SALES").partitions = ["P_ALL"]

        ok = api.convert_single_to_composite(
            sales, RANGE_HASH, QUARTERS, executor, catalog,
            options=ConversionOptions(strategy=Strategy.OFFLINE), audit_sink=audit_sink,
        )

        assert ok is True
        assert fake_db.table("SALES_OLD").partitions == ["P_ALL"]

    def test_single_to_composite_rejects_single_level_spec(self, executor, catalog, sales, audit_sink):
        ok = api.convert_single_to_composite(
            sales, RANGE_SPEC, QUARTERS, executor, catalog, audit_sink=audit_sink
        )

        assert ok is False
        assert audit_sink.by_level("ERROR")[0].error_kind == "InvalidSpecification"

    def test_run_conversion_returns_run(self, executor, catalog, sales, audit_sink):
        run = api.run_conversion(sales, RANGE_SPEC, QUARTERS, executor, catalog,
                                 audit_sink=audit_sink)

        assert run.state == RunState.DONE
        assert run.table == sales
        assert run.layout_ddl.startswith("PARTITION BY RANGE (SALE_DATE) (")

    def test_generate_partition_ddl(self):
        ddl = api.generate_partition_ddl(
            PartitionSpec.single_level(PartitionMethod.LIST, ["REGION"]),
            [P("P_EAST", "'EAST'"), P("P_WEST", "'WEST'")],
        )

        assert ddl == (
            "PARTITION BY LIST (REGION) (\n"
            "    PARTITION P_EAST VALUES ('EAST'),\n"
            "    PARTITION P_WEST VALUES ('WEST')\n"
            ")"
        )

    def test_is_online_capable_never_raises(self, sales):
        class BrokenCatalog(FakeCatalog):
            def has_primary_key(self, table):
                raise RuntimeError("ORA-12541: no listener")

        assert api.is_online_capable(sales, RANGE_SPEC, BrokenCatalog(FakeOracle())) is False
