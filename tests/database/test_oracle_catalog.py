"""oracle_catalog.py 단위 테스트 (oracledb 연결은 모의 객체 사용)"""

from datetime import datetime
from unittest.mock import MagicMock

import oracledb
import pytest

from partition_redefine.core.object_replicator import column_definition
from partition_redefine.core.partition_types import TableId
from partition_redefine.database.catalog_sql import COLUMN_SQL
from partition_redefine.database.oracle_catalog import (
    OracleCatalogReader,
    detect_version,
    read_lob,
)
from partition_redefine.database.version_info import OraVersionFamily, parse_version_string

TABLE = TableId("app", "sales")


class FakeLob:
    """oracledb LOB 흉내 (read() 제공)"""

    def __init__(self, text):
        self.text = text

    def read(self):
        return self.text


class ScriptedConnection:
    """SQL 조각별로 결과 행을 돌려주는 연결

    responses: (SQL 조각, 바인드 조건 또는 None, 행 목록)
    """

    def __init__(self, responses, version="19.21.0.0.0"):
        self.responses = responses
        self.version = version
        self.executed = []

    def cursor(self):
        return ScriptedCursor(self)


class ScriptedCursor:
    def __init__(self, connection):
        self.connection = connection
        self.rows = []

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def execute(self, sql, binds=None):
        binds = binds or {}
        self.connection.executed.append((sql, binds))
        for fragment, expected, rows in self.connection.responses:
            if fragment not in sql:
                continue
            if expected and any(binds.get(k) != v for k, v in expected.items()):
                continue
            self.rows = list(rows)
            return
        self.rows = []

    def fetchall(self):
        return self.rows

    def fetchone(self):
        return self.rows[0] if self.rows else None


def reader(responses, version="19.21.0.0.0"):
    connection = ScriptedConnection(responses, version)
    return OracleCatalogReader(connection), connection


class TestReadLob:
    """LOB 읽기 테스트"""

    def test_lob_object(self):
        assert read_lob(FakeLob("  SYSDATE \n")) == "SYSDATE"

    def test_plain_string(self):
        assert read_lob("'N' ") == "'N'"

    def test_none(self):
        assert read_lob(None) is None


class TestDetectVersion:
    """버전 감지 테스트"""

    def test_driver_version_preferred(self):
        connection = MagicMock()
        connection.version = "19.21.0.0.0"

        info = detect_version(connection)

        assert info.family == OraVersionFamily.ORA_19C
        connection.cursor.assert_not_called()

    def test_banner_fallback(self):
        connection = MagicMock()
        connection.version = None
        cursor = connection.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = (
            "Oracle Database 11g Enterprise Edition Release 11.2.0.4.0 - 64bit Production",
        )

        info = detect_version(connection)

        assert info.family == OraVersionFamily.ORA_11G
        assert "v$version" in cursor.execute.call_args[0][0]

    def test_failure_returns_unknown(self):
        connection = MagicMock()
        connection.version = None
        cursor = connection.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = oracledb.DatabaseError("ORA-00942: table or view does not exist")

        info = detect_version(connection)

        assert info.family == OraVersionFamily.UNKNOWN
        assert info.identifier_max_length == 30


class TestTableQueries:
    """테이블 단위 조회 테스트"""

    def test_binds_are_uppercased(self):
        catalog, connection = reader([("all_tables", {"o": "APP", "t": "SALES"}, [(1,)])])

        assert catalog.table_exists(TABLE) is True
        assert connection.executed[-1][1] == {"o": "APP", "t": "SALES"}

    def test_table_missing(self):
        catalog, _ = reader([("SELECT COUNT(*) FROM all_tables", None, [(0,)])])

        assert catalog.table_exists(TABLE) is False
        assert catalog.get_table_info(TABLE) is None

    def test_table_info(self):
        catalog, _ = reader([("tablespace_name, partitioned", None, [("USERS", "YES")])])

        info = catalog.get_table_info(TABLE)

        assert info.tablespace_name == "USERS"
        assert info.partitioned is True

    def test_primary_key_and_lob_checks(self):
        catalog, _ = reader([
            ("constraint_type = 'P'", None, [(1,)]),
            ("'CLOB', 'NCLOB'", None, [(0,)]),
        ])

        assert catalog.has_primary_key(TABLE) is True
        assert catalog.has_lob_columns(TABLE) is False

    @pytest.mark.parametrize(
        "kind, view",
        [("TABLE", "all_objects"), ("INDEX", "all_indexes"),
         ("CONSTRAINT", "all_constraints"), ("TRIGGER", "all_triggers")],
    )
    def test_object_exists_uses_kind_namespace(self, kind, view):
        catalog, connection = reader([(view, {"n": "SALES_NEW"}, [(1,)])])

        assert catalog.object_exists("app", "sales_new", kind) is True
        sql, binds = connection.executed[-1]
        assert view in sql
        assert binds == {"o": "APP", "n": "SALES_NEW"}

    def test_count_rows(self):
        catalog, connection = reader([("SELECT COUNT(*) FROM APP.SALES", None, [(1200,)])])

        assert catalog.count_rows(TableId("APP", "SALES")) == 1200

    def test_current_timestamp_from_server(self):
        """변경분 기준 시점은 DB 서버 시계에서 조회"""
        server_time = datetime(2024, 5, 1, 12, 0, 0, 250000)
        catalog, connection = reader([("SYSTIMESTAMP", None, [(server_time,)])])

        assert catalog.current_timestamp() == server_time
        assert "FROM dual" in connection.executed[-1][0]

    def test_database_errors_propagate(self):
        connection = MagicMock()
        connection.version = "19.3.0.0.0"
        cursor = connection.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = oracledb.DatabaseError("ORA-03113: end-of-file")
        catalog = OracleCatalogReader(connection)

        with pytest.raises(oracledb.DatabaseError):
            catalog.has_primary_key(TABLE)


class TestColumns:
    """컬럼 조회 테스트"""

    ROWS = [
        ("ID", "NUMBER", 22, 10, 0, "N", None, "NO", 0, None),
        ("UPDATED_AT", "TIMESTAMP(6)", 11, None, 6, "Y", FakeLob("SYSTIMESTAMP "), "NO", 0, None),
        ("TAX", "NUMBER", 22, None, None, "Y", FakeLob('"AMOUNT"*0.1'), "YES", 0, None),
        ("NOTE", "NVARCHAR2", 3000, None, None, "Y", None, "NO", 1500, "C"),
        ("CODE", "VARCHAR2", 4000, None, None, "Y", None, "NO", 1000, "C"),
    ]

    def test_list_columns(self):
        catalog, _ = reader([("all_tab_cols", None, self.ROWS)])

        columns = catalog.list_columns(TABLE)

        assert [c.name for c in columns] == ["ID", "UPDATED_AT", "TAX", "NOTE", "CODE"]
        assert columns[0].nullable is False
        assert columns[0].data_precision == 10
        assert columns[1].data_default == "SYSTIMESTAMP"
        assert columns[2].virtual is True
        assert columns[2].data_default == '"AMOUNT"*0.1'
        assert columns[0].char_length is None

    def test_character_widths_use_char_length(self):
        """DATA_LENGTH(바이트)가 아닌 CHAR_LENGTH로 섀도 컬럼 타입 생성"""
        catalog, _ = reader([("all_tab_cols", None, self.ROWS)])

        note, code = catalog.list_columns(TABLE)[3:]

        assert column_definition(note) == "NOTE NVARCHAR2(1500)"
        assert column_definition(code) == "CODE VARCHAR2(1000 CHAR)"

    def test_column_sql_follows_version(self):
        catalog_11, connection_11 = reader([("all_tab_cols", None, [])], version="11.2.0.4.0")
        catalog_19, connection_19 = reader([("all_tab_cols", None, [])])

        catalog_11.list_columns(TABLE)
        catalog_19.list_columns(TABLE)

        assert connection_11.executed[-1][0] == COLUMN_SQL["11g"]
        assert connection_19.executed[-1][0] == COLUMN_SQL["12c"]

    def test_explicit_version_info(self):
        connection = ScriptedConnection([("all_tab_cols", None, [])], version=None)

        catalog = OracleCatalogReader(connection, parse_version_string("12.2.0.1.0"))
        catalog.list_columns(TABLE)

        assert "user_generated" in connection.executed[-1][0]


class TestConstraints:
    """제약조건 조회 테스트"""

    def test_not_null_checks_skipped(self):
        catalog, _ = reader([
            ("c.search_condition", None, [
                ("SYS_C0012345", "C", FakeLob('"ID" IS NOT NULL'), None, None, "GENERATED NAME"),
                ("AMOUNT_CK", "C", FakeLob("AMOUNT >= 0"), None, None, "USER NAME"),
                ("SALES_PK", "P", None, None, None, "USER NAME"),
            ]),
            ("all_cons_columns", {"n": "SALES_PK"}, [("ID",)]),
            ("all_cons_columns", {"n": "AMOUNT_CK"}, [("AMOUNT",)]),
        ])

        constraints = catalog.list_constraints(TABLE)

        assert [c.name for c in constraints] == ["AMOUNT_CK", "SALES_PK"]
        assert constraints[0].condition == "AMOUNT >= 0"
        assert constraints[1].columns == ["ID"]
        assert constraints[1].condition is None

    def test_user_named_not_null_check_kept(self):
        """이름을 지정한 CHECK (col IS NOT NULL)은 복제 대상"""
        catalog, _ = reader([
            ("c.search_condition", None, [
                ("REGION_NN", "C", FakeLob("REGION IS NOT NULL"), None, None, "USER NAME"),
            ]),
            ("all_cons_columns", {"n": "REGION_NN"}, [("REGION",)]),
        ])

        constraints = catalog.list_constraints(TABLE)

        assert [c.name for c in constraints] == ["REGION_NN"]
        assert constraints[0].condition == "REGION IS NOT NULL"

    def test_referential_constraint_target(self):
        catalog, _ = reader([
            ("c.search_condition", None, [("SALES_CUST_FK", "R", None, "CRM", "CUSTOMERS_PK", "USER NAME")]),
            ("all_cons_columns", {"o": "APP", "n": "SALES_CUST_FK"}, [("CUST_ID",)]),
            ("all_cons_columns", {"o": "CRM", "n": "CUSTOMERS_PK"}, [("ID",)]),
            ("SELECT table_name FROM all_constraints", {"n": "CUSTOMERS_PK"}, [("CUSTOMERS",)]),
        ])

        fk = catalog.list_constraints(TABLE)[0]

        assert fk.columns == ["CUST_ID"]
        assert fk.ref_owner == "CRM"
        assert fk.ref_table == "CUSTOMERS"
        assert fk.ref_columns == ["ID"]


class TestIndexes:
    """인덱스 조회 테스트"""

    RESPONSES = [
        ("SELECT index_name FROM all_constraints", None, [("SALES_PK",)]),
        ("FROM all_indexes", None, [
            ("SALES_PK", "NORMAL", "UNIQUE", "USERS"),
            ("SALES_REGION_FX", "FUNCTION-BASED NORMAL", "NONUNIQUE", "TS_IDX"),
            ("SALES_DATE_IX", "NORMAL", "NONUNIQUE", None),
        ]),
        ("all_ind_expressions", {"n": "SALES_REGION_FX"}, [(FakeLob('UPPER("REGION")'), 1)]),
        ("all_ind_columns", {"n": "SALES_REGION_FX"}, [("SYS_NC00007$", 1, "ASC"), ("ID", 2, "ASC")]),
        ("all_ind_columns", {"n": "SALES_DATE_IX"}, [("SALE_DATE", 1, "DESC")]),
        ("all_ind_columns", {"n": "SALES_PK"}, [("ID", 1, "ASC")]),
    ]

    def test_constraint_indexes_excluded(self):
        catalog, _ = reader(self.RESPONSES)

        indexes = catalog.list_indexes(TABLE)

        assert [i.name for i in indexes] == ["SALES_REGION_FX", "SALES_DATE_IX"]

    def test_constraint_indexes_included(self):
        catalog, _ = reader(self.RESPONSES)

        indexes = catalog.list_indexes(TABLE, include_constraint_indexes=True)

        assert [i.name for i in indexes] == ["SALES_PK", "SALES_REGION_FX", "SALES_DATE_IX"]
        assert indexes[0].is_unique is True

    def test_function_based_and_descending_columns(self):
        catalog, _ = reader(self.RESPONSES)

        fx, date_ix = catalog.list_indexes(TABLE)

        assert fx.columns == ['UPPER("REGION")', "ID"]
        assert fx.tablespace_name == "TS_IDX"
        assert date_ix.columns == ["SALE_DATE DESC"]


class TestTriggers:
    """트리거 조회 테스트"""

    def test_list_triggers(self):
        catalog, _ = reader([
            ("FROM all_triggers", None, [
                ("SALES_BIU", '"APP"."SALES_BIU" BEFORE INSERT ON "APP"."SALES"\nFOR EACH ROW\n',
                 "NEW.AMOUNT > 0", FakeLob("BEGIN\n  NULL;\nEND;\n")),
                ("SALES_AI", "SALES_AI AFTER INSERT ON SALES", None, "BEGIN NULL; END;"),
            ]),
        ])

        triggers = catalog.list_triggers(TABLE)

        assert triggers[0].description.endswith("FOR EACH ROW")
        assert triggers[0].when_clause == "NEW.AMOUNT > 0"
        assert triggers[0].body == "BEGIN\n  NULL;\nEND;"
        assert triggers[1].when_clause is None
