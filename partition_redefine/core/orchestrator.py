"""
파티션 재정의 오케스트레이터

원본 테이블을 새 파티션 구조의 섀도 테이블로 옮긴 뒤 이름을 교체합니다.

    INIT → SHADOW_CREATED → DEPENDENTS_COPIED → BULK_LOADED → CONVERGED → CUTOVER → DONE
    (이름 정리는 cleanup_names로 별도 호출)

실패 처리:
- 섀도 생성/대량 적재 실패: 치명적 (섀도 테이블은 남겨 둠)
- 종속 객체 복제, 증분 동기화, 제약조건 검증, 이름 정리: 객체 단위 경고 후 계속
- 컷오버 실패: 치명적, critical 감사 후 호출자에게 재발생 (롤백/재시도 없음)
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from .capability import CapabilityEvaluator
from .config import EngineConfig
from .conversion_options import ConversionOptions, Strategy
from .conversion_run import ConversionRun, RunState, StepOutcome
from .ddl_generator import generate
from .errors import (
    CleanupFailure,
    ConstraintValidationFailure,
    ConversionError,
    ConvergenceIncomplete,
    CutoverFailure,
    DependentObjectCopyFailure,
    InvalidSpecification,
    LoadFailure,
    PreconditionFailure,
)
from .interfaces import AuditEvent, AuditSink, CatalogReader, StatementExecutor, StatementResult
from .object_replicator import (
    ObjectReplicator,
    names_by_kind,
    rename_statement,
    strip_suffix,
    suffixed_name,
)
from .partition_types import BoundaryDefinition, PartitionMethod, PartitionSpec, TableId

logger = logging.getLogger(__name__)

# INSERT ... SELECT로 복사할 수 없는 컬럼 타입
UNCOPYABLE_TYPES = {"LONG", "LONG RAW"}


class ConversionCancelled(Exception):
    """단계 사이에서 취소 요청이 확인됨"""


class ConversionOrchestrator:
    """파티션 재정의 오케스트레이터

    단일 제어 흐름으로 동작하며 스레드를 만들지 않습니다.
    취소는 request_cancel()로 요청하며 단계 사이에서만 반영되고,
    컷오버가 시작된 뒤에는 무시됩니다.
    """

    def __init__(
        self,
        executor: StatementExecutor,
        catalog: CatalogReader,
        audit_sink: Optional[AuditSink] = None,
        config: Optional[EngineConfig] = None,
        history_manager=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            executor: SQL 실행기
            catalog: 딕셔너리 조회기
            audit_sink: 감사 이벤트 수신기 (None이면 기본 로거 싱크)
            config: 엔진 설정 (None이면 기본값)
            history_manager: 실행 이력 기록기 (선택)
            sleep: 잠금 재시도 대기 함수
        """
        if audit_sink is None:
            from partition_redefine.utils.enhanced_logger import get_audit_sink

            audit_sink = get_audit_sink()

        self.executor = executor
        self.catalog = catalog
        self.audit_sink = audit_sink
        self.config = config or EngineConfig()
        self.history_manager = history_manager
        self.evaluator = CapabilityEvaluator(catalog)
        self._sleep = sleep

        self.is_running = False
        self._cancel_requested = False
        self._in_cutover = False

    # ------------------------------------------------------------------
    # 공개 메서드
    # ------------------------------------------------------------------

    def request_cancel(self):
        """변환 취소 요청 (컷오버 시작 후에는 무시)"""
        if self._in_cutover:
            logger.warning("컷오버 진행 중에는 취소할 수 없습니다")
            return
        self._cancel_requested = True
        logger.warning("변환 취소 요청")

    def run(
        self,
        table: TableId,
        spec: PartitionSpec,
        boundaries: Sequence[BoundaryDefinition],
        options: Optional[ConversionOptions] = None,
        require_partitioned_source: bool = False,
    ) -> ConversionRun:
        """
        변환 실행 (템플릿 메서드)

        Args:
            table: 원본 테이블
            spec: 목표 파티션 명세
            boundaries: 경계 정의 (입력 순서 유지)
            options: 변환 옵션
            require_partitioned_source: 원본이 이미 파티션 테이블이어야 하는지 여부

        Returns:
            ConversionRun (run.success로 성공 여부 확인)

        Raises:
            CutoverFailure: 이름 교체 실패 (수동 조치 필요)
            Exception: 분류되지 않은 오류 (error 감사 후 재발생)
        """
        run = ConversionRun(table=table)
        self.is_running = True
        self._cancel_requested = False
        self._in_cutover = False

        try:
            self._execute_conversion(run, spec, boundaries, options, require_partitioned_source)

        except ConversionCancelled:
            self._revert_read_only(run, run.table)
            run.finish(RunState.CANCELLED, "사용자 취소")
            self._audit("WARNING", "cancel", f"변환 취소됨 ({run.state.value} 이전 단계에서 중단)", run)

        except CutoverFailure as e:
            self._record(run, StepOutcome.from_error("cutover", e))
            run.finish(RunState.FAILED, str(e))
            self._audit(
                "CRITICAL",
                "cutover",
                f"컷오버 실패 - 수동 조치 필요 (manual intervention required): {e}",
                run,
                error=e,
            )
            self._finish_history(run)
            raise

        except ConversionError as e:
            self._record(run, StepOutcome.from_error(e.step or run.state.value.lower(), e))
            self._revert_read_only(run, run.table)
            run.finish(RunState.FAILED, str(e))
            self._audit("ERROR", e.step or "conversion", f"변환 실패: {e}", run, error=e)

        except Exception as e:
            self._revert_read_only(run, run.table)
            run.finish(RunState.FAILED, f"{type(e).__name__}: {e}")
            self._audit("ERROR", "conversion", f"예상하지 못한 오류: {type(e).__name__}: {e}", run)
            self._finish_history(run)
            raise

        finally:
            self.is_running = False
            self._in_cutover = False

        self._finish_history(run)
        return run

    def cleanup_names(
        self, table: TableId, options: Optional[ConversionOptions] = None
    ) -> List[StepOutcome]:
        """
        컷오버 후 섀도 접미사가 붙은 종속 객체 이름을 원래 이름으로 정리

        원래 이름을 보관 테이블의 객체가 쓰고 있으면 그 객체를 먼저
        보관 접미사 이름으로 바꿉니다. 객체 단위 실패는 건너뛰며,
        다시 호출해도 안전합니다.

        Args:
            table: 컷오버가 끝난 (정식 이름의) 테이블
            options: 변환 때 사용한 옵션 (접미사)

        Returns:
            객체별 처리 결과 목록
        """
        max_length = self.config.identifier_max_length
        try:
            options = (options or ConversionOptions()).resolve(max_length)
        except InvalidSpecification as e:
            self._audit("ERROR", "cleanup", f"이름 정리 불가: {e}", table=table, error=e)
            return [StepOutcome.from_error("cleanup", e)]
        suffix = options.shadow_suffix
        retired = table.renamed(suffixed_name(table.name, options.retired_suffix, max_length))

        outcomes: List[StepOutcome] = []
        current = self._list_dependents(table, outcomes)
        if current is None:
            return outcomes

        try:
            retired_exists = self.catalog.table_exists(retired)
        except Exception as e:
            outcomes.append(self._cleanup_failure(table, retired.name, f"보관 테이블 조회 실패: {e}"))
            return outcomes

        if retired_exists:
            parked = self._list_dependents(retired, outcomes)
            if parked is None:
                return outcomes
        else:
            parked = {kind: [] for kind in current}

        for kind, names in current.items():
            retired_names = {name.upper(): name for name in parked[kind]}
            # 잘린 이름은 보관 테이블의 원래 이름으로 역매핑
            originals = {
                suffixed_name(name, suffix, max_length).upper(): name
                for name in parked[kind]
            }

            for name in names:
                stripped = strip_suffix(name, suffix)
                if stripped is None:
                    continue
                target = originals.get(name.upper(), stripped)
                try:
                    outcome = self._rename_into_place(
                        kind, table, retired, name, target, retired_names, options
                    )
                except Exception as e:
                    # 조회 오류도 객체 단위 실패로 처리
                    outcome = self._cleanup_failure(
                        table, name, f"{kind} {name} 이름 정리 중 오류: {type(e).__name__}: {e}"
                    )
                outcomes.append(outcome)

        renamed = sum(1 for o in outcomes if o.ok)
        failed = sum(1 for o in outcomes if not o.ok)
        self._audit(
            "INFO" if not failed else "WARNING",
            "cleanup",
            f"이름 정리 완료: {table} (변경 {renamed}개, 실패 {failed}개)",
            table=table,
        )
        return outcomes

    # ------------------------------------------------------------------
    # 변환 단계
    # ------------------------------------------------------------------

    def _execute_conversion(self, run, spec, boundaries, options, require_partitioned_source):
        """단계 순서대로 실행"""
        options = self._initialize(run, spec, boundaries, options, require_partitioned_source)

        self._check_cancel()
        self._create_shadow(run, spec, options)

        self._check_cancel()
        self._copy_dependents(run, options)

        self._check_cancel()
        self._bulk_load(run, options)

        self._check_cancel()
        self._converge(run, options)

        self._check_cancel()
        self._validate_dependents(run, options)

        self._check_cancel()
        self._cutover(run)

    def _initialize(self, run, spec, boundaries, options, require_partitioned_source):
        """INIT: 옵션 확정, 이름 결정, DDL 생성, 사전 조건 확인, 세션 설정"""
        max_length = self.config.identifier_max_length
        options = (options or ConversionOptions()).resolve(max_length)
        table = run.table

        run.shadow_name = suffixed_name(table.name, options.shadow_suffix, max_length)
        run.retired_name = suffixed_name(table.name, options.retired_suffix, max_length)
        self._start_history(run)

        replicator = ObjectReplicator(table, options.shadow_suffix, max_length)
        layout_spec = spec
        if spec.partition_method == PartitionMethod.REFERENCE and spec.partition_key:
            # 레이아웃은 섀도에 인라인 선언한 참조 제약조건 이름을 가리킴
            layout_spec = replace(
                spec, partition_key=(replicator.shadow_name_for(spec.partition_key[0]),)
            )
        run.layout_ddl = generate(layout_spec, boundaries)

        self._check_preconditions(run, spec, require_partitioned_source)

        run.strategy = options.strategy
        if run.strategy is None:
            report = self.evaluator.evaluate(table, spec)
            run.strategy = Strategy.ONLINE if report.online_capable else Strategy.OFFLINE
            self._audit(
                "INFO",
                "strategy",
                f"전략 자동 선택: {run.strategy.value} ({', '.join(report.reasons) or '기본키 확인'})",
                run,
            )
        elif run.strategy == Strategy.ONLINE and not self.evaluator.can_convert_online(table, spec):
            self._audit(
                "WARNING",
                "strategy",
                "ONLINE 전략이 지정되었지만 온라인 변환 조건을 만족하지 않습니다",
                run,
            )

        self._audit(
            "INFO",
            "conversion_start",
            f"변환 시작: {table} → {spec.method_label} ({run.strategy.value}), "
            f"섀도={run.shadow_name}, 보관={run.retired_name}",
            run,
        )

        self._setup_session(run, options)
        return options

    def _check_preconditions(self, run, spec, require_partitioned_source):
        """사전 조건 확인 (DDL 실행 전)"""
        table = run.table

        if not self.catalog.table_exists(table):
            raise PreconditionFailure(
                f"원본 테이블이 없습니다: {table}", table=table.qualified, step="precondition"
            )

        for name in (run.shadow_name, run.retired_name):
            if self.catalog.object_exists(table.owner, name, "TABLE"):
                raise PreconditionFailure(
                    f"이름이 이미 사용 중입니다: {table.owner}.{name}",
                    table=table.qualified,
                    object_name=name,
                    step="precondition",
                )

        long_columns = [
            c.name for c in self.catalog.list_columns(table) if c.data_type in UNCOPYABLE_TYPES
        ]
        if long_columns:
            raise PreconditionFailure(
                f"LONG/LONG RAW 컬럼은 복사할 수 없습니다: {', '.join(long_columns)}",
                table=table.qualified,
                step="precondition",
            )

        if require_partitioned_source:
            info = self.catalog.get_table_info(table)
            if info is None or not info.partitioned:
                raise PreconditionFailure(
                    f"원본 테이블이 파티션 테이블이 아닙니다: {table}",
                    table=table.qualified,
                    step="precondition",
                )

        if spec.partition_method == PartitionMethod.REFERENCE:
            if self._reference_constraint(table, spec) is None:
                raise PreconditionFailure(
                    f"참조 제약조건을 찾을 수 없습니다: {spec.partition_key[0]}",
                    table=table.qualified,
                    object_name=spec.partition_key[0],
                    step="precondition",
                )

        self._record(run, StepOutcome(step="precondition", ok=True, message="사전 조건 확인 완료"))

    def _setup_session(self, run, options):
        """세션 설정 (실패해도 계속 진행)"""
        statements = [f"ALTER SESSION SET DDL_LOCK_TIMEOUT = {self.config.ddl_lock_timeout_seconds}"]
        if options.enable_parallel:
            statements.append("ALTER SESSION ENABLE PARALLEL DML")

        for statement in statements:
            result = self.executor.execute(statement)
            if not result.ok:
                self._audit(
                    "WARNING",
                    "session_setup",
                    f"세션 설정 실패: {result.message}",
                    run,
                    code=result.code,
                )

    def _create_shadow(self, run, spec, options):
        """SHADOW_CREATED: 새 파티션 구조의 섀도 테이블 생성 (제약조건 없음)"""
        table = run.table
        replicator = ObjectReplicator(table, options.shadow_suffix, self.config.identifier_max_length)

        reference = None
        if spec.partition_method == PartitionMethod.REFERENCE:
            reference = self._reference_constraint(table, spec)

        statement = replicator.create_shadow_table(
            run.shadow,
            self.catalog.list_columns(table),
            self.catalog.get_table_info(table),
            run.layout_ddl,
            reference_constraint=reference,
        )

        result = self._execute(statement, run, "create_shadow")
        if not result.ok:
            raise LoadFailure(
                f"섀도 테이블 생성 실패: {result.message}",
                table=table.qualified,
                object_name=run.shadow_name,
                code=result.code,
                step="create_shadow",
            )

        self._record(run, StepOutcome(step="create_shadow", ok=True, object_name=run.shadow_name,
                               statement=statement))
        run.advance(RunState.SHADOW_CREATED)
        self._audit("INFO", "create_shadow", f"섀도 테이블 생성 완료: {run.shadow}", run)

    def _copy_dependents(self, run, options):
        """DEPENDENTS_COPIED: 제약조건/인덱스/트리거 복제 (객체 단위 독립)"""
        table = run.table
        replicator = ObjectReplicator(table, options.shadow_suffix, self.config.identifier_max_length)

        if options.copy_constraints:
            for constraint in self._safe_list(run, "copy_constraint", self.catalog.list_constraints):
                statement = replicator.add_constraint(run.shadow, constraint)
                if statement is None:
                    logger.debug(f"복제 대상 아닌 제약조건 건너뜀: {constraint.name}")
                    continue
                new_name = replicator.shadow_name_for(constraint.name)
                if self._copy_object(run, "copy_constraint", new_name, [statement]):
                    run.created_constraints.append(new_name)

        if options.copy_indexes:
            degree = options.parallel_degree if options.enable_parallel else None
            for index in self._safe_list(run, "copy_index", self.catalog.list_indexes):
                statements = replicator.create_index(
                    run.shadow, index, parallel_degree=degree, local=options.local_indexes
                )
                self._copy_object(run, "copy_index", replicator.shadow_name_for(index.name), statements)

        if options.copy_triggers:
            for trigger in self._safe_list(run, "copy_trigger", self.catalog.list_triggers):
                new_name = replicator.shadow_name_for(trigger.name)
                statement = replicator.create_trigger(run.shadow, trigger)
                if self._copy_object(run, "copy_trigger", new_name, [statement]):
                    run.created_triggers.append(new_name)

        failed = len(run.failures(DependentObjectCopyFailure.kind))
        run.advance(RunState.DEPENDENTS_COPIED)
        self._audit(
            "INFO" if not failed else "WARNING",
            "copy_dependents",
            f"종속 객체 복제 완료 (제약조건 {len(run.created_constraints)}개, "
            f"트리거 {len(run.created_triggers)}개, 실패 {failed}개)",
            run,
        )

    def _copy_object(self, run, step, object_name, statements) -> bool:
        """종속 객체 하나 생성 (실패 시 경고 기록 후 False)"""
        for statement in statements:
            result = self._execute(statement, run, step)
            if not result.ok:
                error = DependentObjectCopyFailure(
                    f"{object_name} 생성 실패: {result.message}",
                    table=run.table.qualified,
                    object_name=object_name,
                    code=result.code,
                    step=step,
                )
                self._record(run, StepOutcome.from_error(step, error, statement))
                self._audit("WARNING", step, str(error), run, error=error)
                return False

        self._record(run, StepOutcome(step=step, ok=True, object_name=object_name))
        return True

    def _bulk_load(self, run, options):
        """BULK_LOADED: 직접 경로 INSERT ... SELECT로 전체 행 복사"""
        table = run.table
        replicator = ObjectReplicator(table, options.shadow_suffix, self.config.identifier_max_length)
        columns = self.catalog.list_columns(table)

        if run.strategy == Strategy.OFFLINE and options.offline_read_only:
            statement = f"ALTER TABLE {table.qualified} READ ONLY"
            result = self._execute(statement, run, "bulk_load")
            if not result.ok:
                raise LoadFailure(
                    f"원본 테이블 읽기 전용 전환 실패: {result.message}",
                    table=table.qualified,
                    code=result.code,
                    step="bulk_load",
                )
            run.read_only_applied = True
            self._audit("INFO", "bulk_load", f"원본 테이블 읽기 전용 전환: {table}", run)

        if run.strategy == Strategy.ONLINE and options.change_tracker is not None:
            try:
                options.change_tracker.prepare(run, self.executor, self.catalog)
            except Exception as e:
                logger.warning(f"변경분 추적기 준비 실패: {e}")

        try:
            run.source_rows = self.catalog.count_rows(table)
        except Exception as e:
            logger.warning(f"원본 행 수 조회 실패 ({table}): {e}")

        statement = replicator.bulk_insert(run.shadow, columns, options.parallel_hint)
        started = time.time()
        result = self._execute(statement, run, "bulk_load")
        if not result.ok:
            raise LoadFailure(
                f"데이터 적재 실패: {result.message}",
                table=table.qualified,
                object_name=run.shadow_name,
                code=result.code,
                step="bulk_load",
            )

        run.copied_rows = result.rowcount
        self._record(run, StepOutcome(step="bulk_load", ok=True, object_name=run.shadow_name,
                               rows=result.rowcount))
        run.advance(RunState.BULK_LOADED)

        elapsed = time.time() - started
        self._audit(
            "INFO",
            "bulk_load",
            f"데이터 적재 완료: {run.copied_rows:,}행 ({elapsed:.1f}초, {run.format_speed()})",
            run,
        )

        if run.source_rows is not None and run.source_rows != run.copied_rows:
            self._audit(
                "WARNING",
                "bulk_load",
                f"행 수 불일치: 원본 {run.source_rows:,}행, 복사 {run.copied_rows:,}행",
                run,
            )

    def _converge(self, run, options):
        """CONVERGED: 변경분 동기화 (ONLINE 전용, 실패해도 컷오버 진행)"""
        if run.strategy != Strategy.ONLINE:
            run.converged = True
            run.advance(RunState.CONVERGED)
            return

        tracker = options.change_tracker
        if tracker is None:
            self._convergence_warning(run, "변경분 추적기가 없어 증분 동기화를 건너뜁니다")
            run.advance(RunState.CONVERGED)
            return

        for iteration in range(1, options.max_sync_iterations + 1):
            try:
                rows = tracker.sync(run, iteration)
            except Exception as e:
                self._convergence_warning(
                    run, f"증분 동기화 {iteration}회차 오류: {e}", getattr(e, "code", None)
                )
                run.advance(RunState.CONVERGED)
                return

            run.sync_iterations = iteration
            run.synced_rows += rows
            self._record(run, StepOutcome(step="sync", ok=True, rows=rows,
                                   message=f"{iteration}회차 동기화"))
            self._audit("DEBUG", "sync", f"증분 동기화 {iteration}회차: {rows:,}행", run)

            if rows == 0:
                run.converged = True
                break

        if not run.converged:
            self._convergence_warning(
                run, f"증분 동기화가 {options.max_sync_iterations}회 안에 수렴하지 않았습니다"
            )
        else:
            self._audit("INFO", "sync", f"증분 동기화 수렴 ({run.sync_iterations}회)", run)

        run.advance(RunState.CONVERGED)

    def _convergence_warning(self, run, message, code=None):
        error = ConvergenceIncomplete(message, table=run.table.qualified, code=code, step="sync")
        self._record(run, StepOutcome.from_error("sync", error))
        self._audit("WARNING", "sync", f"{message} - 컷오버를 진행합니다", run, error=error)

    def _validate_dependents(self, run, options):
        """제약조건 ENABLE VALIDATE 및 트리거 활성화 (실패 시 비활성 상태로 남김)"""
        replicator = ObjectReplicator(run.table, options.shadow_suffix, self.config.identifier_max_length)

        if options.validate_constraints:
            for name in run.created_constraints:
                statement = replicator.enable_constraint(run.shadow, name)
                result = self.executor.execute(statement)
                if result.ok:
                    self._record(run, StepOutcome(step="validate_constraint", ok=True, object_name=name))
                    continue
                error = ConstraintValidationFailure(
                    f"제약조건 검증 실패 (비활성 상태로 남음) {name}: {result.message}",
                    table=run.table.qualified,
                    object_name=name,
                    code=result.code,
                    step="validate_constraint",
                )
                self._record(run, StepOutcome.from_error("validate_constraint", error, statement))
                self._audit("WARNING", "validate_constraint", str(error), run, error=error)

        for name in run.created_triggers:
            result = self.executor.execute(replicator.enable_trigger(run.table.owner, name))
            if result.ok:
                self._record(run, StepOutcome(step="enable_trigger", ok=True, object_name=name))
            else:
                error = DependentObjectCopyFailure(
                    f"트리거 활성화 실패 {name}: {result.message}",
                    table=run.table.qualified,
                    object_name=name,
                    code=result.code,
                    step="enable_trigger",
                )
                self._record(run, StepOutcome.from_error("enable_trigger", error))
                self._audit("WARNING", "enable_trigger", str(error), run, error=error)

    def _cutover(self, run):
        """CUTOVER: 원본 → 보관, 섀도 → 원본 이름 교체 (재시도 없음)"""
        self._in_cutover = True
        table = run.table
        owner = table.owner

        first = rename_statement("TABLE", owner, table.name, table.name, run.retired_name)
        result = self.executor.execute(first)
        if not result.ok:
            error = CutoverFailure(
                f"원본 테이블 이름 변경 실패: {result.message}",
                table=table.qualified,
                object_name=table.name,
                code=result.code,
                step="cutover",
            )
            error.first_rename_done = False
            raise error

        second = rename_statement("TABLE", owner, run.shadow_name, run.shadow_name, table.name)
        result = self.executor.execute(second)
        if not result.ok:
            error = CutoverFailure(
                f"섀도 테이블 이름 변경 실패 (원본은 {run.retired_name}으로 변경된 상태): "
                f"{result.message}",
                table=table.qualified,
                object_name=run.shadow_name,
                code=result.code,
                step="cutover",
            )
            error.first_rename_done = True
            raise error

        run.advance(RunState.CUTOVER)
        self._record(run, StepOutcome(step="cutover", ok=True, object_name=table.name))

        self._revert_read_only(run, run.retired)

        run.finish(RunState.DONE)
        stats = run.get_stats()
        self._audit(
            "INFO",
            "cutover",
            f"변환 완료: {table} ({stats['elapsed_time']}, {stats['copied_rows']:,}행)",
            run,
        )

    # ------------------------------------------------------------------
    # 보조 메서드
    # ------------------------------------------------------------------

    def _execute(self, statement: str, run: ConversionRun, step: str) -> StatementResult:
        """잠금 대기 시간 초과 시 재시도하며 실행 (섀도 생성/복제/적재 단계 전용)"""
        attempts = self.config.lock_retry_count + 1
        for attempt in range(1, attempts + 1):
            result = self.executor.execute(statement)
            if result.ok or not self.config.is_lock_timeout(result.code) or attempt == attempts:
                return result

            self._audit(
                "WARNING",
                "lock_retry",
                f"잠금 대기 시간 초과, 재시도 {attempt}/{self.config.lock_retry_count} ({step})",
                run,
                code=result.code,
            )
            self._sleep(self.config.lock_retry_delay_seconds)

        return result

    def _check_cancel(self):
        if self._cancel_requested:
            raise ConversionCancelled()

    def _reference_constraint(self, table, spec):
        """REFERENCE 파티셔닝에 쓰일 참조 제약조건 조회"""
        for constraint in self.catalog.list_constraints(table):
            if constraint.constraint_type != "R":
                continue
            if constraint.name.upper() == spec.partition_key[0].upper():
                return constraint
        return None

    def _safe_list(self, run, step, lister):
        """종속 객체 목록 조회 (실패 시 경고 후 빈 목록)"""
        try:
            return lister(run.table)
        except Exception as e:
            error = DependentObjectCopyFailure(
                f"종속 객체 목록 조회 실패: {e}", table=run.table.qualified, step=step
            )
            self._record(run, StepOutcome.from_error(step, error))
            self._audit("WARNING", step, str(error), run, error=error)
            return []

    def _revert_read_only(self, run, target: TableId):
        """읽기 전용 전환 되돌리기 (best-effort)"""
        if not run.read_only_applied:
            return

        result = self.executor.execute(f"ALTER TABLE {target.qualified} READ WRITE")
        if result.ok:
            run.read_only_applied = False
            self._audit("INFO", "read_write", f"읽기 전용 해제: {target}", run)
        else:
            self._audit(
                "WARNING",
                "read_write",
                f"읽기 전용 해제 실패 ({target}): {result.message}",
                run,
                code=result.code,
            )

    def _list_dependents(self, table, outcomes):
        try:
            return names_by_kind(
                self.catalog.list_constraints(table),
                self.catalog.list_indexes(table, include_constraint_indexes=True),
                self.catalog.list_triggers(table),
            )
        except Exception as e:
            error = CleanupFailure(f"종속 객체 목록 조회 실패: {e}", table=table.qualified, step="cleanup")
            outcomes.append(StepOutcome.from_error("cleanup", error))
            self._audit("WARNING", "cleanup", str(error), table=table, error=error)
            return None

    def _rename_into_place(self, kind, table, retired, name, target, retired_names, options):
        """객체 하나를 원래 이름으로 변경 (필요 시 보관 테이블 객체를 먼저 비켜 줌)"""
        max_length = self.config.identifier_max_length

        holder = retired_names.get(target.upper())
        if holder is not None:
            parked_name = suffixed_name(holder, options.retired_suffix, max_length)
            statement = rename_statement(kind, table.owner, retired.name, holder, parked_name)
            result = self.executor.execute(statement)
            if not result.ok:
                return self._cleanup_failure(
                    table, name, f"보관 테이블 객체 {holder} 이름 변경 실패: {result.message}",
                    result.code, statement,
                )
            del retired_names[target.upper()]
            self._audit("DEBUG", "cleanup", f"{kind} {holder} → {parked_name} (보관 테이블)", table=table)

        elif self.catalog.object_exists(table.owner, target, kind):
            return self._cleanup_failure(table, name, f"이름이 이미 사용 중입니다: {target}")

        statement = rename_statement(kind, table.owner, table.name, name, target)
        result = self.executor.execute(statement)
        if not result.ok:
            return self._cleanup_failure(
                table, name, f"{kind} {name} 이름 변경 실패: {result.message}", result.code, statement
            )

        self._audit("DEBUG", "cleanup", f"{kind} {name} → {target}", table=table, object_name=name)
        return StepOutcome(step="cleanup", ok=True, object_name=target, statement=statement)

    def _cleanup_failure(self, table, name, message, code=None, statement=None) -> StepOutcome:
        error = CleanupFailure(message, table=table.qualified, object_name=name, code=code, step="cleanup")
        self._audit("WARNING", "cleanup", f"{error} - 건너뜀", table=table, error=error)
        return StepOutcome.from_error("cleanup", error, statement)

    def _audit(
        self,
        level: str,
        action: str,
        message: str,
        run: Optional[ConversionRun] = None,
        error: Optional[ConversionError] = None,
        table: Optional[TableId] = None,
        object_name: Optional[str] = None,
        code: Optional[int] = None,
    ):
        """감사 이벤트 전송 (싱크 오류는 로깅만 하고 무시)"""
        target = table or (run.table if run else None)
        event = AuditEvent(
            level=level,
            action=action,
            message=message,
            table=target.qualified if target else None,
            object_name=object_name or (error.object_name if error else None),
            error_kind=error.kind if error else None,
            code=code if code is not None else (error.code if error else None),
        )
        try:
            self.audit_sink.emit(event)
        except Exception as e:
            logger.error(f"감사 이벤트 전송 실패 ({action}): {e}")
            logger.log(logging.getLevelName(level), message)

    def _start_history(self, run):
        if self.history_manager is None:
            return
        try:
            run.history_id = self.history_manager.create_history(run)
        except Exception as e:
            logger.warning(f"변환 이력 생성 실패: {e}")

    def _record(self, run, outcome: StepOutcome) -> StepOutcome:
        """단계 결과 기록 (이력 기록기가 있으면 함께 저장)"""
        run.record(outcome)
        if self.history_manager is None or run.history_id is None:
            return outcome
        try:
            self.history_manager.add_step(run.history_id, outcome)
        except Exception as e:
            logger.warning(f"단계 이력 기록 실패: {e}")
        return outcome

    def _finish_history(self, run):
        if self.history_manager is None or run.history_id is None:
            return
        try:
            self.history_manager.complete_history(run.history_id, run)
        except Exception as e:
            logger.warning(f"변환 이력 완료 처리 실패: {e}")
