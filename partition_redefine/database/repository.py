"""리포지토리 패턴

CRUD 공통 로직을 제공하는 베이스 리포지토리와
변환 이력/단계 결과 전용 리포지토리를 정의합니다.
"""

from contextlib import contextmanager
from typing import Generic, Iterable, Optional, TypeVar

from .local_db import ConversionHistory, ConversionStep, get_db

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """CRUD 공통 로직을 제공하는 베이스 리포지토리

    반환하는 엔티티는 세션에서 분리(expunge)된 상태이므로
    세션이 닫힌 뒤에도 속성을 읽을 수 있습니다.

    Args:
        model_class: SQLAlchemy 모델 클래스
        db: 데이터베이스 인스턴스 (테스트용 주입 가능)

    Examples:
        >>> from partition_redefine.database.repository import HistoryRepository
        >>> repo = HistoryRepository()
        >>> history = repo.create(owner="SALES", table_name="ORDERS", status="running")
    """

    def __init__(self, model_class: type[T], db=None):
        self.model_class = model_class
        self.db = db or get_db()

    @contextmanager
    def _session_scope(self):
        with self.db.session_scope() as session:
            yield session

    def _detach(self, session, objs):
        for obj in objs:
            session.expunge(obj)
        return objs

    # CREATE
    def create(self, **kwargs) -> T:
        """엔티티 생성 후 ID가 채워진 분리 객체 반환"""
        with self._session_scope() as session:
            obj = self.model_class(**kwargs)
            session.add(obj)
            session.flush()  # ID 생성
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def create_many(self, rows: Iterable[dict]) -> int:
        """여러 엔티티를 한 트랜잭션으로 생성

        Returns:
            생성한 개수
        """
        with self._session_scope() as session:
            objs = [self.model_class(**row) for row in rows]
            session.add_all(objs)
            return len(objs)

    # READ
    def get_by_id(self, id: int) -> Optional[T]:
        return self.get_one_by(id=id)

    def get_one_by(self, **filters) -> Optional[T]:
        """조건으로 단건 조회"""
        with self._session_scope() as session:
            obj = session.query(self.model_class).filter_by(**filters).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_all(self, order_by=None) -> list[T]:
        """전체 조회

        Args:
            order_by: 정렬 기준 (SQLAlchemy 컬럼)
        """
        return self.get_many_by(order_by=order_by)

    def get_many_by(self, order_by=None, **filters) -> list[T]:
        """조건으로 다건 조회

        Examples:
            >>> repo = StepRepository()
            >>> steps = repo.get_many_by(history_id=1, status="failed")
        """
        with self._session_scope() as session:
            query = session.query(self.model_class)
            if filters:
                query = query.filter_by(**filters)
            if order_by is not None:
                query = query.order_by(order_by)
            return self._detach(session, query.all())

    # UPDATE
    def update_by_id(self, id: int, **updates) -> bool:
        """ID로 업데이트 (모델에 없는 필드는 무시)

        Returns:
            대상 존재 여부
        """
        with self._session_scope() as session:
            obj = session.query(self.model_class).filter_by(id=id).first()
            if not obj:
                return False

            for key, value in updates.items():
                if hasattr(obj, key):
                    setattr(obj, key, value)

            return True

    # DELETE
    def delete_by_id(self, id: int) -> bool:
        with self._session_scope() as session:
            obj = session.query(self.model_class).filter_by(id=id).first()
            if obj:
                session.delete(obj)
                return True
            return False

    def delete_by(self, **filters) -> int:
        """조건으로 삭제

        Returns:
            삭제한 개수
        """
        with self._session_scope() as session:
            return session.query(self.model_class).filter_by(**filters).delete()

    def exists(self, **filters) -> bool:
        with self._session_scope() as session:
            return session.query(self.model_class).filter_by(**filters).first() is not None

    def count(self, **filters) -> int:
        """개수 세기 (필터 없으면 전체 개수)"""
        with self._session_scope() as session:
            query = session.query(self.model_class)
            if filters:
                query = query.filter_by(**filters)
            return query.count()



class HistoryRepository(BaseRepository[ConversionHistory]):
    """ConversionHistory 전용 리포지토리"""

    def __init__(self, db=None):
        super().__init__(ConversionHistory, db)

    def get_by_table(self, owner: str, table_name: str) -> list[ConversionHistory]:
        """테이블별 변환 이력 (최신순)"""
        return self.get_many_by(
            order_by=ConversionHistory.started_at.desc(),
            owner=owner,
            table_name=table_name,
        )

    def get_latest_by_table(self, owner: str, table_name: str) -> Optional[ConversionHistory]:
        """테이블의 최신 변환 이력"""
        with self._session_scope() as session:
            obj = (
                session.query(ConversionHistory)
                .filter_by(owner=owner, table_name=table_name)
                .order_by(ConversionHistory.started_at.desc(), ConversionHistory.id.desc())
                .first()
            )
            if obj:
                session.expunge(obj)
            return obj

    def get_unfinished(self) -> list[ConversionHistory]:
        """running 상태로 남은 이력 (프로세스 중단 등)

        Returns:
            이력 리스트 (오래된 순)
        """
        return self.get_many_by(order_by=ConversionHistory.started_at, status="running")

    def get_all_desc(self) -> list[ConversionHistory]:
        """최신순 전체 조회"""
        return self.get_all(order_by=ConversionHistory.started_at.desc())


class StepRepository(BaseRepository[ConversionStep]):
    """ConversionStep 전용 리포지토리"""

    def __init__(self, db=None):
        super().__init__(ConversionStep, db)

    def get_by_history(self, history_id: int) -> list[ConversionStep]:
        """이력별 단계 결과 (기록 순)"""
        return self.get_many_by(history_id=history_id, order_by=ConversionStep.id)

    def get_failures_by_history(self, history_id: int) -> list[ConversionStep]:
        """이력별 실패 단계 결과"""
        with self._session_scope() as session:
            results = (
                session.query(ConversionStep)
                .filter_by(history_id=history_id)
                .filter(ConversionStep.status == "failed")
                .order_by(ConversionStep.id)
                .all()
            )
            for obj in results:
                session.expunge(obj)
            return results
