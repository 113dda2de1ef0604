"""
로컬 SQLite 데이터베이스 관리

연결 프로필, 변환 이력, 단계별 결과, 로그를 저장합니다.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from partition_redefine.utils.app_paths import AppPaths

Base = declarative_base()


class Profile(Base):
    """연결 프로필 테이블"""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    connection_config = Column(Text, nullable=False)  # JSON (암호화)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class ConversionHistory(Base):
    """변환 이력 테이블 (실행당 1행)"""

    __tablename__ = "conversion_history"

    id = Column(Integer, primary_key=True)
    owner = Column(String(128), nullable=False, index=True)
    table_name = Column(String(128), nullable=False, index=True)
    strategy = Column(String(10))  # ONLINE, OFFLINE
    shadow_name = Column(String(128))
    retired_name = Column(String(128))
    layout_ddl = Column(Text)
    status = Column(String(20))  # running, completed, failed, cancelled
    state = Column(String(20))  # RunState 값
    source_rows = Column(Integer)
    copied_rows = Column(Integer, default=0)
    sync_iterations = Column(Integer, default=0)
    error_message = Column(Text)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)


class ConversionStep(Base):
    """단계/객체별 처리 결과 테이블"""

    __tablename__ = "conversion_steps"

    id = Column(Integer, primary_key=True)
    history_id = Column(Integer, nullable=False, index=True)
    step = Column(String(30), nullable=False)
    object_name = Column(String(128))
    status = Column(String(20))  # completed, failed
    error_kind = Column(String(40))
    error_code = Column(Integer)
    message = Column(Text)
    statement = Column(Text)
    rows_processed = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.now)


class LogEntry(Base):
    """로그 엔트리 테이블"""

    __tablename__ = "logs"

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    session_id = Column(String(20), index=True)
    level = Column(String(10), nullable=False, index=True)
    logger_name = Column(String(50))
    table_name = Column(String(260), index=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class LocalDatabase:
    """로컬 데이터베이스 관리 클래스"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or str(AppPaths.get_db_path())
        self.engine = None
        self.Session = None

    def initialize(self):
        """데이터베이스 초기화 (테이블 생성)"""
        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine)

    def get_session(self):
        """데이터베이스 세션 반환"""
        if not self.Session:
            raise RuntimeError("데이터베이스가 초기화되지 않았습니다.")
        return self.Session()

    @contextmanager
    def session_scope(self):
        """트랜잭션 컨텍스트 매니저

        정상 종료 시 commit, 예외 발생 시 rollback 후 재발생, 항상 close.

        Usage:
            with self.db.session_scope() as session:
                session.add(obj)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """데이터베이스 연결 종료"""
        if self.engine:
            self.engine.dispose()


# 전역 데이터베이스 인스턴스
_db_instance = None


def get_db() -> LocalDatabase:
    """데이터베이스 인스턴스 반환 (최초 호출 시 초기화)"""
    global _db_instance
    if _db_instance is None:
        _db_instance = LocalDatabase()
        _db_instance.initialize()
    return _db_instance
