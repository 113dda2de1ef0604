"""애플리케이션 경로 관리 유틸리티

로그, 로컬 이력 DB, 프로필 암호화 키 경로를 한곳에서 관리합니다.
테스트 환경에서는 커스텀 루트 경로를 주입할 수 있습니다.
"""
import os
from pathlib import Path
from typing import Optional

# 앱 데이터 루트를 바꾸는 환경 변수
HOME_ENV_VAR = "PARTITION_REDEFINE_HOME"


class AppPaths:
    """애플리케이션 경로 중앙 관리 클래스

    경로는 처음 조회할 때 결정되어 캐싱됩니다.

    Examples:
        >>> from partition_redefine.utils.app_paths import AppPaths
        >>> logs_dir = AppPaths.get_logs_dir()
        >>> db_path = AppPaths.get_db_path()

        # 테스트 환경
        >>> AppPaths.set_custom_root(Path("/tmp/test"))
        >>> AppPaths.get_app_data_dir()  # /tmp/test
        >>> AppPaths.set_custom_root(None)  # 원복
    """

    # 클래스 변수: 경로 캐싱
    _app_data_dir: Optional[Path] = None
    _logs_dir: Optional[Path] = None
    _db_path: Optional[Path] = None

    # 설정: 커스텀 루트 디렉토리 (테스트용)
    _custom_root: Optional[Path] = None

    @classmethod
    def set_custom_root(cls, root: Optional[Path]):
        """커스텀 루트 디렉토리 설정 (테스트용)

        Args:
            root: 커스텀 루트 경로. None이면 기본 경로 사용
        """
        cls._custom_root = root
        cls._reset_cache()

    @classmethod
    def _reset_cache(cls):
        cls._app_data_dir = None
        cls._logs_dir = None
        cls._db_path = None

    @classmethod
    def get_app_data_dir(cls) -> Path:
        """애플리케이션 데이터 디렉토리

        우선순위: 커스텀 루트 > PARTITION_REDEFINE_HOME 환경 변수 > ~/.partition_redefine
        디렉토리가 없으면 자동 생성합니다.

        Returns:
            애플리케이션 데이터 디렉토리 경로
        """
        if cls._app_data_dir is None:
            if cls._custom_root:
                cls._app_data_dir = Path(cls._custom_root)
            elif os.environ.get(HOME_ENV_VAR):
                cls._app_data_dir = Path(os.environ[HOME_ENV_VAR]).expanduser()
            else:
                cls._app_data_dir = Path.home() / ".partition_redefine"

            cls._app_data_dir.mkdir(parents=True, exist_ok=True)

        return cls._app_data_dir

    @classmethod
    def get_logs_dir(cls) -> Path:
        """로그 디렉토리 (<app data>/logs)"""
        if cls._logs_dir is None:
            cls._logs_dir = cls.get_app_data_dir() / "logs"
            cls._logs_dir.mkdir(parents=True, exist_ok=True)

        return cls._logs_dir

    @classmethod
    def get_db_path(cls) -> Path:
        """로컬 이력 DB 파일 경로 (<app data>/partition_redefine.db)"""
        if cls._db_path is None:
            cls._db_path = cls.get_app_data_dir() / "partition_redefine.db"

        return cls._db_path

    @classmethod
    def get_log_file(cls, filename: str) -> Path:
        """로그 파일 경로

        Examples:
            >>> log_file = AppPaths.get_log_file("redefine_20250118.log")
        """
        return cls.get_logs_dir() / filename

    @classmethod
    def get_key_path(cls) -> Path:
        """프로필 암호화 키 파일 경로"""
        return cls.get_app_data_dir() / "profile.key"

    @classmethod
    def ensure_all_dirs(cls):
        """모든 디렉토리 생성 확인"""
        cls.get_app_data_dir()
        cls.get_logs_dir()


# 편의 함수
def get_logs_dir() -> Path:
    """로그 디렉토리 (편의 함수)"""
    return AppPaths.get_logs_dir()


def get_db_path() -> Path:
    """DB 파일 경로 (편의 함수)"""
    return AppPaths.get_db_path()
