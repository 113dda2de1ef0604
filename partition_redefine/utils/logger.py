"""
로깅 유틸리티
"""

import logging

from .app_paths import AppPaths
from .logger_config import LoggerConfig


class RedefineLogger:
    """파티션 재정의 작업 로거 (프로세스당 하나)"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.log_dir = AppPaths.get_logs_dir()

        self.logger = LoggerConfig.setup_logger(
            name="PartitionRedefine",
            level=logging.DEBUG,
            handlers=[LoggerConfig.create_file_handler(log_dir=self.log_dir, level=logging.DEBUG)],
            clear_existing=True,
        )

        self._initialized = True

    @classmethod
    def reset(cls):
        """싱글톤 초기화 (로그 디렉토리 변경 후 재생성용)"""
        if cls._instance is not None and cls._instance._initialized:
            for handler in list(cls._instance.logger.handlers):
                cls._instance.logger.removeHandler(handler)
                handler.close()
        cls._instance = None

    def debug(self, message: str):
        self.logger.debug(message)

    def info(self, message: str):
        self.logger.info(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str, exc_info: bool = False):
        self.logger.error(message, exc_info=exc_info)

    def critical(self, message: str, exc_info: bool = False):
        """치명적 오류 로그 (컷오버 실패 등)"""
        self.logger.critical(message, exc_info=exc_info)
