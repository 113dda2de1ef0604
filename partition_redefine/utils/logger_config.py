"""로거 설정 및 핸들러 팩토리

logging 핸들러 생성과 로거 설정을 중앙집중화합니다.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .app_paths import AppPaths

# 모듈 로거(logging.getLogger(__name__))들의 공통 부모
PACKAGE_LOGGER_NAME = "partition_redefine"


class LoggerConfig:
    """로거 설정 관리 클래스

    Examples:
        >>> from partition_redefine.utils.logger_config import LoggerConfig
        >>> handler = LoggerConfig.create_file_handler()
        >>> logger = LoggerConfig.setup_logger('MyLogger', [handler])
    """

    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    DEFAULT_LEVEL = logging.DEBUG
    DEFAULT_FILENAME = "redefine_{date}.log"

    @staticmethod
    def create_file_handler(
        log_dir: Optional[Path] = None,
        filename_pattern: str = DEFAULT_FILENAME,
        level: int = logging.DEBUG,
        encoding: str = "utf-8",
    ) -> logging.FileHandler:
        """파일 핸들러 생성

        Args:
            log_dir: 로그 디렉토리. None이면 AppPaths에서 가져옴
            filename_pattern: 파일명 패턴. {date}는 YYYYMMDD로 치환됨
            level: 로그 레벨
            encoding: 파일 인코딩

        Returns:
            설정된 파일 핸들러
        """
        if log_dir is None:
            log_dir = AppPaths.get_logs_dir()
        else:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

        filename = filename_pattern.format(date=datetime.now().strftime("%Y%m%d"))

        handler = logging.FileHandler(log_dir / filename, encoding=encoding)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LoggerConfig.DEFAULT_FORMAT))
        return handler

    @staticmethod
    def create_console_handler(
        level: int = logging.INFO, format_string: Optional[str] = None
    ) -> logging.StreamHandler:
        """콘솔 핸들러 생성 (stderr)"""
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(format_string or LoggerConfig.DEFAULT_FORMAT))
        return handler

    @staticmethod
    def setup_logger(
        name: str,
        handlers: list[logging.Handler],
        level: int = logging.DEBUG,
        clear_existing: bool = True,
    ) -> logging.Logger:
        """로거 설정

        Args:
            name: 로거 이름
            handlers: 핸들러 리스트
            level: 로거 레벨
            clear_existing: 기존 핸들러 제거 여부 (중복 방지)

        Returns:
            설정된 로거
        """
        logger = logging.getLogger(name)
        logger.setLevel(level)

        if clear_existing:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

        for handler in handlers:
            logger.addHandler(handler)

        # 부모 로거로 전파 방지 (중복 로그 방지)
        logger.propagate = False

        return logger

    @staticmethod
    def configure_package_logging(
        level: int = logging.INFO, console: bool = True, log_dir: Optional[Path] = None
    ) -> logging.Logger:
        """패키지 모듈 로거 출력 설정

        코어/DB 어댑터 모듈은 logging.getLogger(__name__)만 사용하므로
        애플리케이션 진입점에서 한 번 호출해 파일/콘솔 출력을 붙입니다.

        Examples:
            >>> LoggerConfig.configure_package_logging(logging.DEBUG)
        """
        handlers: list[logging.Handler] = [
            LoggerConfig.create_file_handler(log_dir=log_dir, level=level)
        ]
        if console:
            handlers.append(LoggerConfig.create_console_handler(level))

        return LoggerConfig.setup_logger(PACKAGE_LOGGER_NAME, handlers, level=level)
