"""
향상된 로깅 유틸리티
- SUCCESS 레벨 추가
- 민감정보 마스킹 (SensitiveDataMasker 활용)
- DB 저장 지원 (DatabaseLoggerMixin 활용)
- 기본 감사 이벤트 싱크 (LoggerAuditSink)
"""

import logging
from typing import Callable, Optional

from partition_redefine.core.interfaces import AuditEvent, AuditSink

from .logger import RedefineLogger
from .logger_mixins import DatabaseLoggerMixin, SensitiveDataMasker

# SUCCESS 레벨 추가
SUCCESS_LEVEL = 25  # INFO(20)와 WARNING(30) 사이
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "SUCCESS": SUCCESS_LEVEL,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# 감사 이벤트 수신 콜백 (event, 마스킹된 메시지)
AuditListener = Callable[[AuditEvent, str], None]


class EnhancedLogger(DatabaseLoggerMixin):
    """향상된 파티션 재정의 로거

    파일 로그(RedefineLogger)와 DB 로그(DatabaseLoggerMixin)에 동시에 기록합니다.
    """

    def __init__(self, db_enabled: bool = True):
        super().__init__(db_enabled=db_enabled)

        self.base_logger = RedefineLogger()
        self.logger = self.base_logger.logger

    def _format_and_log(
        self, level: str, message: str, exc_info: bool = False, table_name: Optional[str] = None
    ) -> str:
        """마스킹 후 파일/DB에 기록하고 마스킹된 메시지 반환"""
        masked_message = SensitiveDataMasker.mask(message)

        self.logger.log(LEVELS.get(level, logging.INFO), masked_message, exc_info=exc_info)
        self.log_to_db(level, masked_message, table_name=table_name)

        return masked_message

    def debug(self, message: str):
        self._format_and_log("DEBUG", message)

    def info(self, message: str):
        self._format_and_log("INFO", message)

    def warning(self, message: str):
        self._format_and_log("WARNING", message)

    def error(self, message: str, exc_info: bool = False):
        self._format_and_log("ERROR", message, exc_info)

    def critical(self, message: str, exc_info: bool = False):
        self._format_and_log("CRITICAL", message, exc_info)

    def success(self, message: str):
        """성공 로그"""
        self._format_and_log("SUCCESS", message)


class LoggerAuditSink(AuditSink):
    """EnhancedLogger 기반 기본 감사 이벤트 싱크

    등록된 리스너(스케줄러 알림 등)에도 마스킹된 메시지를 전달합니다.
    리스너 오류는 기록만 하고 다음 리스너로 넘어갑니다.
    """

    def __init__(self, logger: Optional[EnhancedLogger] = None):
        self.logger = logger or EnhancedLogger()
        self.listeners: list[AuditListener] = []

    def add_listener(self, listener: AuditListener):
        self.listeners.append(listener)

    def remove_listener(self, listener: AuditListener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def emit(self, event: AuditEvent) -> None:
        """이벤트 기록 및 리스너 전달"""
        level = event.level.upper()
        if level == "INFO" and event.action == "cutover" and event.error_kind is None:
            level = "SUCCESS"

        masked_message = self.logger._format_and_log(
            level, self.format_event(event), table_name=event.table
        )

        for listener in list(self.listeners):
            try:
                listener(event, masked_message)
            except Exception as e:
                self.logger.logger.error(f"감사 리스너 오류: {e}")

    @staticmethod
    def format_event(event: AuditEvent) -> str:
        """[action] table/object: message (kind, ORA-n) 형식"""
        target = event.table or "-"
        if event.object_name:
            target = f"{target}/{event.object_name}"

        details = []
        if event.error_kind:
            details.append(event.error_kind)
        if event.code:
            details.append(f"ORA-{event.code:05d}")

        text = f"[{event.action}] {target}: {event.message}"
        if details:
            text += f" ({', '.join(details)})"
        return text


_audit_sink: Optional[LoggerAuditSink] = None


def get_audit_sink() -> LoggerAuditSink:
    """프로세스 공용 기본 감사 싱크 (최초 호출 시 생성)"""
    global _audit_sink
    if _audit_sink is None:
        _audit_sink = LoggerAuditSink()
    return _audit_sink
