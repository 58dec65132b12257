"""
구조화된 로깅 시스템

JSON 형식의 구조화된 로그를 제공하여 로그 분석과 모니터링을 용이하게 합니다.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional
from contextvars import ContextVar
from pathlib import Path

from roomchat.core.config import settings

# 컨텍스트 변수로 세션별 추적 정보 저장
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
room_id_var: ContextVar[Optional[str]] = ContextVar('room_id', default=None)

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'taskName', 'message', 'asctime'
}


class StructuredFormatter(logging.Formatter):
    """구조화된 JSON 로그 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # 컨텍스트 정보 추가
        user_id = user_id_var.get()
        if user_id:
            log_data["user_id"] = user_id

        room_id = room_id_var.get()
        if room_id:
            log_data["room_id"] = room_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        # 추가 데이터 (extra 필드)
        extra_data = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith('_')
        }
        if extra_data:
            log_data["extra"] = extra_data

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: int = logging.INFO):
    """로깅 시스템 초기화"""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 기존 핸들러 제거
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if settings.debug:
        # 개발 환경: 사람이 읽기 쉬운 형식
        console_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        console_formatter = StructuredFormatter()

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if settings.log_to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(log_dir / "roomchat.log", encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

        # 에러 전용 파일 핸들러
        error_handler = logging.FileHandler(log_dir / "error.log", encoding='utf-8')
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(error_handler)

    # 외부 라이브러리 로그 레벨 조정
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """구조화된 로거 인스턴스 반환"""
    return logging.getLogger(name)


def set_session_context(user_id: Optional[str] = None, room_id: Optional[str] = None):
    """세션 컨텍스트 설정"""
    if user_id:
        user_id_var.set(user_id)
    room_id_var.set(room_id)


def clear_session_context():
    """세션 컨텍스트 초기화"""
    user_id_var.set(None)
    room_id_var.set(None)


def log_database_operation(
    logger: logging.Logger,
    operation: str,
    table: str,
    affected_rows: Optional[int] = None,
    **extra
):
    """데이터베이스 작업 로그"""
    logger.info(
        f"DB {operation} on {table}",
        extra={
            "event_type": "database_operation",
            "operation": operation,
            "table": table,
            "affected_rows": affected_rows,
            **extra
        }
    )


def log_access_event(
    logger: logging.Logger,
    event: str,
    room_id: str,
    user_id: Optional[str] = None,
    success: bool = True,
    **extra
):
    """채팅방 접근 이벤트 로그"""
    logger.info(
        f"Access {event} - Room {room_id} - {'Success' if success else 'Failed'}",
        extra={
            "event_type": "room_access",
            "event": event,
            "room_id": room_id,
            "user_id": user_id,
            "success": success,
            **extra
        }
    )


def log_realtime_event(
    logger: logging.Logger,
    event: str,
    table: str,
    room_id: Optional[str] = None,
    **extra
):
    """실시간 구독 이벤트 로그"""
    logger.info(
        f"Realtime {event} - {table}" + (f" in Room {room_id}" if room_id else ""),
        extra={
            "event_type": "realtime",
            "event": event,
            "table": table,
            "room_id": room_id,
            **extra
        }
    )


def log_file_operation(
    logger: logging.Logger,
    operation: str,
    file_path: str,
    user_id: str,
    file_size: Optional[int] = None,
    **extra
):
    """파일 작업 로그"""
    logger.info(
        f"File {operation} - {file_path}",
        extra={
            "event_type": "file_operation",
            "operation": operation,
            "file_path": file_path,
            "user_id": user_id,
            "file_size": file_size,
            **extra
        }
    )


def log_security_event(
    logger: logging.Logger,
    event: str,
    severity: str = "medium",
    user_id: Optional[str] = None,
    **extra
):
    """보안 이벤트 로그"""
    logger.warning(
        f"Security {event} - Severity: {severity}",
        extra={
            "event_type": "security",
            "event": event,
            "severity": severity,
            "user_id": user_id,
            **extra
        }
    )
