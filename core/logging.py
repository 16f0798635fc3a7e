"""
로깅 설정

루트 로거에 콘솔(stdout) 핸들러와 일 단위로 교체되는 파일 핸들러를 붙인다.
각 모듈은 `logging.getLogger(__name__)`만 사용.

    from core.logging import setup_logging
    setup_logging("web")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Defaults, Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 14

# WARNING 이상만 남길 서드파티 로거
QUIET_LOGGERS = (
    "aiosqlite",
    "httpcore",
    "httpx",
    "asyncio",
    "uvicorn.access",
)


def get_log_dir(process_name: str) -> Path:
    if process_name == "web":
        return Paths.WEB_LOGS_DIR
    return Paths.LOGS_DIR


def get_log_file_path(process_name: str) -> Path:
    return get_log_dir(process_name) / f"{process_name}.log"


def _daily_file_handler(log_file: Path, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"  # web.log.2026-10-19
    handler.setLevel(level)
    return handler


def setup_logging(
    process_name: str,
    console_level: int | None = None,
    file_level: int | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    여러 번 호출해도 핸들러가 중복되지 않는다 (기존 핸들러 교체).

    Args:
        process_name: "web" 또는 CLI 작업 이름. 로그 파일명으로 사용
        console_level: 콘솔 레벨 (기본: Defaults.LOG_LEVEL)
        file_level: 파일 레벨 (기본: Defaults.LOG_LEVEL)

    Returns:
        루트 Logger
    """
    default_level = logging.getLevelName(Defaults.LOG_LEVEL)
    console_level = default_level if console_level is None else console_level
    file_level = default_level if file_level is None else file_level

    log_file = get_log_file_path(process_name)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        console_handler,
        _daily_file_handler(log_file, file_level),
    ]

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"로깅 초기화: {process_name} "
        f"(console={logging.getLevelName(console_level)}, "
        f"file={log_file} {logging.getLevelName(file_level)})"
    )
    return root
