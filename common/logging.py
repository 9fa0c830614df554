"""
로깅 설정

sqlhelper 로거(sqlhelper.pool, sqlhelper.executor, sqlhelper.registry)의 출력을
JSON(python-json-logger) 또는 텍스트 포맷으로 내보낸다.

사용 예시:
    setup_logging(level="INFO", sql_echo=True)   # 루트는 INFO, [SQL] 디버그 로그만 추가 출력
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
JSON_FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'

SQL_LOGGER = 'sqlhelper.executor'
QUIET_LOGGERS = ('asyncio', 'aioodbc')


class SqlJsonFormatter(JsonFormatter):
    """timestamp/level/logger 필드를 채우는 JSON 포매터"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = self.formatTime(record)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        if not log_record.get('message'):
            log_record['message'] = record.getMessage()


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return SqlJsonFormatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT)


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None,
    sql_echo: bool = False,
) -> None:
    """
    로깅 설정

    Args:
        level: 루트 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON 포맷 사용 여부 (False면 텍스트 포맷)
        log_file: 로그 파일 경로 (None이면 stdout만 사용)
        sql_echo: True면 루트 레벨과 무관하게 실행 SQL([SQL], [SQL Result]) 출력
    """
    formatter = _build_formatter(json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=_resolve_level(level), handlers=handlers, force=True)

    logging.getLogger(SQL_LOGGER).setLevel(logging.DEBUG if sql_echo else logging.NOTSET)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
