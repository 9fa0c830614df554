"""
로깅 설정 테스트

테스트 항목:
1. JSON 포맷 (timestamp/level/logger 필드)
2. 텍스트 포맷
3. sql_echo (루트 INFO에서도 [SQL] 디버그 로그 출력)
4. 드라이버 로거 레벨 조정, 잘못된 레벨

실행: python -m pytest test/logging_test.py -v
"""

import json
import logging
from pathlib import Path

import pytest

from common.logging import SQL_LOGGER, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    sql_logger = logging.getLogger(SQL_LOGGER)
    handlers, level, sql_level = root.handlers[:], root.level, sql_logger.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    sql_logger.setLevel(sql_level)


def _read_lines(log_file: Path) -> list[str]:
    for handler in logging.getLogger().handlers:
        handler.flush()
    return log_file.read_text(encoding='utf-8').strip().splitlines()


class TestSetupLogging:
    """setup_logging()"""

    def test_json_format_to_file(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / 'sqlhelper.log'
        setup_logging(level='DEBUG', json_format=True, log_file=str(log_file))

        logging.getLogger('sqlhelper.executor').debug("[SQL] SELECT 1")

        record = json.loads(_read_lines(log_file)[-1])
        assert record['level'] == 'DEBUG'
        assert record['logger'] == 'sqlhelper.executor'
        assert record['message'] == "[SQL] SELECT 1"
        assert 'timestamp' in record

    def test_text_format(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / 'sqlhelper.log'
        setup_logging(level='INFO', json_format=False, log_file=str(log_file))

        logging.getLogger('sqlhelper.pool').info("Connection pool initialized")

        assert ' - sqlhelper.pool - INFO - Connection pool initialized' in _read_lines(log_file)[-1]

    def test_sql_echo_below_root_level(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / 'sqlhelper.log'
        setup_logging(level='INFO', json_format=False, log_file=str(log_file), sql_echo=True)

        logging.getLogger('sqlhelper.pool').debug("hidden")
        logging.getLogger(SQL_LOGGER).debug("[SQL] SELECT 1")

        lines = _read_lines(log_file)
        assert len(lines) == 1
        assert lines[0].endswith('[SQL] SELECT 1')

    def test_sql_hidden_without_echo(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / 'sqlhelper.log'
        setup_logging(level='INFO', json_format=False, log_file=str(log_file))

        logging.getLogger(SQL_LOGGER).debug("[SQL] SELECT 1")
        logging.getLogger(SQL_LOGGER).info("visible")

        lines = _read_lines(log_file)
        assert len(lines) == 1
        assert lines[0].endswith('visible')

    def test_driver_loggers_quieted(self, restore_root_logger):
        setup_logging(level='debug', json_format=False)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger('aioodbc').level == logging.WARNING
        assert logging.getLogger('asyncio').level == logging.WARNING

    def test_unknown_level_rejected(self, restore_root_logger):
        with pytest.raises(ValueError):
            setup_logging(level='LOUD')
