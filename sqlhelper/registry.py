"""
프로세스 기본 SqlHelper 레지스트리

설정은 프로세스당 한 번만 지정한다. 다시 지정하려면 clear() 후 호출.

사용 예시:
    from sqlhelper import initialize_from_env, get_helper

    initialize_from_env()
    helper = get_helper()
    rows = await helper.execute_dataset(CommandKind.TEXT, "SELECT * FROM Users")
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sqlhelper.config import SqlConfig
from sqlhelper.exception import ConfigurationError
from sqlhelper.helper import SqlHelper

logger = logging.getLogger(__name__)


class SqlHelperRegistry:
    """기본 SqlHelper 인스턴스 보관"""

    _helper: SqlHelper | None = None

    @classmethod
    def initialize(cls, config: SqlConfig | Mapping[str, Any]) -> SqlHelper:
        """기본 인스턴스 설정 (한 번만 허용)"""
        if cls._helper is not None:
            raise ConfigurationError("Database configuration already initialized")
        cls._helper = SqlHelper(config)
        logger.info(
            f"SqlHelper initialized: {cls._helper.config.server}/{cls._helper.config.database}"
        )
        return cls._helper

    @classmethod
    def get(cls) -> SqlHelper:
        """기본 인스턴스 반환"""
        if cls._helper is None:
            raise ConfigurationError(
                "Database configuration not initialized. Call initialize() or initialize_from_env() first."
            )
        return cls._helper

    @classmethod
    def clear(cls) -> None:
        """기본 인스턴스 제거 (풀은 닫지 않음, 테스트용)"""
        cls._helper = None

    @classmethod
    async def close(cls) -> None:
        """커넥션풀 종료 후 기본 인스턴스 제거"""
        helper, cls._helper = cls._helper, None
        if helper is not None:
            await helper.close()


def initialize(config: SqlConfig | Mapping[str, Any]) -> SqlHelper:
    return SqlHelperRegistry.initialize(config)


def initialize_from_env(environ: Mapping[str, str] | None = None) -> SqlHelper:
    """환경변수 db_user, db_password, server, database로 초기화"""
    return SqlHelperRegistry.initialize(SqlConfig.from_env(environ))


def initialize_from_yaml(path: str | Path, name: str = 'default') -> SqlHelper:
    """YAML 설정 파일로 초기화"""
    return SqlHelperRegistry.initialize(SqlConfig.from_yaml(path, name))


def get_helper() -> SqlHelper:
    return SqlHelperRegistry.get()


def clear() -> None:
    SqlHelperRegistry.clear()


async def close() -> None:
    await SqlHelperRegistry.close()
