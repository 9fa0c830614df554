"""
SQL Server 비동기 커넥션풀 모듈

aioodbc를 사용하여 인스턴스당 하나의 공유 커넥션풀을 제공합니다.

상태 전이:
    UNINITIALIZED -> CONNECTING   최초 get_pool()
    CONNECTING    -> READY        연결 성공
    CONNECTING    -> UNINITIALIZED 연결 실패 (다음 호출에서 새로 시도)
    READY         -> UNINITIALIZED close()
"""

import asyncio
import logging
from enum import Enum
from typing import Any

from sqlhelper.config import SqlConfig
from sqlhelper.exception import DatabaseConnectionError

logger = logging.getLogger(__name__)


class PoolState(str, Enum):
    """커넥션풀 상태"""
    UNINITIALIZED = 'UNINITIALIZED'
    CONNECTING = 'CONNECTING'
    READY = 'READY'


async def _after_created(connection: Any) -> None:
    """새 연결 생성 시 세션 옵션 적용"""
    async with connection.cursor() as cursor:
        await cursor.execute("SET ARITHABORT ON")
    logger.debug("New connection created with ARITHABORT ON")


def _connect_kwargs(config: SqlConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        'dsn': config.connection_string(),
        'autocommit': True,
        'timeout': config.options.connect_timeout,
    }
    if config.options.enable_arith_abort:
        kwargs['after_created'] = _after_created
    return kwargs


async def _create_pool(config: SqlConfig) -> Any:
    """aioodbc 커넥션풀 생성"""
    import aioodbc

    return await aioodbc.create_pool(
        minsize=config.pool.min,
        maxsize=config.pool.max,
        pool_recycle=config.pool.recycle_seconds,
        **_connect_kwargs(config),
    )


async def _connect(config: SqlConfig) -> Any:
    """aioodbc 단일 연결 생성"""
    import aioodbc

    return await aioodbc.connect(**_connect_kwargs(config))


class PoolManager:
    """
    공유 커넥션풀 관리

    동시에 들어온 최초 요청은 하나의 생성 시도를 함께 기다린다.

    사용 예시:
        manager = PoolManager(config)
        pool = await manager.get_pool()
        async with pool.acquire() as conn:
            ...
        await manager.close()
    """

    def __init__(self, config: SqlConfig):
        self._config = config
        self._state = PoolState.UNINITIALIZED
        self._pending: asyncio.Task | None = None
        self._pool: Any = None

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def config(self) -> SqlConfig:
        return self._config

    async def get_pool(self) -> Any:
        """공유 커넥션풀 반환 (없으면 생성)"""
        if self._state is PoolState.READY:
            return self._pool

        if self._pending is None:
            self._state = PoolState.CONNECTING
            self._pending = asyncio.ensure_future(self._open())

        return await asyncio.shield(self._pending)

    async def _open(self) -> Any:
        """커넥션풀 생성 시도 (실패 시 상태 초기화)"""
        try:
            pool = await _create_pool(self._config)
        except Exception as e:
            logger.error(f"Database connection failed: {self._describe()}: {e}")
            self._pending = None
            self._state = PoolState.UNINITIALIZED
            raise DatabaseConnectionError(f"Database connection failed: {e}", e) from e

        self._pool = pool
        self._pending = None
        self._state = PoolState.READY
        logger.info(
            f"Connection pool initialized: {self._describe()} "
            f"(pool: {self._config.pool.min}-{self._config.pool.max})"
        )
        return pool

    async def get_connection(self) -> Any:
        """공유 풀과 별개의 일회용 연결 반환 (호출자가 close 책임)"""
        try:
            connection = await _connect(self._config)
        except Exception as e:
            logger.error(f"Database connection error: {self._describe()}: {e}")
            raise DatabaseConnectionError(f"Database connection error: {e}", e) from e
        logger.debug(f"Private connection opened: {self._describe()}")
        return connection

    async def close(self) -> None:
        """커넥션풀 종료"""
        if self._pending is not None:
            try:
                await asyncio.shield(self._pending)
            except DatabaseConnectionError:
                return

        if self._state is not PoolState.READY:
            return

        pool, self._pool = self._pool, None
        self._state = PoolState.UNINITIALIZED
        pool.close()
        await pool.wait_closed()
        logger.info(f"Connection pool closed: {self._describe()}")

    def _describe(self) -> str:
        return f"{self._config.server}/{self._config.database}"
