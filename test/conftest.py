"""
테스트 공통 fixture

aioodbc 대신 메모리 기반 가짜 드라이버를 sqlhelper.pool에 주입한다.
"""

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlhelper import SqlConfig, SqlHelper, SqlHelperRegistry


@dataclass
class FakeResult:
    """cursor 결과 하나 (columns가 None이면 행을 반환하지 않는 문장)"""
    columns: list[str] | None = None
    rows: list[tuple] = field(default_factory=list)
    rowcount: int = -1


@dataclass
class ExecutedStatement:
    sql: str
    values: list
    input_sizes: list | None = None


class FakeCursor:
    def __init__(self, driver: 'FakeDriver'):
        self._driver = driver
        self._results: list[FakeResult] = []
        self._index = 0
        self._input_sizes = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._driver.cursors_closed += 1

    async def setinputsizes(self, sizes):
        self._input_sizes = sizes

    async def execute(self, sql, *params):
        self._driver.statements.append(ExecutedStatement(sql, list(params), self._input_sizes))
        if self._driver.execute_errors:
            raise self._driver.execute_errors.pop(0)
        self._results = self._driver.responses.pop(0) if self._driver.responses else [FakeResult()]
        self._index = 0
        return self

    @property
    def _current(self) -> FakeResult:
        return self._results[self._index]

    @property
    def description(self):
        if self._current.columns is None:
            return None
        return [(name, None, None, None, None, None, True) for name in self._current.columns]

    @property
    def rowcount(self) -> int:
        return self._current.rowcount

    async def fetchall(self):
        return list(self._current.rows)

    async def nextset(self):
        if self._index + 1 < len(self._results):
            self._index += 1
            return True
        return None


class FakeConnection:
    def __init__(self, driver: 'FakeDriver'):
        self._driver = driver
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self._driver)

    async def close(self):
        self.closed = True


class FakePool:
    def __init__(self, driver: 'FakeDriver'):
        self._driver = driver
        self.acquired = 0
        self.released = 0
        self.closed = False
        self.wait_closed_called = False

    async def acquire(self) -> FakeConnection:
        if self._driver.acquire_errors:
            raise self._driver.acquire_errors.pop(0)
        self.acquired += 1
        return FakeConnection(self._driver)

    async def release(self, connection: FakeConnection) -> None:
        self.released += 1

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        self.wait_closed_called = True


class FakeDriver:
    """create_pool/connect 호출과 실행된 SQL을 기록하는 가짜 드라이버"""

    def __init__(self):
        self.responses: list[list[FakeResult]] = []
        self.statements: list[ExecutedStatement] = []
        self.pool_errors: list[Exception] = []
        self.connect_errors: list[Exception] = []
        self.acquire_errors: list[Exception] = []
        self.execute_errors: list[Exception] = []
        self.pools: list[FakePool] = []
        self.connections: list[FakeConnection] = []
        self.pool_calls = 0
        self.connect_calls = 0
        self.pool_delay = 0.0
        self.cursors_closed = 0

    def respond(self, *results: FakeResult) -> None:
        """다음 execute 호출의 결과 목록 예약"""
        self.responses.append(list(results))

    async def create_pool(self, config: SqlConfig) -> FakePool:
        self.pool_calls += 1
        await asyncio.sleep(self.pool_delay)
        if self.pool_errors:
            raise self.pool_errors.pop(0)
        pool = FakePool(self)
        self.pools.append(pool)
        return pool

    async def connect(self, config: SqlConfig) -> FakeConnection:
        self.connect_calls += 1
        if self.connect_errors:
            raise self.connect_errors.pop(0)
        connection = FakeConnection(self)
        self.connections.append(connection)
        return connection

    @property
    def last_statement(self) -> ExecutedStatement:
        return self.statements[-1]


@pytest.fixture
def driver(monkeypatch: pytest.MonkeyPatch) -> FakeDriver:
    fake = FakeDriver()
    monkeypatch.setattr('sqlhelper.pool._create_pool', fake.create_pool)
    monkeypatch.setattr('sqlhelper.pool._connect', fake.connect)
    return fake


@pytest.fixture
def sql_config() -> SqlConfig:
    return SqlConfig(server='localhost', database='app', user='sa', password='secret')


@pytest_asyncio.fixture
async def helper(sql_config, driver):
    """가짜 드라이버를 사용하는 SqlHelper"""
    instance = SqlHelper(sql_config)
    yield instance
    await instance.close()


@pytest.fixture
def clean_registry():
    SqlHelperRegistry.clear()
    yield
    SqlHelperRegistry.clear()
