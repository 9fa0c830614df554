"""
SqlHelper 서비스

실행 프리미티브(QueryExecutor) 위에 결과 변환 헬퍼를 제공한다.
모든 헬퍼는 execute_query()를 정확히 한 번 호출한다.

사용 예시:
    helper = SqlHelper(SqlConfig(server='localhost', database='app', user='sa', password='...'))

    users = await helper.execute_dataset(CommandKind.TEXT, "SELECT * FROM Users")
    user_id = await helper.execute_insert(
        CommandKind.TEXT,
        "INSERT INTO Users (Name) VALUES (@name)",
        [Parameter('name', 'alice')],
    )
    if await helper.exists('Users', 'Id = @id', [Parameter('id', user_id)]):
        ...

    await helper.close()
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from sqlhelper.config import SqlConfig, load_config
from sqlhelper.executor import QueryExecutor
from sqlhelper.model import (
    CommandKind,
    ExecutionOutcome,
    Filter,
    Parameter,
    RawSql,
    Row,
    quote_identifier,
)
from sqlhelper.pool import PoolManager


IDENTITY_FUNCTION = 'SCOPE_IDENTITY'
SCALAR_FIELD = 'value'

Parameters = Iterable[Parameter] | None
WhereClause = RawSql | str | Filter


class SqlHelper:
    """
    SQL Server 쿼리 실행 서비스

    인스턴스마다 하나의 커넥션풀을 가지며, 최초 쿼리 시점에 생성된다.
    """

    def __init__(self, config: SqlConfig | Mapping[str, Any]):
        self._config = load_config(config)
        self._pool_manager = PoolManager(self._config)
        self._executor = QueryExecutor(self._pool_manager)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> 'SqlHelper':
        """환경변수 설정으로 생성"""
        return cls(SqlConfig.from_env(environ))

    @classmethod
    def from_yaml(cls, path: str | Path, name: str = 'default') -> 'SqlHelper':
        """YAML 설정 파일로 생성"""
        return cls(SqlConfig.from_yaml(path, name))

    @property
    def config(self) -> SqlConfig:
        return self._config

    @property
    def pool_manager(self) -> PoolManager:
        return self._pool_manager

    async def get_connection(self) -> Any:
        """공유 풀과 별개의 일회용 연결 (호출자가 close 책임)"""
        return await self._pool_manager.get_connection()

    async def execute_query(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> ExecutionOutcome:
        """쿼리 실행 후 전체 결과 반환"""
        return await self._executor.execute(command_kind, query, parameters)

    # SELECT

    async def execute_dataset(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> list[Row]:
        """첫 번째 레코드셋 전체 (없으면 빈 리스트)"""
        outcome = await self.execute_query(command_kind, query, parameters)
        return outcome.record_set

    async def execute_multiple_datasets(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> list[list[Row]]:
        """모든 레코드셋"""
        outcome = await self.execute_query(command_kind, query, parameters)
        return outcome.record_sets

    async def execute_single(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> Row | None:
        """첫 번째 레코드셋의 첫 행"""
        outcome = await self.execute_query(command_kind, query, parameters)
        rows = outcome.record_set
        return rows[0] if rows else None

    async def execute_scalar(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> Any:
        """
        첫 행의 value 컬럼

        행이 없거나 value 컬럼이 없으면 None. 0/False 값은 그대로 반환한다.
        """
        row = await self.execute_single(command_kind, query, parameters)
        if row is None:
            return None
        return row.get(SCALAR_FIELD)

    # INSERT / UPDATE / DELETE

    async def execute_insert(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
        identity_column: str = 'Id',
    ) -> int:
        """
        INSERT 실행 후 생성된 IDENTITY 값 반환

        텍스트 쿼리에는 SCOPE_IDENTITY() 조회를 덧붙인다.
        저장 프로시저는 직접 identity_column 컬럼을 반환해야 한다.
        """
        if CommandKind(command_kind) is CommandKind.TEXT:
            query = (
                f"{query.rstrip().rstrip(';')}; "
                f"SELECT {IDENTITY_FUNCTION}() AS {quote_identifier(identity_column)}"
            )
        row = await self.execute_single(command_kind, query, parameters)
        identity = row.get(identity_column) if row else None
        return int(identity) if identity is not None else 0

    async def execute_update(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> int:
        """첫 번째 문장의 affected rows"""
        outcome = await self.execute_query(command_kind, query, parameters)
        return outcome.rows_affected[0] if outcome.rows_affected else 0

    async def execute_delete(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Parameters = None,
    ) -> int:
        """첫 번째 문장의 affected rows"""
        outcome = await self.execute_query(command_kind, query, parameters)
        return outcome.rows_affected[0] if outcome.rows_affected else 0

    # Utility

    async def exists(
        self,
        table: RawSql | str,
        where: WhereClause,
        parameters: Parameters = None,
    ) -> bool:
        """
        조건에 맞는 행 존재 여부

        table과 str/RawSql where는 이스케이프 없이 SQL에 삽입된다.
        외부 입력 값은 Filter 또는 parameters로 전달할 것.
        """
        where_sql, params = _where_clause(where, parameters)
        query = f"SELECT COUNT(1) AS value FROM {table} WHERE {where_sql}"
        result = await self.execute_scalar(CommandKind.TEXT, query, params)
        return (result or 0) > 0

    async def count(
        self,
        table: RawSql | str,
        where: WhereClause | None = None,
        parameters: Parameters = None,
    ) -> int:
        """행 개수 (where 생략 시 전체)"""
        if where:
            where_sql, params = _where_clause(where, parameters)
            query = f"SELECT COUNT(1) AS value FROM {table} WHERE {where_sql}"
        else:
            params = list(parameters or ())
            query = f"SELECT COUNT(1) AS value FROM {table}"
        result = await self.execute_scalar(CommandKind.TEXT, query, params)
        return int(result) if result is not None else 0

    # Stored procedure

    async def execute_with_return_value(
        self,
        procedure: str,
        parameters: Parameters = None,
    ) -> int:
        """저장 프로시저 반환 코드 (파라미터 이름의 @는 제거 후 바인딩)"""
        return await self._executor.execute_with_return_value(procedure, parameters)

    async def close(self) -> None:
        """커넥션풀 종료"""
        await self._pool_manager.close()

    async def __aenter__(self) -> 'SqlHelper':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _where_clause(where: WhereClause, parameters: Parameters) -> tuple[str, list[Parameter]]:
    params = list(parameters or ())
    if isinstance(where, Filter):
        where_sql, filter_params = where.render()
        return where_sql, filter_params + params
    return str(where), params
