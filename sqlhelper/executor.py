"""
쿼리 실행 모듈

공유 커넥션풀에서 연결을 얻어 텍스트 쿼리 또는 저장 프로시저를 실행하고,
드라이버 결과를 ExecutionOutcome으로 정규화한다.
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlhelper.binder import RETURN_VALUE_COLUMN, Request, Statement, bind
from sqlhelper.exception import DatabaseConnectionError, ExecutionError, SqlHelperError
from sqlhelper.model import CommandKind, ExecutionOutcome, Parameter, Row
from sqlhelper.pool import PoolManager

logger = logging.getLogger(__name__)


class QueryExecutor:
    """단일 실행 프리미티브"""

    def __init__(self, pool_manager: PoolManager):
        self._pool_manager = pool_manager

    async def execute(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Iterable[Parameter] | None = None,
    ) -> ExecutionOutcome:
        """텍스트 쿼리 또는 저장 프로시저 실행"""
        return await self._run(CommandKind(command_kind), query, parameters, strip_marker=False)

    async def execute_with_return_value(
        self,
        procedure: str,
        parameters: Iterable[Parameter] | None = None,
    ) -> int:
        """
        저장 프로시저 실행 후 반환 코드 조회

        파라미터 이름 앞의 @는 제거 후 바인딩한다.

        Returns:
            프로시저 반환 코드 (RETURN 미지정 시 0)
        """
        outcome = await self._run(CommandKind.STORED_PROCEDURE, procedure, parameters, strip_marker=True)
        return outcome.return_value if outcome.return_value is not None else 0

    async def _run(
        self,
        command_kind: CommandKind,
        query: str,
        parameters: Iterable[Parameter] | None,
        strip_marker: bool,
    ) -> ExecutionOutcome:
        # 풀 생성 실패는 PoolManager에서 이미 로깅됨
        pool = await self._pool_manager.get_pool()

        try:
            request = bind(Request(), parameters, strip_marker=strip_marker)
            if command_kind is CommandKind.STORED_PROCEDURE:
                statement = request.render_procedure(query)
            else:
                statement = request.render_text(query)
        except SqlHelperError as e:
            logger.error(f"Query execution error: {e}")
            raise

        try:
            connection = await pool.acquire()
        except Exception as e:
            logger.error(f"Query execution error: failed to acquire connection: {e}")
            raise DatabaseConnectionError(f"Failed to acquire connection: {e}", e) from e

        try:
            outcome = await self._execute_statement(connection, statement)
        except Exception as e:
            logger.error(f"Query execution error: {e}")
            raise ExecutionError(f"Query execution error: {e}", e) from e
        finally:
            await pool.release(connection)

        if command_kind is CommandKind.STORED_PROCEDURE:
            _pop_return_value(outcome)

        _log_result(outcome)
        return outcome

    async def _execute_statement(self, connection: Any, statement: Statement) -> ExecutionOutcome:
        _log_query(statement)
        outcome = ExecutionOutcome()
        async with connection.cursor() as cursor:
            if statement.input_sizes is not None:
                await cursor.setinputsizes(statement.input_sizes)
            await cursor.execute(statement.sql, *statement.values)

            while True:
                if cursor.description:
                    names = [column[0] for column in cursor.description]
                    rows = [dict(zip(names, row)) for row in await cursor.fetchall()]
                    outcome.record_sets.append(rows)
                    outcome.rows_affected.append(cursor.rowcount if cursor.rowcount >= 0 else len(rows))
                else:
                    outcome.rows_affected.append(max(cursor.rowcount, 0))
                if not await cursor.nextset():
                    break
        return outcome


def _pop_return_value(outcome: ExecutionOutcome) -> None:
    """프로시저 배치 마지막의 반환 코드 레코드셋을 분리"""
    if not outcome.record_sets:
        return
    last = outcome.record_sets[-1]
    if last and RETURN_VALUE_COLUMN in last[0]:
        outcome.record_sets.pop()
        outcome.rows_affected.pop()
        value = last[0][RETURN_VALUE_COLUMN]
        outcome.return_value = int(value) if value is not None else None


def _log_query(statement: Statement) -> None:
    """SQL 쿼리 로깅"""
    sql_oneline = ' '.join(statement.sql.split())
    if statement.values:
        logger.debug(f"[SQL] {sql_oneline} | params: {statement.values}")
    else:
        logger.debug(f"[SQL] {sql_oneline}")


def _log_result(outcome: ExecutionOutcome) -> None:
    """SQL 결과 로깅"""
    row_count = sum(len(rows) for rows in outcome.record_sets)
    logger.debug(f"[SQL Result] {row_count} row(s), affected: {outcome.rows_affected}")
