"""
SQL Server 비동기 쿼리 실행 패키지

사용 예시:
    from sqlhelper import CommandKind, Parameter, initialize_from_env, get_helper

    initialize_from_env()
    helper = get_helper()

    user = await helper.execute_single(
        CommandKind.TEXT,
        "SELECT * FROM Users WHERE Id = @id",
        [Parameter('id', 42)],
    )
    code = await helper.execute_with_return_value('dbo.usp_ArchiveUser', [Parameter('@id', 42)])
"""

from sqlhelper.config import ConnectionOptions, PoolOptions, SqlConfig
from sqlhelper.exception import (
    SqlHelperError,
    ConfigurationError,
    DatabaseConnectionError,
    ExecutionError,
    ParameterBindingError,
)
from sqlhelper.helper import SqlHelper
from sqlhelper.model import (
    CommandKind,
    ExecutionOutcome,
    Filter,
    Parameter,
    RawSql,
    SqlType,
)
from sqlhelper.pool import PoolManager, PoolState
from sqlhelper.registry import (
    SqlHelperRegistry,
    initialize,
    initialize_from_env,
    initialize_from_yaml,
    get_helper,
    clear,
    close,
)

__all__ = [
    'SqlConfig',
    'ConnectionOptions',
    'PoolOptions',
    'SqlHelperError',
    'ConfigurationError',
    'DatabaseConnectionError',
    'ExecutionError',
    'ParameterBindingError',
    'SqlHelper',
    'CommandKind',
    'ExecutionOutcome',
    'Filter',
    'Parameter',
    'RawSql',
    'SqlType',
    'PoolManager',
    'PoolState',
    'SqlHelperRegistry',
    'initialize',
    'initialize_from_env',
    'initialize_from_yaml',
    'get_helper',
    'clear',
    'close',
]
