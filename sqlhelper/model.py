"""
sqlhelper 공통 모델

파라미터, 명령 종류, 네이티브 타입 태그, 실행 결과 모델.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# 바인딩 가능한 값 타입 (닫힌 집합)
SqlValue = bool | int | float | Decimal | str | bytes | datetime | date | time | UUID | None
SQL_VALUE_TYPES = (bool, int, float, Decimal, str, bytes, datetime, date, time, UUID)

Row = dict[str, Any]

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class CommandKind(str, Enum):
    """명령 종류"""
    TEXT = 'Text'
    STORED_PROCEDURE = 'StoredProcedure'


@dataclass(frozen=True)
class SqlType:
    """
    명시적 네이티브 타입 태그

    odbc_type은 ODBC SQL 데이터 타입 코드 (sql.h / sqlext.h).
    cursor.setinputsizes()에 (odbc_type, size, scale) 형태로 전달된다.
    """
    name: str
    odbc_type: int
    size: int = 0
    scale: int = 0

    def input_size(self) -> tuple[int, int, int]:
        return (self.odbc_type, self.size, self.scale)

    def __str__(self) -> str:
        if self.name in ('DECIMAL', 'NUMERIC'):
            return f"{self.name}({self.size}, {self.scale})"
        if self.name in ('NVARCHAR', 'VARCHAR', 'VARBINARY'):
            return f"{self.name}({self.size or 'MAX'})"
        return self.name


INT = SqlType('INT', 4)
BIGINT = SqlType('BIGINT', -5)
SMALLINT = SqlType('SMALLINT', 5)
TINYINT = SqlType('TINYINT', -6)
BIT = SqlType('BIT', -7)
FLOAT = SqlType('FLOAT', 8, 53)
REAL = SqlType('REAL', 7, 24)
DATE = SqlType('DATE', 91, 10)
TIME = SqlType('TIME', 92, 16, 7)
DATETIME2 = SqlType('DATETIME2', 93, 27, 7)
UNIQUEIDENTIFIER = SqlType('UNIQUEIDENTIFIER', -11, 36)
NVARCHAR_MAX = SqlType('NVARCHAR', -10)


def DECIMAL(precision: int = 18, scale: int = 0) -> SqlType:
    return SqlType('DECIMAL', 3, precision, scale)


def NVARCHAR(length: int = 4000) -> SqlType:
    return SqlType('NVARCHAR', -9, length)


def VARCHAR(length: int = 8000) -> SqlType:
    return SqlType('VARCHAR', 12, length)


def VARBINARY(length: int = 8000) -> SqlType:
    return SqlType('VARBINARY', -3, length)


@dataclass(frozen=True)
class Parameter:
    """
    쿼리 입력 파라미터

    Args:
        name: 파라미터 이름 (SQL에서 @name으로 참조)
        value: 바인딩 값
        type: 명시적 타입 (None이면 드라이버가 값으로 추론)
    """
    name: str
    value: SqlValue
    type: SqlType | None = None


@dataclass
class ExecutionOutcome:
    """쿼리 실행 결과 (호출마다 새로 생성)"""
    record_sets: list[list[Row]] = field(default_factory=list)
    rows_affected: list[int] = field(default_factory=list)
    return_value: int | None = None

    @property
    def record_set(self) -> list[Row]:
        """첫 번째 레코드셋 (없으면 빈 리스트)"""
        return self.record_sets[0] if self.record_sets else []


class RawSql(str):
    """
    이스케이프 없이 SQL에 그대로 삽입되는 조각 (테이블명, WHERE 절)

    호출자가 외부 입력이 섞이지 않도록 보장해야 한다.
    """


def quote_identifier(name: str) -> str:
    """[name] 형태로 식별자 인용"""
    return '[' + name.replace(']', ']]') + ']'


class Filter:
    """
    컬럼 동등 비교 필터

    exists()/count()에서 RawSql WHERE 절 대신 사용할 수 있다.
    값은 모두 바인딩 파라미터로 전달된다.

    사용 예시:
        await helper.count('Orders', Filter(Status='Open', CustomerId=7))
    """

    PARAM_PREFIX = 'f_'

    def __init__(self, **equals: SqlValue):
        if not equals:
            raise ValueError("Filter requires at least one column")
        for column in equals:
            if not IDENTIFIER_PATTERN.match(column):
                raise ValueError(f"Invalid filter column: {column!r}")
        self._equals = equals

    def render(self) -> tuple[str, list[Parameter]]:
        """WHERE 절과 바인딩 파라미터 반환"""
        clauses = []
        parameters = []
        for column, value in self._equals.items():
            if value is None:
                clauses.append(f"{quote_identifier(column)} IS NULL")
                continue
            name = f"{self.PARAM_PREFIX}{column}"
            clauses.append(f"{quote_identifier(column)} = @{name}")
            parameters.append(Parameter(name, value))
        return ' AND '.join(clauses), parameters

    def __repr__(self) -> str:
        return f"Filter({self._equals!r})"
