"""
파라미터 바인딩

Parameter 목록을 호출 단위 Request에 입력으로 추가하고,
ODBC 드라이버가 받는 위치 기반(?) SQL로 변환한다.

- 텍스트 쿼리: @name 참조를 ? 로 치환 (문자열/주석/@@시스템함수 제외)
- 프로시저: EXEC proc @name = ? 형태로 생성하고 반환 코드를 함께 조회
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from sqlhelper.exception import ExecutionError, ParameterBindingError
from sqlhelper.model import (
    IDENTIFIER_PATTERN,
    SQL_VALUE_TYPES,
    Parameter,
    SqlType,
    SqlValue,
    quote_identifier,
)

PARAM_MARKER = '@'
RETURN_VALUE_COLUMN = '__return_value'

_REF_PATTERN = re.compile(
    r"(?P<squote>'(?:[^']|'')*')"
    r'|(?P<dquote>"(?:[^"]|"")*")'
    r"|(?P<bracket>\[(?:[^\]]|\]\])*\])"
    r"|(?P<line_comment>--[^\n]*)"
    r"|(?P<block_comment>/\*.*?\*/)"
    r"|(?P<system>@@\w+)"
    r"|@(?P<var_name>[A-Za-z_][A-Za-z0-9_]*)",
    re.DOTALL,
)

_PROCEDURE_PART = r'(?:\[(?:[^\]]|\]\])+\]|[A-Za-z_#][\w$#@]*)'
_PROCEDURE_PATTERN = re.compile(rf'^{_PROCEDURE_PART}(?:\.{_PROCEDURE_PART}){{0,3}}$')


@dataclass
class BoundInput:
    """요청에 추가된 입력 파라미터"""
    name: str
    value: SqlValue
    type: SqlType | None = None


@dataclass
class Statement:
    """드라이버에 전달할 SQL과 위치 기반 값"""
    sql: str
    values: list[SqlValue]
    input_sizes: list[tuple[int, int, int] | None] | None = None


class Request:
    """호출 단위 요청 컨텍스트 (호출 간 재사용하지 않음)"""

    def __init__(self):
        self._inputs: dict[str, BoundInput] = {}

    def input(self, name: str, value: SqlValue, sql_type: SqlType | None = None) -> 'Request':
        """입력 파라미터 추가"""
        if not name:
            raise ParameterBindingError(name, "name must not be empty")
        if not IDENTIFIER_PATTERN.match(name):
            raise ParameterBindingError(name, "name is not a valid identifier")
        if value is not None and not isinstance(value, SQL_VALUE_TYPES):
            raise ParameterBindingError(name, f"unsupported value type {type(value).__name__}")
        key = name.lower()
        if key in self._inputs:
            raise ParameterBindingError(name, "parameter already bound")
        self._inputs[key] = BoundInput(name, value, sql_type)
        return self

    @property
    def inputs(self) -> list[BoundInput]:
        return list(self._inputs.values())

    def render_text(self, query: str) -> Statement:
        """@name 참조를 ? 로 치환한 텍스트 쿼리"""
        bound: list[BoundInput] = []

        def _replacer(ma: re.Match) -> str:
            var_name = ma.group('var_name')
            if var_name is None:
                return ma.group(0)
            bound_input = self._inputs.get(var_name.lower())
            if bound_input is None:
                # DECLARE된 지역 변수 등
                return ma.group(0)
            bound.append(bound_input)
            return '?'

        sql = _REF_PATTERN.sub(_replacer, query)
        return _statement(sql, bound)

    def render_procedure(self, procedure: str) -> Statement:
        """반환 코드를 함께 조회하는 EXEC 배치"""
        procedure = procedure.strip()
        if not _PROCEDURE_PATTERN.match(procedure):
            raise ExecutionError(f"Invalid stored procedure name: {procedure!r}")

        bound = self.inputs
        arguments = ', '.join(f"{PARAM_MARKER}{item.name} = ?" for item in bound)
        variable = f"{PARAM_MARKER}{RETURN_VALUE_COLUMN}"
        exec_line = f"EXEC {variable} = {procedure}"
        if arguments:
            exec_line = f"{exec_line} {arguments}"
        sql = (
            f"DECLARE {variable} INT;\n"
            f"{exec_line};\n"
            f"SELECT {variable} AS {quote_identifier(RETURN_VALUE_COLUMN)};"
        )
        return _statement(sql, bound)


def normalize_name(name: str, strip_marker: bool = False) -> str:
    """strip_marker면 앞의 @ 하나를 제거, 아니면 그대로"""
    if strip_marker and name.startswith(PARAM_MARKER):
        return name[len(PARAM_MARKER):]
    return name


def bind(request: Request, parameters: Iterable[Parameter] | None, strip_marker: bool = False) -> Request:
    """파라미터 목록을 요청에 바인딩"""
    for param in parameters or ():
        name = normalize_name(param.name, strip_marker)
        if param.type is not None:
            request.input(name, param.value, param.type)
        else:
            request.input(name, param.value)
    return request


def _statement(sql: str, bound: list[BoundInput]) -> Statement:
    values = [item.value for item in bound]
    if not any(item.type is not None for item in bound):
        return Statement(sql, values)
    input_sizes = [item.type.input_size() if item.type is not None else None for item in bound]
    return Statement(sql, values, input_sizes)
