"""
sqlhelper 관련 예외 클래스 정의
"""


class SqlHelperError(Exception):
    """sqlhelper 기본 예외"""
    def __init__(self, message: str, original: BaseException | None = None):
        self.message = message
        self.original = original
        super().__init__(self.message)


class ConfigurationError(SqlHelperError):
    """설정 누락 또는 유효하지 않은 설정"""
    pass


class DatabaseConnectionError(SqlHelperError):
    """커넥션풀/커넥션 생성 실패"""
    pass


class ExecutionError(SqlHelperError):
    """쿼리 또는 프로시저 실행 실패"""
    pass


class ParameterBindingError(ExecutionError):
    """파라미터 바인딩 실패 (이름/값 타입 오류)"""
    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"Cannot bind parameter '{name}': {message}")
