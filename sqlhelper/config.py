"""
SQL Server 연결 설정

pydantic 모델로 설정을 검증하고, 생략된 값은 기본값으로 채운다.
환경변수 또는 YAML 파일(config/database.yaml)에서 읽을 수 있다.

YAML 예시:
    databases:
      default:
        server: localhost
        database: app
        user: sa
        password: secret
        pool:
          max: 20
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from sqlhelper.exception import ConfigurationError

DEFAULT_DRIVER = 'ODBC Driver 18 for SQL Server'


class ConnectionOptions(BaseModel):
    """연결 옵션 (정의되지 않은 키는 ODBC 연결 문자열에 그대로 추가)"""
    model_config = ConfigDict(frozen=True, extra='allow')

    trust_server_certificate: bool = True
    trusted_connection: bool = True
    enable_arith_abort: bool = True
    driver: str = DEFAULT_DRIVER
    connect_timeout: int = Field(default=15, ge=0, description="로그인 타임아웃 (초)")

    def extra_flags(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class PoolOptions(BaseModel):
    """커넥션풀 설정"""
    model_config = ConfigDict(frozen=True)

    max: int = Field(default=60, ge=1)
    min: int = Field(default=5, ge=0)
    idle_timeout_millis: int = Field(default=60000, ge=0)

    @model_validator(mode='after')
    def _check_bounds(self) -> 'PoolOptions':
        if self.min > self.max:
            raise ValueError(f"pool.min ({self.min}) must not exceed pool.max ({self.max})")
        return self

    @property
    def recycle_seconds(self) -> int:
        return self.idle_timeout_millis // 1000


class SqlConfig(BaseModel):
    """SQL Server 접속 설정"""
    model_config = ConfigDict(frozen=True)

    user: str = ''
    password: str = Field(default='', repr=False)
    server: str = ''
    database: str = ''
    port: int | None = None
    options: ConnectionOptions = Field(default_factory=ConnectionOptions)
    pool: PoolOptions = Field(default_factory=PoolOptions)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> 'SqlConfig':
        """환경변수(db_user, db_password, server, database)에서 설정 생성"""
        env = os.environ if environ is None else environ
        return load_config({
            'user': env.get('db_user', ''),
            'password': env.get('db_password', ''),
            'server': env.get('server', ''),
            'database': env.get('database', ''),
        })

    @classmethod
    def from_yaml(cls, path: str | Path, name: str = 'default') -> 'SqlConfig':
        """YAML 파일의 databases.<name> 항목에서 설정 생성"""
        try:
            with open(path, encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {path}: {e}", e) from e

        databases = data.get('databases', {}) if isinstance(data, dict) else {}
        if name not in databases:
            raise ConfigurationError(f"Database '{name}' not found in {path}")
        return load_config(databases[name])

    def connection_string(self) -> str:
        """ODBC 연결 문자열 생성"""
        server = self.server if self.port is None else f"{self.server},{self.port}"
        parts = {
            'DRIVER': '{' + self.options.driver + '}',
            'SERVER': _odbc_value(server),
            'DATABASE': _odbc_value(self.database),
        }
        if self.user:
            parts['UID'] = _odbc_value(self.user)
            parts['PWD'] = _odbc_value(self.password)
        elif self.options.trusted_connection:
            # UID가 있으면 Trusted_Connection이 SQL 인증을 무시하므로 사용자 미지정 시에만 적용
            parts['Trusted_Connection'] = 'yes'
        if self.options.trust_server_certificate:
            parts['TrustServerCertificate'] = 'yes'
        for key, value in self.options.extra_flags().items():
            parts[key] = _odbc_value(value)
        return ';'.join(f"{key}={value}" for key, value in parts.items())


def load_config(config: 'SqlConfig | Mapping[str, Any]') -> SqlConfig:
    """SqlConfig 또는 dict를 검증된 SqlConfig로 변환"""
    if isinstance(config, SqlConfig):
        return config
    try:
        return SqlConfig.model_validate(dict(config))
    except (ValidationError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid database configuration: {e}", e) from e


def _odbc_value(value: Any) -> str:
    """ODBC 연결 문자열 값 인코딩 (특수문자는 {}로 감쌈)"""
    if isinstance(value, bool):
        return 'yes' if value else 'no'
    text = str(value)
    if any(ch in text for ch in ';{}=') or text != text.strip():
        return '{' + text.replace('}', '}}') + '}'
    return text
