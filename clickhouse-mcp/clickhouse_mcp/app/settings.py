from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClickHouseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLICKHOUSE_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    url: str = "http://localhost:8123"
    database: str = "default"
    username: str = "default"
    password: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=0.1, ge=0)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        """HTTP 인터페이스 주소만 받아요. 끝의 슬래시는 정리해요."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("CLICKHOUSE_URL은 http:// 또는 https:// 로 시작해야 해요.")
        return value.rstrip("/")


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    server_name: str = "clickhouse-mcp"
    server_version: str = "0.1.0"
    log_level: str = "INFO"
    # true면 initialized 알림을 받기 전까지 tools/* 요청을 거절해요.
    require_initialized_notification: bool = False
    startup_health_check: bool = True
