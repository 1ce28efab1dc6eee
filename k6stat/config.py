"""
Application Configuration using Pydantic Settings

Loads configuration from environment variables with sensible defaults.
Variable names keep the K6_STAT_* convention used by the load-test
deployment scripts.
"""

from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ========================================================================
    # HTTP Service Settings
    # ========================================================================
    # Listen address in host:port form; an empty host binds all interfaces.
    K6_STAT_LISTEN: str = ":8080"
    APP_DEBUG: bool = False
    APP_RELOAD: bool = False

    # ========================================================================
    # ClickHouse Connection Settings
    # ========================================================================
    K6_STAT_DB_ADDR: str = "http://localhost:8123"
    K6_STAT_DB: str = "default"
    K6_STAT_DB_PARAM: str = "dial_timeout=200ms&max_execution_time=60"
    K6_STAT_DB_MAX_CONN: int = 10

    # Client-side request timeout (seconds) and startup retry policy.
    K6_STAT_DB_TIMEOUT: float = 60.0
    K6_STAT_DB_MAX_RETRIES: int = 3
    K6_STAT_DB_RETRY_DELAY: float = 1.0

    # ========================================================================
    # Storage Settings
    # ========================================================================
    K6_STAT_TABLE_TESTS: str = "k6_tests"
    K6_STAT_TABLE_SAMPLES: str = "k6_samples"

    # ========================================================================
    # Security Settings
    # ========================================================================
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("K6_STAT_DB_MAX_CONN")
    @classmethod
    def _check_max_conn(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("invalid max connections")
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _build_cors_origins(cls, v):
        if isinstance(v, str):
            if not v.strip():
                return ["*"]
            import json

            return json.loads(v)
        return v

    # ========================================================================
    # Logging Settings
    # ========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def listen_host(self) -> str:
        host, _, _ = self.K6_STAT_LISTEN.rpartition(":")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        _, _, port = self.K6_STAT_LISTEN.rpartition(":")
        return int(port) if port else 8080

    @property
    def dsn(self) -> str:
        """ClickHouse DSN in the <addr>/<db>?<params> form."""
        dsn = f"{self.K6_STAT_DB_ADDR.rstrip('/')}/{self.K6_STAT_DB}"
        if self.K6_STAT_DB_PARAM:
            dsn += f"?{self.K6_STAT_DB_PARAM}"
        return dsn


# Create global settings instance
settings = Settings()
