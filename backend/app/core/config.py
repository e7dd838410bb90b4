"""Application configuration."""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = Field(default="evidence-review-backend", validation_alias="APP_NAME")
    environment: str = Field(default="dev", validation_alias="ENVIRONMENT")
    api_prefix: str = Field(default="/api/v1", validation_alias="API_PREFIX")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "text"] = Field(default="json", validation_alias="LOG_FORMAT")

    case_count: int = Field(default=750, ge=0, validation_alias="CASE_COUNT")
    sla_hours: int = Field(default=48, ge=1, validation_alias="SLA_HOURS")
    data_seed: Optional[int] = Field(default=None, validation_alias="DATA_SEED")

    min_latency_ms: int = Field(default=200, ge=0, validation_alias="MIN_LATENCY_MS")
    max_latency_ms: int = Field(default=2000, ge=0, validation_alias="MAX_LATENCY_MS")
    failure_rate: float = Field(default=0.05, ge=0.0, le=1.0, validation_alias="FAILURE_RATE")

    retry_attempts: int = Field(default=3, ge=1, validation_alias="RETRY_ATTEMPTS")
    retry_base_delay_ms: int = Field(default=1000, ge=0, validation_alias="RETRY_BASE_DELAY_MS")

    default_limit: int = Field(default=50, ge=1)
    max_limit: int = Field(default=500, ge=1)

    class Config:
        env_prefix = ""
        env_file = ".env"
        env_file_encoding = "utf-8"

    @model_validator(mode="after")
    def _check_latency_range(self) -> "Settings":
        if self.min_latency_ms > self.max_latency_ms:
            raise ValueError("MIN_LATENCY_MS must not exceed MAX_LATENCY_MS")
        return self

    @property
    def min_latency_seconds(self) -> float:
        return self.min_latency_ms / 1000

    @property
    def max_latency_seconds(self) -> float:
        return self.max_latency_ms / 1000

    @property
    def retry_base_delay_seconds(self) -> float:
        return self.retry_base_delay_ms / 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings."""
    return Settings()
