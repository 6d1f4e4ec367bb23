"""Configuration schema - Pydantic models for bashrun config files."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if value.strip().lower() not in {"debug", "info", "warn", "warning", "error"}:
            raise ValueError(f"invalid log level: {value}")
        return value


class Config(BaseModel):
    """Top-level bashrun configuration."""
    timeout_ms: int = Field(30_000, alias="timeoutMs", gt=0)
    shell: Optional[str] = None
    wsl_executable: str = Field("wsl", alias="wslExecutable", min_length=1)
    cache_probe: bool = Field(False, alias="cacheProbe")
    probe_timeout_ms: int = Field(10_000, alias="probeTimeoutMs", gt=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
