"""Configuration settings for the AWS IP lookup service."""

import os
import pathlib
import sys

import fastapi
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AWS_RANGES_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
CF_CACHE_STATUS_HEADER = "cf-cache-status"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream dataset
    ranges_url: str = Field(default=AWS_RANGES_URL)
    freshness_header: str = Field(default=CF_CACHE_STATUS_HEADER)

    # Request Configuration
    request_timeout: int = Field(default=30, ge=5, le=300)
    max_retries: int = Field(default=3, ge=1, le=10)

    # Dataset population
    single_flight: bool = Field(default=True)
    skip_malformed_prefixes: bool = Field(default=False)

    # HTTP surface
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    workers_version: str = Field(default=fastapi.__version__)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, _env_file: str | None = None, **data: object) -> None:
        if _env_file is None:
            running_tests = 'pytest' in sys.modules or os.environ.get('PYTEST_CURRENT_TEST') is not None
            if not running_tests:
                # Nearest .env in the working directory or its parents
                current_dir = pathlib.Path.cwd()
                for path in [current_dir] + list(current_dir.parents):
                    env_file = path / '.env'
                    if env_file.exists():
                        _env_file = str(env_file)
                        break

        if _env_file and os.path.exists(_env_file):
            print(f"[AWS IP Lookup] Loading environment from: {_env_file}", file=sys.stderr)

        super().__init__(_env_file=_env_file, **data)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return fmt
