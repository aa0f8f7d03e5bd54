"""
Settings for RugPlay Market Analyzer
Pydantic-validated configuration loaded from .env, an optional YAML file and
environment overrides (in that order, later sources win)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from utils.constants import (
    API_BASE_URL,
    DEFAULT_HOLDERS_LIMIT,
    DEFAULT_RATE_LIMIT,
    DEFAULT_REQUEST_TIMEOUT,
)
from utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = str(Path.home() / ".rugplay" / "store.json")

# env var -> (section, field)
ENV_OVERRIDES = {
    'RUGPLAY_API_URL': ('api', 'base_url'),
    'RUGPLAY_REQUEST_TIMEOUT': ('api', 'request_timeout'),
    'RUGPLAY_RATE_LIMIT': ('api', 'rate_limit'),
    'RUGPLAY_HOLDERS_LIMIT': ('api', 'holders_limit'),
    'RUGPLAY_STORAGE_BACKEND': ('storage', 'backend'),
    'RUGPLAY_STORAGE_PATH': ('storage', 'path'),
    'REDIS_URL': ('storage', 'redis_url'),
    'LOG_LEVEL': ('logging', 'level'),
    'LOG_FORMAT': ('logging', 'format'),
    'LOG_DIR': ('logging', 'log_dir'),
}


class ApiConfig(BaseModel):
    """Data-source API configuration schema"""
    base_url: str = API_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT  # seconds
    rate_limit: int = DEFAULT_RATE_LIMIT  # requests per minute
    holders_limit: int = DEFAULT_HOLDERS_LIMIT

    @field_validator('request_timeout', 'rate_limit', 'holders_limit')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError('must be positive')
        return v

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('base_url must be an http(s) URL')
        return v.rstrip('/')


class StorageConfig(BaseModel):
    """Key-value store configuration schema"""
    backend: str = "file"
    path: str = DEFAULT_STORAGE_PATH
    redis_url: Optional[str] = None

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        v = v.lower()
        if v not in ('memory', 'file', 'redis'):
            raise ValueError("backend must be one of: memory, file, redis")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration schema"""
    level: str = "INFO"
    format: str = "text"
    log_dir: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        v = v.upper()
        if v not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'unknown log level {v}')
        return v

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        v = v.lower()
        if v not in ('json', 'text'):
            raise ValueError("format must be 'json' or 'text'")
        return v


class DisplayConfig(BaseModel):
    """CLI display configuration schema"""
    transactions_per_page: int = Field(default=15, ge=1)
    color: bool = True


class Settings(BaseModel):
    """All configuration sections"""
    api: ApiConfig = Field(default_factory=ApiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings.

    Args:
        path: Optional YAML file with top-level sections api/storage/logging/display

    Raises:
        ConfigurationError: Unreadable file or invalid values
    """
    load_dotenv()

    data: Dict[str, Any] = {}
    if path:
        data = _read_yaml(Path(path))

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None and value != '':
            data.setdefault(section, {})[key] = value

    try:
        settings = Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.debug(f"Settings loaded (storage={settings.storage.backend}, log_level={settings.logging.level})")
    return settings


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    for section, values in data.items():
        if not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping")
    return data
