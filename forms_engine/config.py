"""Configuration utilities for the forms engine.

This module loads application configuration with the following rules:
- Primary source: `forms_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_FORMS_CONFIG = Path("forms_config.json")
logger = logging.getLogger(__name__)

ONE_DAY_MS = 24 * 60 * 60 * 1000
TWENTY_MINUTES_MS = 20 * 60 * 1000


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class AppConfig(BaseModel):
    session_timeout: int = Field(default=ONE_DAY_MS, gt=0)
    confirmation_session_timeout: int = Field(default=TWENTY_MINUTES_MS, gt=0)
    designer_url: str = "http://localhost:3000"
    service_name: str = "Forms"
    forms_dir: str = "forms"
    forms_api_url: Optional[str] = None
    upload_api_url: Optional[str] = None
    cache_backend: str = "memory"
    database_url: str = "sqlite+pysqlite:///:memory:"
    submission_email: Optional[str] = None
    session_cookie_name: str = "forms_session"
    log_level: str = "INFO"

    @field_validator("cache_backend")
    @classmethod
    def cache_backend_must_be_known(cls, v: str) -> str:
        allowed = {"memory", "sql"}
        if v not in allowed:
            raise ValueError(f"cache_backend must be one of {sorted(allowed)}")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError("log_level must be DEBUG, INFO, WARNING or ERROR")
        return level

    @field_validator("session_cookie_name", "database_url")
    @classmethod
    def must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("value must be a non-empty string")
        return v


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


# (field name, environment variable, override file under config/)
_SOURCES = (
    ("session_timeout", "SESSION_TIMEOUT", "session.timeout"),
    ("confirmation_session_timeout", "CONFIRMATION_SESSION_TIMEOUT", "session.confirmation_timeout"),
    ("designer_url", "DESIGNER_URL", "designer.url"),
    ("service_name", "SERVICE_NAME", "service.name"),
    ("forms_dir", "FORMS_DIR", "forms.dir"),
    ("forms_api_url", "FORMS_API_URL", "forms.api_url"),
    ("upload_api_url", "UPLOAD_API_URL", "upload.api_url"),
    ("cache_backend", "CACHE_BACKEND", "cache.backend"),
    ("database_url", "DATABASE_URL", "database.url"),
    ("submission_email", "SUBMISSION_EMAIL", "submission.email"),
    ("session_cookie_name", "SESSION_COOKIE_NAME", "session.cookie_name"),
    ("log_level", "LOG_LEVEL", "logging.level"),
)


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) forms_config.json at project root
    4) Defaults declared on AppConfig
    """

    base = _read_json_file(ROOT_FORMS_CONFIG)
    values: dict = {}
    for field_name, env_key, file_key in _SOURCES:
        value = _env(env_key) or _read_config_file(file_key)
        if value is None and base.get(field_name) is not None:
            value = base[field_name]
        if value is not None:
            values[field_name] = value

    try:
        return AppConfig(**values)
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "ONE_DAY_MS",
    "TWENTY_MINUTES_MS",
    "load_config",
]
