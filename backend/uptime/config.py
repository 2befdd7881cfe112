"""Application configuration from environment variables and the targets file."""
import os
from typing import List

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from .schemas.target import MonitorConfig


class ConfigError(Exception):
    """Raised when the targets file is missing, malformed or invalid."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Path to the YAML file with targets and notification settings
    config_path: str = "config.yaml"

    # Path for SQLite database storage (used if DATABASE_URL not set)
    data_path: str = "/data"

    # Database URL (optional - overrides the default SQLite file if set)
    # Format: sqlite+aiosqlite:///path/to/uptime.db
    database_url: str | None = None

    # Web server port
    web_port: int = 8080

    # Number of events returned by the history endpoint when no limit is given
    history_limit: int = 100

    # Pending notifications kept before new ones are dropped
    notify_queue_size: int = 100

    class Config:
        env_prefix = ""
        case_sensitive = False


settings = Settings()


def get_database_url() -> str:
    """Get the database URL.

    Priority:
    1. DATABASE_URL environment variable
    2. Default SQLite in DATA_PATH
    """
    if settings.database_url:
        url = settings.database_url
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    db_path = os.path.join(settings.data_path, "uptime.db")
    return f"sqlite+aiosqlite:///{db_path}"


def load_monitor_config(path: str) -> MonitorConfig:
    """Load and validate the targets file.

    Any problem is fatal: the caller must not start polling with a partially
    valid target list.

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return parse_monitor_config(raw or {})


def parse_monitor_config(raw: dict) -> MonitorConfig:
    """Validate an already-parsed config mapping."""
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    try:
        config = MonitorConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid target configuration: {e}") from e

    seen: List[str] = []
    for target in config.targets:
        if target.id in seen:
            raise ConfigError(f"Duplicate target id: {target.id}")
        seen.append(target.id)

    return config
