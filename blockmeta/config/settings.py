"""
Service settings.

Loads MySQL connection settings from environment variables using
pydantic-settings. Variables are namespaced with the ``SVC_`` prefix and
may also come from an env file whose path is given by ``SVC_CONFIG_PATH``.
"""

import os
from functools import lru_cache

from loguru import logger
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockmeta.config.constants import DEFAULT_PORT

CONFIG_PATH_ENV_KEY = "SVC_CONFIG_PATH"
CONFIG_PREFIX = "SVC_"
DEFAULT_CONFIG_FILE = ".env"


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    # MySQL
    mysql_host: str = ""
    mysql_port: int = Field(
        default=DEFAULT_PORT, ge=1, le=65535, description="MySQL server port"
    )
    mysql_user: str = ""
    mysql_password: SecretStr = SecretStr("")
    mysql_name: str = ""

    # Application
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix=CONFIG_PREFIX,
        env_file=DEFAULT_CONFIG_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def storage_enabled(self) -> bool:
        """MySQL metadata storage is used only when a host is configured."""
        return bool(self.mysql_host.strip())


def config_file_path() -> str:
    """Env file path, overridable through ``SVC_CONFIG_PATH``."""
    return os.environ.get(CONFIG_PATH_ENV_KEY) or DEFAULT_CONFIG_FILE


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load settings once per process.

    Returns:
        Settings read from the environment and the configured env file
    """
    filename = config_file_path()
    logger.info(f"Trying to read the config file from [{filename}]")
    return Settings(_env_file=filename)
