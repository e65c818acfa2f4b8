"""
Database engine configuration.

Builds the pooled SQLAlchemy engine used by the metadata store from
immutable connection parameters.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from blockmeta.config.constants import DEFAULT_HOST, DEFAULT_PORT
from blockmeta.config.settings import Settings

MYSQL_DRIVER = "mysql+pymysql"


@dataclass(frozen=True)
class StoreConnectionParams:
    """
    Connection parameters for the MySQL metadata store.

    Used once to build the store and never mutated afterwards.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = ""
    password: str = ""
    db_name: str = ""
    timeout: float | None = None
    read_only: bool = True

    @classmethod
    def from_settings(
        cls, settings: Settings, timeout: float | None = None
    ) -> "StoreConnectionParams":
        """
        Build parameters from service settings.

        Args:
            settings: Loaded service settings
            timeout: Per-query timeout in seconds

        Returns:
            Connection parameters
        """
        return cls(
            host=settings.mysql_host,
            port=settings.mysql_port,
            username=settings.mysql_user,
            password=settings.mysql_password.get_secret_value(),
            db_name=settings.mysql_name,
            timeout=timeout,
        )

    @property
    def url(self) -> URL:
        return URL.create(
            MYSQL_DRIVER,
            username=self.username or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.db_name or None,
        )

    def __repr__(self) -> str:
        return (
            f"StoreConnectionParams(host={self.host!r}, port={self.port}, "
            f"username={self.username!r}, password='***', "
            f"db_name={self.db_name!r}, timeout={self.timeout}, "
            f"read_only={self.read_only})"
        )


def create_storage_engine(params: StoreConnectionParams) -> Engine:
    """
    Create a pooled engine for the metadata store.

    The pool hands out distinct connections to concurrent callers.

    Args:
        params: Connection parameters

    Returns:
        SQLAlchemy engine
    """
    connect_args: dict[str, Any] = {}
    if params.timeout:
        seconds = max(1, int(params.timeout))
        connect_args["connect_timeout"] = seconds
        connect_args["read_timeout"] = seconds
    if params.read_only:
        connect_args["init_command"] = "SET SESSION TRANSACTION READ ONLY"

    return create_engine(
        params.url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args=connect_args,
    )
