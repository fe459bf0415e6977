from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10
    # Event timestamps are naive local times; keep NOW() on the same clock.
    time_zone: Optional[str] = None

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "timeclock_db")),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
            time_zone=db_config.get("time_zone") or None,
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory shared by the MySQL repositories.

    Each repository call opens and closes its own connection, so the factory
    holds configuration only.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        c = self._config
        options = {
            "host": c.host,
            "port": c.port,
            "user": c.user,
            "password": c.password,
            "charset": "utf8mb4",
            "connection_timeout": c.connect_timeout,
            "use_pure": True,
        }
        if with_database:
            options["database"] = c.database
        if c.time_zone:
            options["time_zone"] = c.time_zone
        return mysql.connector.connect(**options)
