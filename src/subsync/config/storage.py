"""Where the local resource store lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import get_env_flag

APP_DIR_NAME: Final[str] = "subsync"
DEFAULT_DB_FILENAME: Final[str] = "resources.db"
DATA_DIR_ENV: Final[str] = "SUBSYNC_DATA_DIR"
DATABASE_URI_ENVS: Final[tuple[str, ...]] = ("SUBSYNC_DATABASE_URI", "DATABASE_URI")
DATABASE_ECHO_ENV: Final[str] = "SUBSYNC_DATABASE_ECHO"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self) -> Path:
        """Path of the SQLite file; the data directory is created on demand."""

        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_storage_config() -> StorageConfig:
    configured = (os.getenv(DATA_DIR_ENV) or "").strip()
    if configured:
        return StorageConfig(data_dir=Path(configured))
    xdg_data_home = (os.getenv("XDG_DATA_HOME") or "").strip()
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """An explicit URI wins over the SQLite file in the data directory."""

    echo = get_env_flag(DATABASE_ECHO_ENV)
    for name in DATABASE_URI_ENVS:
        uri = (os.getenv(name) or "").strip()
        if uri:
            return DatabaseConfig(uri=uri, echo=echo)
    path = (storage or get_storage_config()).database_path()
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}", echo=echo)
