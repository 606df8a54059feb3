"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(..., description="Directory holding the studio database and caches")
    db_path: Path = Field(..., description="SQLite database file for projects and edit sessions")
    html_caches_dir: Path = Field(
        ...,
        description="Directory where imported HTML mockups are extracted, one folder per project",
    )
    default_editor_name: str = Field(
        default="Anonymous",
        min_length=1,
        max_length=100,
        description="Editor label stored when a client registers without a name",
    )
    log_level: str = Field(default="INFO", description="Root log level for the server process")
    host: str = Field(default="127.0.0.1", description="Bind address for the development server")
    port: int = Field(default=3000, ge=1, le=65535, description="Port for the development server")

    @field_validator("data_dir", "db_path", "html_caches_dir", mode="before")
    @classmethod
    def _normalize_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("Path settings cannot be empty")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Optional[str]) -> str:
        if value is None:
            return "INFO"
        level = str(value).upper().strip()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"STUDIO_LOG_LEVEL must be one of {sorted(allowed)}, got: {value!r}")
        return level


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    data_dir = _read_env("STUDIO_DATA_DIR", str(DEFAULT_DATA_DIR))
    db_path = _read_env("STUDIO_DB_PATH", str(Path(data_dir) / "studio.db"))
    html_caches_dir = _read_env("STUDIO_HTML_CACHES_DIR", str(Path(data_dir) / "html_caches"))
    default_editor_name = _read_env("STUDIO_DEFAULT_EDITOR_NAME", "Anonymous")
    log_level = _read_env("STUDIO_LOG_LEVEL", "INFO")
    host = _read_env("STUDIO_HOST", "127.0.0.1")

    port_str = _read_env("STUDIO_PORT", "3000")
    try:
        port = int(port_str)
    except ValueError:
        port = 3000

    config = AppConfig(
        data_dir=data_dir,
        db_path=db_path,
        html_caches_dir=html_caches_dir,
        default_editor_name=default_editor_name,
        log_level=log_level,
        host=host,
        port=port,
    )
    # Ensure data directories exist for downstream services.
    config.data_dir.mkdir(parents=True, exist_ok=True)
    config.html_caches_dir.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DATA_DIR"]
