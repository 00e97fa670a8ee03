"""Runtime configuration for the hotel platform.

Relies on pydantic-settings so that environment variables (prefixed with ``YISU_``)
can override defaults. See `.env.example` for common values.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Iterable, Literal, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_HOLIDAY_DATES: tuple[str, ...] = ("01-01", "05-01", "10-01")


class Settings(BaseSettings):
    """Captures runtime configuration for the platform."""

    storage_backend: Literal["json", "sqlite"] = Field(
        default="json", description="Backing store used for whole-snapshot persistence"
    )
    json_storage_path: Path = Field(
        default=Path("data/store.json"), description="Snapshot file used by the JSON backend"
    )
    sqlite_storage_path: Path = Field(
        default=Path("data/store.sqlite3"), description="Database file used by the SQLite backend"
    )
    sqlite_busy_timeout_ms: int = Field(default=2000, description="SQLite busy timeout for locks")
    sqlite_journal_mode: str | None = Field(default="wal")
    sqlite_synchronous: str | None = Field(default="normal")

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("data/logs"))

    password_salt: str = Field(
        default="yisu_demo_salt", description="Salt fed to scrypt when hashing passwords"
    )

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    review_page_size: int = Field(default=20, ge=1, description="Default page size of the admin review list")

    weekend_surcharge: float = Field(default=0.2, ge=0, description="Rate added for Friday and Saturday nights")
    holiday_surcharge: float = Field(default=0.3, ge=0, description="Rate added for nights on a holiday date")
    holiday_dates: Annotated[Tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_HOLIDAY_DATES,
        description="Month-day (MM-DD) holidays; comma-separated when provided via env",
    )

    model_config = SettingsConfigDict(
        env_prefix="YISU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("json_storage_path", "sqlite_storage_path", "log_dir", mode="before")
    def _expand_path(cls, value: str | Path) -> Path:
        if isinstance(value, Path):
            return value
        return Path(value).expanduser()

    @field_validator("sqlite_journal_mode", "sqlite_synchronous", mode="before")
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("holiday_dates", mode="before")
    def _parse_holiday_dates(cls, value: object) -> Tuple[str, ...]:
        if value is None or value == "":
            return ()
        if isinstance(value, str):
            items: Iterable[str] = (part.strip() for part in value.split(","))
        elif isinstance(value, (list, tuple)):
            items = (str(part).strip() for part in value)
        else:
            raise ValueError("holiday_dates must be provided as a comma-separated string or list")
        dates = tuple(item for item in items if item)
        for item in dates:
            month, _, day = item.partition("-")
            if not (len(month) == 2 and len(day) == 2 and month.isdigit() and day.isdigit()):
                raise ValueError(f"holiday date '{item}' must use the MM-DD format")
        return dates

    @field_validator("log_level")
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{value}'")
        return level

    def storage_path(self) -> Path:
        if self.storage_backend == "sqlite":
            return self.sqlite_storage_path
        return self.json_storage_path

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.storage_path().parent.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
