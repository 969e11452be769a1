"""Application configuration utilities."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json."""

    database_path: str = Field(default="./data/tots.db")
    feeding_interval_hours: float = Field(default=3.0, gt=0)
    pumping_interval_hours: float = Field(default=3.0, gt=0)
    diaper_interval_hours: float = Field(default=2.0, gt=0)
    refresh_interval_seconds: float = Field(default=60.0, gt=0)
    merge_window_seconds: float = Field(default=60.0, ge=0)
    remote_events_url: Optional[str] = None
    remote_timeout_seconds: float = Field(default=15.0, gt=0)

    @property
    def resolved_database_path(self) -> Path:
        """Return the absolute path for the SQLite database file."""
        override = os.getenv("TOTS_DATABASE_PATH")
        if override:
            return Path(override).resolve()
        return (Path(__file__).resolve().parents[1] / self.database_path).resolve()


def _config_path() -> Path:
    override = os.getenv("TOTS_CONFIG_PATH")
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[1] / "config.json"


def load_config() -> AppConfig:
    """Load configuration from config.json, falling back to defaults when absent."""

    config_file = _config_path()
    if not config_file.exists():
        logger.info(
            "config file missing, using defaults",
            extra={"path": str(config_file), "example": str(config_file.with_name("config.example.json"))},
        )
        return AppConfig()

    contents: Dict[str, Any] = json.loads(config_file.read_text())
    return AppConfig(**contents)


CONFIG = load_config()
