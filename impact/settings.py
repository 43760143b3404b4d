"""Application settings."""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
import logging
import os
from pathlib import Path
from typing import Optional


_DEFAULT_CATALOG_PATH = Path("tracks.db")
_DEFAULT_LOG_LEVEL = "WARNING"
_DEFAULT_MPV_STARTUP_TIMEOUT = 3.0
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    catalog_path: Path = _DEFAULT_CATALOG_PATH
    mpv_path: Optional[str] = None
    mpv_startup_timeout: float = _DEFAULT_MPV_STARTUP_TIMEOUT
    log_level: str = _DEFAULT_LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)

    def with_overrides(
        self,
        *,
        catalog_path: Optional[Path] = None,
        log_level: Optional[str] = None,
    ) -> Settings:
        """Apply command-line overrides on top of loaded settings."""
        updated = self
        if catalog_path is not None:
            updated = replace(updated, catalog_path=catalog_path)
        if log_level is not None:
            updated = replace(updated, log_level=_validate_log_level(log_level))
        return updated


def load_settings(path: Optional[Path]) -> Settings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables (IMPACT_CATALOG_DB, IMPACT_MPV_PATH, IMPACT_LOG_LEVEL)
    2. JSON config file
    3. Defaults

    Args:
        path: Path to JSON config file, or None to use defaults only

    Returns:
        Settings object with resolved values
    """
    json_settings = {}
    if path and path.exists():
        json_settings = json.loads(path.read_text())

    catalog = os.getenv("IMPACT_CATALOG_DB") or json_settings.get("catalog_path")
    catalog_path = Path(catalog).expanduser() if catalog else _DEFAULT_CATALOG_PATH

    mpv_path = os.getenv("IMPACT_MPV_PATH") or json_settings.get("mpv_path")

    timeout = json_settings.get("mpv_startup_timeout", _DEFAULT_MPV_STARTUP_TIMEOUT)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"Invalid mpv_startup_timeout: {timeout!r}")

    log_level = os.getenv("IMPACT_LOG_LEVEL") or json_settings.get("log_level", _DEFAULT_LOG_LEVEL)

    return Settings(
        catalog_path=catalog_path,
        mpv_path=mpv_path,
        mpv_startup_timeout=float(timeout),
        log_level=_validate_log_level(log_level),
    )


def default_config_path() -> Path:
    return Path.home() / ".config" / "impact" / "settings.json"


def _validate_log_level(value: str) -> str:
    level = str(value).upper()
    if level not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"Unsupported log level: {value}")
    return level
