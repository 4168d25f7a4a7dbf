"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from satprep.config.app_config import load_app_config, get_quota_table

    config = load_app_config()
    quotas = get_quota_table()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "SATPREP_DB_PATH"


@dataclass
class DatabaseConfig:
    """Configuration for the SQLite store."""

    path: str = "db/satprep.db"


@dataclass
class ScoringConfig:
    """Scoring defaults used when a test does not define its own."""

    default_max_score: int = 1600
    default_passing_score: int = 1000


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    timezone: str = "UTC"
    # tier -> max completed attempts per test; None means unlimited
    quotas: dict[str, int | None] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/satprep.db"},
        "scoring": {
            "default_max_score": 1600,
            "default_passing_score": 1000,
        },
        "clock": {"timezone": "UTC"},
        "quotas": {},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    database = DatabaseConfig(path=db_data.get("path", "db/satprep.db"))

    scoring_data = data.get("scoring") or {}
    scoring = ScoringConfig(
        default_max_score=int(scoring_data.get("default_max_score", 1600)),
        default_passing_score=int(scoring_data.get("default_passing_score", 1000)),
    )

    clock_data = data.get("clock") or {}

    quotas: dict[str, int | None] = {}
    for tier, limit in (data.get("quotas") or {}).items():
        quotas[str(tier).lower()] = None if limit is None else int(limit)

    return AppConfig(
        database=database,
        scoring=scoring,
        timezone=clock_data.get("timezone", "UTC"),
        quotas=quotas,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)

    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        config.database.path = env_path

    _cached_config = config
    return _cached_config


def get_db_path() -> Path:
    """Get the configured database path."""
    return Path(load_app_config().database.path)


def get_quota_table() -> dict[str, int | None]:
    """Get quota overrides from config (tier -> limit, None = unlimited)."""
    return dict(load_app_config().quotas)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
