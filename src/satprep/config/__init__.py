"""Configuration package for satprep."""

from satprep.config.app_config import (
    AppConfig,
    DatabaseConfig,
    ScoringConfig,
    clear_config_cache,
    get_db_path,
    get_quota_table,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "ScoringConfig",
    "clear_config_cache",
    "get_db_path",
    "get_quota_table",
    "load_app_config",
]
