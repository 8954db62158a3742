"""Configuration management for SQLOrder."""

from sqlorder.config.models import (
    DatabaseType,
    DatabaseConfig,
    IsolationLevel,
    PositionSettings,
    SQLOrderConfig,
    EnvironmentSettings,
)
from sqlorder.config.parser import (
    ConfigParser,
    get_config,
    validate_config_file,
    create_sample_config,
)

__all__ = [
    # Models
    "DatabaseType",
    "DatabaseConfig",
    "IsolationLevel",
    "PositionSettings",
    "SQLOrderConfig",
    "EnvironmentSettings",
    # Parser
    "ConfigParser",
    "get_config",
    "validate_config_file",
    "create_sample_config",
]
