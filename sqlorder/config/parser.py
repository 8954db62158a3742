"""Load ``sqlorder.yaml`` into a validated :class:`SQLOrderConfig`."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from sqlorder.config.models import SQLOrderConfig, EnvironmentSettings
from sqlorder.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

CONFIG_FILENAMES = ("sqlorder.yaml", "sqlorder.yml", "config/sqlorder.yaml")

# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r'\$\{(?P<name>[^}:]+?)\s*(?::-(?P<fallback>[^}]*))?\}')

# Top-level sections merged key by key when a file includes another.
_MERGED_SECTIONS = ("databases", "positions")

SAMPLE_CONFIG = """\
# SQLOrder configuration
#
# Values may reference environment variables as ${NAME} (required) or
# ${NAME:-fallback}. Other files can be pulled in with `include:`; keys in
# this file win over included ones.

databases:
  dev:
    type: mysql
    host: localhost
    port: 3306
    database: myapp_dev
    username: root
    password: "${DEV_DB_PASSWORD:-}"
    charset: utf8

  reporting:
    type: postgresql
    host: localhost
    port: 5432
    database: myapp
    username: app
    password: "${PG_PASSWORD:-app}"
    options:
      sslmode: prefer
      connect_timeout: 10

  local:
    type: sqlite
    path: ./sqlorder.db

default_database: local

# Defaults for `sqlorder pos ...` and ConnectionManager.get_position_manager()
positions:
  column: pos
  primary: id
  atomic: true
  # isolation_level: SERIALIZABLE
"""


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as file:
            return yaml.safe_load(file)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file '{path}' not found") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e


def _interpolate(value: Any) -> Any:
    """Replace environment references in every string of a loaded document."""
    if isinstance(value, dict):
        return {key: _interpolate(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_interpolate(item) for item in value]
    if not isinstance(value, str):
        return value

    def lookup(match: "re.Match[str]") -> str:
        name = match.group('name').strip()
        fallback = match.group('fallback')
        resolved = os.getenv(name)
        if resolved is not None:
            return resolved
        if fallback is None:
            raise ConfigurationError(f"Required environment variable '{name}' is not set")
        return fallback.strip()

    return _ENV_REFERENCE.sub(lookup, value)


def _overlay(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Apply ``override`` on top of ``base``.

    ``databases`` and ``positions`` merge per key, so an including file can
    add a connection or change one position default; other keys replace.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if key in _MERGED_SECTIONS and isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


class ConfigParser:
    """Finds, reads and validates SQLOrder configuration files."""

    def __init__(self) -> None:
        self.env_settings = EnvironmentSettings()

    def load_config(self, config_path: Optional[PathLike] = None) -> SQLOrderConfig:
        """Load and validate a configuration file.

        Args:
            config_path: Explicit file. When omitted, ``SQLORDER_CONFIG_FILE``
                and then the default file names in the working directory are
                tried.

        Raises:
            ConfigurationError: If no file is found, or it cannot be read,
                interpolated or validated.
        """
        config_file = self._find_config_file(config_path)
        logger.debug(f"Loading configuration from {config_file}")

        document = self._load_document(config_file)
        try:
            return SQLOrderConfig(**document)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e
        except TypeError as e:
            raise ConfigurationError(f"Error loading configuration: {e}") from e

    def _load_document(self, config_file: Path) -> Dict[str, Any]:
        raw = _read_yaml(config_file)
        if not raw:
            raise ConfigurationError(f"Configuration file '{config_file}' is empty")
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file '{config_file}' must contain a mapping")

        document = _interpolate(raw)
        includes = document.pop('include', None)
        if includes is None:
            return document

        included: Dict[str, Any] = {}
        for name in self._as_list(includes):
            include_path = config_file.parent / name
            if not include_path.exists():
                raise ConfigurationError(f"Included file '{include_path}' not found")
            part = _read_yaml(include_path) or {}
            if not isinstance(part, dict):
                raise ConfigurationError(f"Included file '{include_path}' must contain a mapping")
            included = _overlay(included, _interpolate(part))

        return _overlay(included, document)

    @staticmethod
    def _as_list(includes: Any) -> List[str]:
        return [str(item) for item in includes] if isinstance(includes, list) else [str(includes)]

    def _find_config_file(self, config_path: Optional[PathLike]) -> Path:
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigurationError(f"Configuration file '{config_path}' not found")
            return path

        candidates = [Path.cwd() / name for name in CONFIG_FILENAMES]
        if self.env_settings.config_file:
            candidates.insert(0, Path(self.env_settings.config_file))

        for candidate in candidates:
            if candidate.exists():
                return candidate

        raise ConfigurationError(
            f"No configuration file found in default locations: {[str(c) for c in candidates]}"
        )

    def validate_config_file(self, config_path: PathLike) -> bool:
        """Raise :class:`ConfigurationError` unless ``config_path`` loads cleanly."""
        self.load_config(config_path)
        return True

    def create_sample_config(self, output_path: PathLike) -> None:
        """Write a commented sample configuration to ``output_path``."""
        Path(output_path).write_text(SAMPLE_CONFIG, encoding='utf-8')


_config_parser = ConfigParser()
_loaded_config: Optional[SQLOrderConfig] = None
_loaded_from: Optional[str] = None


def get_config(config_path: Optional[PathLike] = None, reload: bool = False) -> SQLOrderConfig:
    """Get the cached configuration, loading it on first use.

    A different ``config_path`` from the one previously loaded forces a reload.
    """
    global _loaded_config, _loaded_from

    requested = str(config_path) if config_path else None
    if _loaded_config is None or reload or requested != _loaded_from:
        _loaded_config = _config_parser.load_config(config_path)
        _loaded_from = requested

    return _loaded_config


def validate_config_file(config_path: PathLike) -> bool:
    """Validate a configuration file."""
    return _config_parser.validate_config_file(config_path)


def create_sample_config(output_path: PathLike) -> None:
    """Create a sample configuration file."""
    _config_parser.create_sample_config(output_path)
