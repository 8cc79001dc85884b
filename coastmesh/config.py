"""
Configuration handling for coastmesh.

Settings live in a nested dictionary (``config["search"]["element_search_depth"]``)
that can be read from a YAML file. Values found in the file are merged over
the built-in defaults, so a file only needs the keys it changes.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "mesh": {
        "default_name": "Mesh",
        "default_z": 0.0,
    },
    "search": {
        "element_search_depth": 20,
    },
    "output": {
        "geographic_decimals": 10,
        "projected_decimals": 4,
        "attribute_decimals": 10,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_config() -> Dict[str, Any]:
    """Return a fresh copy of the built-in defaults."""
    return copy.deepcopy(DEFAULT_CONFIG)


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge a partial configuration dictionary over the defaults.

    Args:
        config: Partial configuration, or None for the defaults.

    Returns:
        Dict[str, Any]: Complete configuration.
    """
    if config is None:
        return default_config()
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(config).__name__}")
    return _merge(DEFAULT_CONFIG, config)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Read a YAML configuration file and merge it over the defaults.

    Args:
        config_path: Path to the YAML file. None returns the defaults.

    Returns:
        Dict[str, Any]: Configuration as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file is not valid YAML or not a mapping.

    Example:
        >>> config = load_config("coastmesh.yml")
        >>> config["search"]["element_search_depth"]
        20
    """
    if config_path is None:
        return default_config()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path.absolute()}")

    try:
        with open(path, 'r') as file:
            content = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file {path}: {e}") from e

    if content is None:
        content = {}
    logger.debug(f"Configuration read from {path}")
    return resolve_config(content)


def setup_logging(config: Optional[Dict[str, Any]] = None) -> None:
    """Configure the root logger from ``config["logging"]["level"]``."""
    config = resolve_config(config)
    level_name = str(config["logging"]["level"]).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")
    logging.basicConfig(level=level)
