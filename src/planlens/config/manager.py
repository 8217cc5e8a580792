"""Layered configuration loading: packaged defaults, user file, project file."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from .paths import get_defaults_path, get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def read_yaml_file(path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Read one YAML mapping from disk.

    Args:
        path: File to read
        required: Raise ConfigError when the file is missing (otherwise return {})

    Returns:
        Parsed mapping ({} for an empty file)

    Raises:
        ConfigError: If the file is missing (when required), unreadable or not a mapping
    """
    if not path.exists():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a dictionary")
    return data


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the merged config tree.

    Precedence (lowest first): packaged defaults, user config, project
    config, explicit ``config_path``. A broken user or project file is
    logged and skipped; a broken explicit file is an error.

    Returns:
        Merged configuration dictionary
    """
    config = read_yaml_file(get_defaults_path())

    for tier_path in (get_user_config_path(), get_project_config_path()):
        if tier_path is None or not tier_path.exists():
            continue
        try:
            _deep_merge(config, read_yaml_file(tier_path))
            logger.info(f"Loaded config overrides from {tier_path}")
        except ConfigError as e:
            logger.warning(f"Ignoring config file {tier_path}: {e}")

    if config_path is not None:
        _deep_merge(config, read_yaml_file(Path(config_path)))
        logger.info(f"Loaded config from {config_path}")

    return config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base). Lists are replaced, not concatenated."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
