"""Config path resolution for the layered config system."""

import os
from pathlib import Path
from typing import Optional

CONFIG_DIR_NAME = ".planlens"
CONFIG_FILE_NAME = "config.yaml"
CONFIG_HOME_ENV_VAR = "PLANLENS_CONFIG_HOME"


def get_defaults_path() -> Path:
    """Packaged defaults shipped next to this module."""
    return Path(__file__).parent / "defaults.yaml"


def get_user_config_path() -> Path:
    """User config: $PLANLENS_CONFIG_HOME/config.yaml, else ~/.planlens/config.yaml"""
    override = os.getenv(CONFIG_HOME_ENV_VAR)
    if override:
        return Path(override).expanduser() / CONFIG_FILE_NAME
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def get_project_config_path(start: Optional[Path] = None) -> Optional[Path]:
    """Project config: .planlens/config.yaml in the given or current directory, if present."""
    base = start if start is not None else Path.cwd()
    project_config = base / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    if project_config.is_file():
        return project_config
    return None
