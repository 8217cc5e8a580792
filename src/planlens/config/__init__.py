"""Configuration module: load sensitivity rules, limits and display options."""

from typing import Dict, Any, List, Optional, Tuple
from pydantic import ValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config, read_yaml_file
from .models import SensitivityRules, AnalysisLimits, AnalysisConfig
from .paths import get_defaults_path, get_user_config_path, get_project_config_path

logger = get_logger("config")

__all__ = [
    "load_analysis_config",
    "build_analysis_config",
    "load_config",
    "read_yaml_file",
    "SensitivityRules",
    "AnalysisLimits",
    "AnalysisConfig",
    "get_defaults_path",
    "get_user_config_path",
    "get_project_config_path",
]


def _resource_types(entries: Any) -> List[str]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigError("sensitive_resources must be a list")

    types = []
    for entry in entries:
        # Accept both {"resource_type": "x"} and the bare "x" shorthand
        if isinstance(entry, str):
            types.append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("resource_type"), str):
            types.append(entry["resource_type"])
        else:
            raise ConfigError(f"Invalid sensitive_resources entry: {entry!r}")
    return types


def _property_pairs(entries: Any) -> List[Tuple[str, str]]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigError("sensitive_properties must be a list")

    pairs = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid sensitive_properties entry: {entry!r}")
        resource_type = entry.get("resource_type")
        prop = entry.get("property")
        if not isinstance(resource_type, str) or not isinstance(prop, str):
            raise ConfigError(
                f"sensitive_properties entries need 'resource_type' and 'property': {entry!r}"
            )
        pairs.append((resource_type, prop))
    return pairs


def build_analysis_config(config: Dict[str, Any], show_no_ops: Optional[bool] = None) -> AnalysisConfig:
    """
    Build an AnalysisConfig from a raw config dictionary.

    Args:
        config: Raw (merged) configuration dictionary
        show_no_ops: Optional override for plan.show_no_ops

    Returns:
        Frozen AnalysisConfig

    Raises:
        ConfigError: If any section has the wrong shape or invalid values
    """
    plan_section = config.get("plan") or {}
    limits_section = config.get("limits") or {}
    if not isinstance(plan_section, dict):
        raise ConfigError("plan section must be a dictionary")
    if not isinstance(limits_section, dict):
        raise ConfigError("limits section must be a dictionary")

    try:
        rules = SensitivityRules(
            sensitive_resource_types=frozenset(_resource_types(config.get("sensitive_resources"))),
            sensitive_properties=frozenset(_property_pairs(config.get("sensitive_properties"))),
            danger_threshold=plan_section.get("danger_threshold", 3),
        )
        limits = AnalysisLimits(**limits_section)
        resolved_show_no_ops = plan_section.get("show_no_ops", False) if show_no_ops is None else show_no_ops
        return AnalysisConfig(rules=rules, limits=limits, show_no_ops=resolved_show_no_ops)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration values: {e}")


def load_analysis_config(config_path: Optional[str] = None, show_no_ops: Optional[bool] = None) -> AnalysisConfig:
    """
    Load configuration from the layered YAML files.

    Args:
        config_path: Explicit config YAML file layered on top of defaults,
            user and project configuration (optional)
        show_no_ops: Optional override for plan.show_no_ops

    Returns:
        AnalysisConfig

    Raises:
        ConfigError: If config cannot be loaded or is invalid
    """
    raw = load_config(config_path)
    analysis_config = build_analysis_config(raw, show_no_ops=show_no_ops)
    logger.info(
        f"Configuration ready: {len(analysis_config.rules.sensitive_resource_types)} sensitive resource types, "
        f"{len(analysis_config.rules.sensitive_properties)} sensitive properties"
    )
    return analysis_config
