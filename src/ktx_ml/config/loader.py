"""
Configuration loading and merging logic.

Supports:
1. Loading from YAML files (with optional ``_base`` chaining)
2. CLI argument overrides (dot-notation: e.g., cv.folds=5)
3. Validation into AnalysisConfig
"""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ktx_ml.config.defaults import DEFAULT_ANALYSIS_CONFIG
from ktx_ml.config.schema import AnalysisConfig

logger = logging.getLogger(__name__)

# Top-level keys holding filesystem paths, resolved relative to the YAML file
PATH_KEYS = ("expression_file", "labels_file", "outdir")


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (overlay wins on leaf conflicts).

    Returns a new dict; neither input is mutated.
    """
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    A ``_base`` key names another YAML file (relative to this one) that is
    loaded first; the current file's values are deep-merged on top.
    """
    file_path = Path(file_path).resolve()
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must contain a mapping at top level: {file_path}")

    base_ref = config_dict.pop("_base", None)
    if base_ref is not None:
        base_dict = load_yaml((file_path.parent / base_ref).resolve())
        config_dict = _deep_merge(base_dict, config_dict)

    return config_dict


def resolve_paths_relative_to_config(
    config_dict: dict[str, Any], config_file: Path
) -> dict[str, Any]:
    """Resolve relative path-valued keys against the config file's directory."""
    config_dir = Path(config_file).resolve().parent
    resolved = dict(config_dict)
    for key in PATH_KEYS:
        value = resolved.get(key)
        if isinstance(value, str) and value and not Path(value).is_absolute():
            resolved[key] = str(config_dir / value)
    return resolved


def apply_overrides(config_dict: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Apply CLI overrides to config dictionary.

    Supports dot-notation for nested keys:
        cv.folds=5 -> config_dict['cv']['folds'] = 5
        local_fdr.null=empirical -> config_dict['local_fdr']['null'] = 'empirical'

    Args:
        config_dict: Base configuration dictionary
        overrides: List of "key=value" or "nested.key=value" strings

    Returns:
        Updated config dictionary
    """
    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Invalid override format: {override}. Expected 'key=value'")

        key_path, value_str = override.split("=", 1)
        keys = key_path.strip().split(".")

        target = config_dict
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]

        target[keys[-1]] = _parse_value(value_str.strip())

    return config_dict


def _parse_value(value_str: str) -> Any:
    """Parse string value to bool, None, int, float, or leave as string."""
    lowered = value_str.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered in ("none", "null"):
        return None

    try:
        return int(value_str)
    except ValueError:
        pass

    try:
        return float(value_str)
    except ValueError:
        pass

    return value_str


def load_analysis_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> AnalysisConfig:
    """
    Load analysis configuration from defaults, YAML file and CLI overrides.

    Args:
        config_file: Path to YAML config file (optional)
        overrides: List of CLI overrides in "key=value" format (optional)

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ValueError: If the merged configuration fails validation
    """
    config_dict = copy.deepcopy(DEFAULT_ANALYSIS_CONFIG)

    if config_file is not None:
        config_file_path = Path(config_file)
        file_config = load_yaml(config_file_path)
        file_config = resolve_paths_relative_to_config(file_config, config_file_path)
        config_dict = _deep_merge(config_dict, file_config)

    if overrides:
        config_dict = apply_overrides(config_dict, list(overrides))

    try:
        return AnalysisConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid analysis configuration:\n{e}") from e


def save_config(config: AnalysisConfig, output_path: str | Path):
    """Save resolved configuration to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="json")

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def log_config_summary(config: AnalysisConfig):
    """Log human-readable configuration summary at INFO level."""
    lines = ["Configuration Summary"]

    def format_dict(d, indent=0):
        for key, value in d.items():
            if isinstance(value, dict):
                lines.append(f"{'  ' * indent}{key}:")
                format_dict(value, indent + 1)
            else:
                lines.append(f"{'  ' * indent}{key}: {value}")

    format_dict(config.model_dump(mode="json"))
    logger.info("\n".join(lines))
