# provisioner/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the provisioner.

Handles loading settings from Pydantic model defaults, a YAML file,
environment variables, and command-line arguments, applying a specific
order of precedence:
1. Pydantic Model Defaults
2. Environment Variables (via Pydantic's BaseSettings initialization)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates a dictionary `source` with values from another dictionary
    `overrides`. Nested dictionaries are merged key by key; any other value
    replaces the one in `source`. `None` values in `overrides` never clobber an
    existing key.

    Parameters:
        source: Dict[str, Any]
            The dictionary to be updated. This dictionary gets modified in place.
        overrides: Dict[str, Any]
            The dictionary containing values to update or add to the `source`.

    Returns:
        Dict[str, Any]:
            The updated dictionary after applying all `overrides` to the input `source`.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def _load_yaml_file(
    yaml_config_path: Path, logger_to_use: logging.Logger
) -> Dict[str, Any]:
    """Read a YAML mapping, returning an empty dict for anything unusable."""
    if not (yaml_config_path.exists() and yaml_config_path.is_file()):
        logger_to_use.info(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}

    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except IOError as e:
        logger_to_use.warning(
            f"Could not read config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{yaml_config_path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return {}

    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def _map_cli_args(cli_args: argparse.Namespace) -> Dict[str, Any]:
    """Translate recognised CLI flags into the nested settings layout."""
    mapped_cli_values: Dict[str, Any] = {}
    service_cli_values: Dict[str, Any] = {}
    nodejs_cli_values: Dict[str, Any] = {}

    for cli_key, cli_value in vars(cli_args).items():
        if cli_value is None:
            continue

        if cli_key == "log_prefix":
            mapped_cli_values["log_prefix"] = cli_value
        elif cli_key == "user":
            service_cli_values["user"] = cli_value
        elif cli_key == "port":
            service_cli_values["port"] = int(cli_value)
        elif cli_key == "node_version":
            nodejs_cli_values["major_version"] = int(cli_value)

    if service_cli_values:
        mapped_cli_values["service"] = service_cli_values
    if nodejs_cli_values:
        mapped_cli_values["nodejs"] = nodejs_cli_values
    return mapped_cli_values


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Union[str, Path] = "config.yaml",
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads provisioner settings with the following precedence:
    1. Pydantic Model Defaults.
    2. Environment Variables (Pydantic BaseSettings loads these).
    3. Values from the YAML configuration file.
    4. Command-Line Arguments (highest precedence, overrides all else).

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file. A missing file
                          is not an error.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An immutable AppSettings instance with the fully resolved configuration.

    Raises:
        pydantic.ValidationError: If the merged values fail validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    # Model Defaults < Environment Variables
    settings_after_env_and_defaults = AppSettings()
    current_values_dict = settings_after_env_and_defaults.model_dump()

    yaml_data = _load_yaml_file(Path(config_file_path), logger_to_use)
    if yaml_data:
        current_values_dict = _deep_update(current_values_dict, yaml_data)

    if cli_args:
        current_values_dict = _deep_update(
            current_values_dict, _map_cli_args(cli_args)
        )

    final_settings = AppSettings(**current_values_dict)
    logger_to_use.debug(
        f"Effective settings: {final_settings.model_dump(exclude={'symbols'})}"
    )
    return final_settings
