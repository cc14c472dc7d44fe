# src/fixturekit/config/loader.py
"""
YAML configuration loader.

Lookup order when no explicit path is given:
  1. $FIXTUREKIT_CONFIG
  2. ./fixturekit.yaml
  3. built-in defaults

Example fixturekit.yaml:
    strict_dependencies: true
    logging:
      level: DEBUG
      file: .fixturekit/fixturekit.log
"""
import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigError
from ..models.config import FixtureKitConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FIXTUREKIT_CONFIG"
DEFAULT_CONFIG_FILE = "fixturekit.yaml"


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    candidate = Path(cwd or Path.cwd()) / DEFAULT_CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def load_config(path: Optional[Union[str, Path]] = None) -> FixtureKitConfig:
    """
    Load configuration from ``path`` or the default lookup locations.

    Raises:
        ConfigError: If the file is missing, not valid YAML or fails validation.
    """
    config_path = Path(path) if path is not None else find_config_file()
    if config_path is None:
        logger.debug("No configuration file found, using defaults")
        return FixtureKitConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {config_path}", context={"path": str(config_path)})
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error in configuration file {config_path}: {e}", context={"path": str(config_path)})

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping", context={"path": str(config_path)})

    try:
        config = FixtureKitConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}", context={"path": str(config_path)})

    logger.debug(f"Loaded configuration from {config_path}")
    return config
