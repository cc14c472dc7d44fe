# fixturekit.config - Configuration loading

from .loader import load_config, find_config_file, CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE

__all__ = [
    "load_config",
    "find_config_file",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_FILE",
]
