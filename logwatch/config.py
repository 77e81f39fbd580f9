import copy
import os

import toml
import yaml

DEFAULT_CONFIG_PATH = "./config.toml"
ENV_CONFIG_DIR_VAR = "LOGWATCH_CONFIG_DIR"

DEFAULT_CONFIG = {
    "watch": {
        "max_watches": 1024,
        "read_size": 1024 * (16 + 16),
    },
    "throttle": {
        "window_ms": 3000,
        "capacity": 256,
    },
    "logging": {
        "log_file": "logwatch.log",
        "log_dir": "",
        "level": "INFO",
    },
    "display": {
        "banner": True,
        "status": True,
    },
}


def merge_config(overrides):
    """
    Merge user settings over DEFAULT_CONFIG, one section at a time.

    Args:
        overrides (dict): Parsed configuration file contents (may be None).

    Returns:
        dict: A new configuration dictionary.
    """
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def read_config_file(config_path):
    """
    Parse a TOML or YAML configuration file, chosen by extension.

    Returns:
        dict: The raw settings.
    """
    with open(config_path, "r") as f:
        if config_path.endswith((".yaml", ".yml")):
            return yaml.safe_load(f) or {}
        return toml.load(f)


def load_config(cli_config_path=None):
    """
    Load configuration.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable LOGWATCH_CONFIG_DIR (looking for config.toml).
      3. ./config.toml, if it exists; otherwise the built-in defaults.

    Returns:
        dict: The configuration settings.
    """
    if cli_config_path:
        config_path = cli_config_path
    elif os.environ.get(ENV_CONFIG_DIR_VAR):
        config_path = os.path.join(os.environ[ENV_CONFIG_DIR_VAR], "config.toml")
    else:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return merge_config(None)
        config_path = DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config_data = merge_config(read_config_file(config_path))
    config_data["__config_path__"] = os.path.abspath(config_path)
    return config_data
