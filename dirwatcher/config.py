import os

import toml
import yaml

from dirwatcher.errors import InvalidArgument
from dirwatcher.provider import DEFAULT_BATCH_LATENCY

DEFAULT_CONFIG_PATH = "./config.toml"
ENV_CONFIG_DIR_VAR = "DIRWATCHER_CONFIG_DIR"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"


def resolve_config_path(cli_config_path=None):
    """
    Work out which configuration file to read.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable DIRWATCHER_CONFIG_DIR (looking for config.toml).
      3. Default to ./config.toml.

    Returns:
        str: The configuration file path (it may not exist).
    """
    if cli_config_path:
        return cli_config_path
    if os.environ.get(ENV_CONFIG_DIR_VAR):
        return os.path.join(os.environ[ENV_CONFIG_DIR_VAR], "config.toml")
    return DEFAULT_CONFIG_PATH


def load_config(cli_config_path=None):
    """
    Load configuration from a TOML or YAML file.

    Files ending in .yaml or .yml are read with PyYAML, anything else as TOML.
    See resolve_config_path() for how the file is chosen.

    Returns:
        dict: The configuration settings.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
    """
    config_path = resolve_config_path(cli_config_path)

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        if config_path.endswith((".yaml", ".yml")):
            config_data = yaml.safe_load(f) or {}
        else:
            config_data = toml.load(f)

    return config_data


def watch_settings(cfg):
    """
    Normalize the [watch] table of a configuration.

    Args:
        cfg (dict): Loaded configuration.

    Returns:
        dict: recursive (bool), batch_latency (float), include (list), exclude (list).

    Raises:
        InvalidArgument: If a value has the wrong type or range.
    """
    section = (cfg or {}).get("watch", {}) or {}

    recursive = section.get("recursive", False)
    if not isinstance(recursive, bool):
        raise InvalidArgument(f"watch.recursive must be true or false, got {recursive!r}")

    try:
        batch_latency = float(section.get("batch_latency", DEFAULT_BATCH_LATENCY))
    except (TypeError, ValueError):
        raise InvalidArgument(f"watch.batch_latency must be a number, got {section.get('batch_latency')!r}")
    if batch_latency < 0:
        raise InvalidArgument("watch.batch_latency must not be negative")

    settings = {"recursive": recursive, "batch_latency": batch_latency}
    for key in ("include", "exclude"):
        patterns = section.get(key, []) or []
        if isinstance(patterns, str):
            patterns = [patterns]
        settings[key] = [str(p) for p in patterns]
    return settings


def logging_settings(cfg):
    """Return the (level, log_dir) pair from the [logging] table, with defaults."""
    section = (cfg or {}).get("logging", {}) or {}
    return (
        str(section.get("level", DEFAULT_LOG_LEVEL)).upper(),
        section.get("log_dir", DEFAULT_LOG_DIR),
    )
