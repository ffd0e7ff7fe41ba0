"""
Configuration loader for the tool framework.

The configuration is stored in an optional YAML file. This module loads
that file, applies environment overrides and fills in defaults so the
rest of the application gets a fully populated `AppConfig`. Example:

    workspace: /path/to/project
    plugins:
      dir: ~/.config/toolforge/tools
    server:
      name: toolforge-tools
      version: 1.0.0
    logging:
      level: INFO
      json: false
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

PLUGIN_DIR_ENV = "TOOLFORGE_TOOLS_DIR"
LOG_LEVEL_ENV = "TOOLFORGE_LOG_LEVEL"

DEFAULT_SERVER_NAME = "toolforge-tools"
DEFAULT_SERVER_VERSION = "1.0.0"


class ConfigError(ValueError):
    """Raised when the configuration file has an invalid shape."""


def default_plugin_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".config", "toolforge", "tools")


@dataclass(frozen=True)
class AppConfig:
    workspace: str
    plugin_dir: str
    server_name: str = DEFAULT_SERVER_NAME
    server_version: str = DEFAULT_SERVER_VERSION
    log_level: str = "INFO"
    json_logs: bool = False


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' section must be a mapping.")
    return value


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load the application configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file. When omitted, defaults
            and environment variables alone are used.

    Returns:
        The resolved application configuration.

    Raises:
        FileNotFoundError: If `path` is given but does not exist.
        ConfigError: If the configuration has an invalid shape.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found at: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError("Top-level configuration must be a mapping/dictionary.")

    plugins_cfg = _section(data, "plugins")
    server_cfg = _section(data, "server")
    logging_cfg = _section(data, "logging")

    workspace = data.get("workspace") or os.getcwd()
    if not isinstance(workspace, str):
        raise ConfigError("'workspace' must be a string path.")

    plugin_dir = os.environ.get(PLUGIN_DIR_ENV) or plugins_cfg.get("dir") or default_plugin_dir()

    return AppConfig(
        workspace=os.path.abspath(os.path.expanduser(workspace)),
        plugin_dir=os.path.abspath(os.path.expanduser(str(plugin_dir))),
        server_name=str(server_cfg.get("name", DEFAULT_SERVER_NAME)),
        server_version=str(server_cfg.get("version", DEFAULT_SERVER_VERSION)),
        log_level=os.environ.get(LOG_LEVEL_ENV) or str(logging_cfg.get("level", "INFO")),
        json_logs=bool(logging_cfg.get("json", False)),
    )
