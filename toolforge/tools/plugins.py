"""
Plugin tool loader.

Scans a directory for `*.json` plugin definition files and turns each
valid tool definition into an executable tool. Every failure (unreadable
file, invalid JSON, schema violation, handler construction) is recorded
as a `ToolRegistrationError` scoped to the file or tool, and loading
carries on with the next file or tool. A missing plugin directory is not
an error: plugins are optional.
"""

from __future__ import annotations

import json
import os
from typing import List, Optional

import structlog

from toolforge.config import PLUGIN_DIR_ENV, default_plugin_dir
from toolforge.tools.base import LoadedPluginTool, PluginLoadResult, ToolRegistrationError
from toolforge.tools.schema import validate_plugin_file
from toolforge.tools.strategies import create_handler

logger = structlog.get_logger(__name__)


def resolve_plugin_dir(plugin_dir: Optional[str] = None) -> str:
    return plugin_dir or os.environ.get(PLUGIN_DIR_ENV) or default_plugin_dir()


def _load_file(file_path: str, base_dir: str, tools: List[LoadedPluginTool], errors: List[ToolRegistrationError]) -> None:
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        errors.append(ToolRegistrationError(source=file_path, message=f"Failed to read file: {exc}"))
        return

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        errors.append(ToolRegistrationError(source=file_path, message=f"Invalid JSON: {exc}"))
        return

    validation = validate_plugin_file(data)
    if validation.file_errors:
        errors.append(ToolRegistrationError(source=file_path, message="; ".join(validation.file_errors)))
        return
    for tool_name, message in validation.tool_errors:
        errors.append(ToolRegistrationError(source=file_path, tool_name=tool_name, message=message))

    config = validation.config
    for definition in config.tools:
        try:
            handler = create_handler(definition.handler, base_dir=base_dir)
        except Exception as exc:  # noqa: BLE001
            errors.append(
                ToolRegistrationError(
                    source=file_path,
                    tool_name=definition.name,
                    message=f"Failed to create handler: {exc}",
                )
            )
            continue
        tools.append(
            LoadedPluginTool(
                name=definition.name,
                description=definition.description,
                input_schema=definition.input_schema,
                handler=handler,
                plugin_name=config.name,
            )
        )


def load_plugin_tools(plugin_dir: Optional[str] = None) -> PluginLoadResult:
    """
    Load all plugin tools from a directory.

    Args:
        plugin_dir: Directory to scan. Falls back to the TOOLFORGE_TOOLS_DIR
            environment variable, then to ~/.config/toolforge/tools.

    Returns:
        A `PluginLoadResult` with the loaded tools and every error found.
    """
    directory = resolve_plugin_dir(plugin_dir)
    if not os.path.isdir(directory):
        logger.debug("plugin_dir_missing", plugin_dir=directory)
        return PluginLoadResult()

    try:
        entries = sorted(os.listdir(directory))
    except OSError as exc:
        error = ToolRegistrationError(source=directory, message=f"Failed to read plugin directory: {exc}")
        logger.warning("plugin_dir_unreadable", plugin_dir=directory, error=str(exc))
        return PluginLoadResult(errors=(error,))

    tools: List[LoadedPluginTool] = []
    errors: List[ToolRegistrationError] = []
    for filename in entries:
        if not filename.endswith(".json"):
            continue
        file_path = os.path.join(directory, filename)
        if os.path.isdir(file_path):
            continue
        _load_file(file_path, directory, tools, errors)

    for error in errors:
        logger.warning("plugin_error", source=error.source, tool=error.tool_name, message=error.message)
    logger.info("plugins_loaded", plugin_dir=directory, tools=len(tools), errors=len(errors))
    return PluginLoadResult(tools=tuple(tools), errors=tuple(errors))
