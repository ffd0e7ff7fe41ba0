"""
Validation of plugin definition files.

A plugin file is checked in two layers. File-level problems (no plugin
name, no tool list) reject the whole file. Tool-level problems reject
only the offending tool; the remaining tools of the file are kept and
converted into immutable `ToolDefinition` records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from toolforge.tools.base import (
    HANDLER_CONFIG_TYPES,
    HTTP_METHODS,
    PluginConfigFile,
    ToolDefinition,
)

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass
class PluginValidation:
    config: Optional[PluginConfigFile] = None
    file_errors: List[str] = field(default_factory=list)
    # (tool name or "tools[i]" label, joined message)
    tool_errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.file_errors and not self.tool_errors


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_positive(handler: Mapping[str, Any], key: str, label: str, errors: List[str]) -> None:
    if key not in handler:
        return
    value = handler[key]
    if not _is_number(value):
        errors.append(f"{label} {key} must be a number if provided")
    elif value <= 0:
        errors.append(f"{label} {key} must be positive")
    elif isinstance(value, float) and not value.is_integer():
        errors.append(f"{label} {key} must be a whole number")


def validate_handler(handler: Any) -> List[str]:
    if not isinstance(handler, dict):
        return ["Tool handler is required and must be an object"]

    errors: List[str] = []
    handler_type = handler.get("type")
    if handler_type not in HANDLER_CONFIG_TYPES:
        return [f'Handler type must be "shell", "http", or "file-read", got: {handler_type}']

    if handler_type == "shell":
        if not _non_empty_str(handler.get("command")):
            errors.append("Shell handler requires a non-empty 'command' string")
        _check_positive(handler, "timeout", "Shell handler", errors)
        if "cwd" in handler and not isinstance(handler["cwd"], str):
            errors.append("Shell handler cwd must be a string if provided")
    elif handler_type == "http":
        if not _non_empty_str(handler.get("url")):
            errors.append("HTTP handler requires a non-empty 'url' string")
        method = handler.get("method")
        if method is not None and method not in HTTP_METHODS:
            errors.append(f'HTTP handler method must be "GET", "POST", or "PUT", got: {method}')
        headers = handler.get("headers")
        if headers is not None and (
            not isinstance(headers, dict)
            or not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items())
        ):
            errors.append("HTTP handler headers must be an object of strings if provided")
        _check_positive(handler, "timeout", "HTTP handler", errors)
    else:
        if not _non_empty_str(handler.get("basePath")):
            errors.append("File-read handler requires a non-empty 'basePath' string")
        _check_positive(handler, "maxSize", "File-read handler", errors)
    return errors


def validate_tool_definition(data: Any) -> List[str]:
    """Return the list of problems with one tool definition (empty when valid)."""
    if not isinstance(data, dict):
        return ["Tool definition must be an object"]

    errors: List[str] = []
    name = data.get("name")
    if not isinstance(name, str):
        errors.append("Tool name is required and must be a string")
    elif not TOOL_NAME_PATTERN.match(name):
        errors.append(f'Tool name "{name}" must match pattern {TOOL_NAME_PATTERN.pattern}')

    if not _non_empty_str(data.get("description")):
        errors.append("Tool description is required and must be a non-empty string")

    schema = data.get("inputSchema")
    if not isinstance(schema, dict):
        errors.append("Tool inputSchema is required and must be an object")
    elif not isinstance(schema.get("type"), str):
        errors.append("Tool inputSchema must have a 'type' property")

    errors.extend(validate_handler(data.get("handler")))
    return errors


def build_tool_definition(data: Mapping[str, Any]) -> ToolDefinition:
    handler = data["handler"]
    config_cls = HANDLER_CONFIG_TYPES[handler["type"]]
    return ToolDefinition(
        name=data["name"],
        description=data["description"],
        input_schema=data["inputSchema"],
        handler=config_cls.from_dict(handler),
    )


def validate_plugin_file(data: Any) -> PluginValidation:
    """
    Validate a parsed plugin file.

    Returns a `PluginValidation` whose `config` holds every tool that passed
    validation. `config` is None only when the file itself is unusable.
    """
    result = PluginValidation()
    if not isinstance(data, dict):
        result.file_errors.append("Config must be an object")
        return result

    if not _non_empty_str(data.get("name")):
        result.file_errors.append("Plugin name is required and must be a non-empty string")
    version = data.get("version")
    if version is not None and not isinstance(version, str):
        result.file_errors.append("Plugin version must be a string if provided")
    tools = data.get("tools")
    if not isinstance(tools, list):
        result.file_errors.append("Tools must be an array")
    elif not tools:
        result.file_errors.append("Tools array cannot be empty")
    if result.file_errors:
        return result

    definitions: List[ToolDefinition] = []
    seen = set()
    for index, raw in enumerate(tools):
        label = f"tools[{index}]"
        if isinstance(raw, dict) and isinstance(raw.get("name"), str):
            label = raw["name"]
        problems = validate_tool_definition(raw)
        if not problems and raw["name"] in seen:
            problems = [f"Duplicate tool name in plugin file: {raw['name']}"]
        if problems:
            result.tool_errors.append((label, "; ".join(problems)))
            continue
        seen.add(raw["name"])
        definitions.append(build_tool_definition(raw))

    result.config = PluginConfigFile(name=data["name"], version=version, tools=tuple(definitions))
    return result
