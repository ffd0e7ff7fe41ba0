"""
Tool registry.

Owns two namespaces, built-in tools and plugin tools, and exposes them
as one merged view. Built-in names are reserved: a plugin tool with the
same name is rejected, as is a second plugin tool with an already used
name. Registration problems are collected into the returned
`ToolRegistrationResult`; the registry keeps working with whatever
registered cleanly.

Plugin reloads build a complete new plugin map and swap it in with a
single assignment, so a concurrent reader sees either the old or the new
set of plugin tools, never a partial one.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from toolforge.config import DEFAULT_SERVER_NAME, DEFAULT_SERVER_VERSION
from toolforge.tools.base import (
    LoadedPluginTool,
    RegisteredToolInfo,
    Tool,
    ToolContext,
    ToolRegistrationError,
    ToolRegistrationResult,
    ToolResult,
    ToolSource,
    text_result,
    thaw_schema,
)
from toolforge.tools.builtin import create_builtin_tools
from toolforge.tools.plugins import load_plugin_tools

logger = structlog.get_logger(__name__)

ALLOWED_NAME_PREFIX = "mcp"


@dataclass(frozen=True)
class RegisteredTool:
    info: RegisteredToolInfo
    tool: Tool


class ToolRegistry:
    """
    Registers built-in and plugin tools and retrieves them by name.
    """

    def __init__(
        self,
        project_path: str,
        plugin_dir: Optional[str] = None,
        server_name: str = DEFAULT_SERVER_NAME,
        server_version: str = DEFAULT_SERVER_VERSION,
    ) -> None:
        self.project_path = project_path
        self.plugin_dir = plugin_dir
        self.server_name = server_name
        self.server_version = server_version
        self._builtin: Dict[str, RegisteredTool] = {}
        self._plugins: Dict[str, RegisteredTool] = {}
        self._builtin_registered = False
        self._write_gate = threading.Lock()
        # Reloads are numbered when called; only a newer one may replace the map.
        self._reload_generation = 0
        self._applied_generation = 0

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _register_builtin_tools(self) -> List[ToolRegistrationError]:
        errors: List[ToolRegistrationError] = []
        builtin: Dict[str, RegisteredTool] = {}
        try:
            tools = create_builtin_tools(self.project_path)
        except Exception as exc:  # noqa: BLE001
            return [ToolRegistrationError(source="builtin", message=f"Failed to create built-in tools: {exc}")]
        for tool in tools:
            if tool.name in builtin:
                errors.append(
                    ToolRegistrationError(
                        source="builtin",
                        tool_name=tool.name,
                        message=f"Duplicate built-in tool name: {tool.name}",
                    )
                )
                continue
            info = RegisteredToolInfo(
                name=tool.name,
                description=tool.description,
                source=ToolSource.BUILTIN,
                input_schema=tool.input_schema,
            )
            builtin[tool.name] = RegisteredTool(info=info, tool=tool)
        self._builtin = builtin
        self._builtin_registered = True
        return errors

    def _build_plugin_map(
        self, loaded: Sequence[LoadedPluginTool]
    ) -> Tuple[Dict[str, RegisteredTool], List[ToolRegistrationError]]:
        plugins: Dict[str, RegisteredTool] = {}
        errors: List[ToolRegistrationError] = []
        for tool in loaded:
            if tool.name in self._builtin:
                errors.append(
                    ToolRegistrationError(
                        source="plugin",
                        tool_name=tool.name,
                        message=f'Plugin tool "{tool.name}" conflicts with built-in tool of the same name',
                    )
                )
                continue
            if tool.name in plugins:
                errors.append(
                    ToolRegistrationError(
                        source="plugin",
                        tool_name=tool.name,
                        message=f"Duplicate plugin tool name: {tool.name}",
                    )
                )
                continue
            info = RegisteredToolInfo(
                name=tool.name,
                description=tool.description,
                source=ToolSource.PLUGIN,
                input_schema=tool.input_schema,
                plugin_name=tool.plugin_name,
            )
            plugins[tool.name] = RegisteredTool(info=info, tool=tool)
        return plugins, errors

    async def _load_and_swap_plugins(self) -> List[ToolRegistrationError]:
        with self._write_gate:
            self._reload_generation += 1
            generation = self._reload_generation
        load_result = await asyncio.to_thread(load_plugin_tools, self.plugin_dir)
        plugins, conflict_errors = self._build_plugin_map(load_result.tools)
        with self._write_gate:
            if generation > self._applied_generation:
                self._plugins = plugins
                self._applied_generation = generation
            else:
                logger.info("stale_plugin_reload_discarded", generation=generation)
        return list(load_result.errors) + conflict_errors

    def _result(self, errors: List[ToolRegistrationError]) -> ToolRegistrationResult:
        for error in errors:
            if error.source in ("builtin", "plugin"):
                logger.warning("tool_registration_error", source=error.source, tool=error.tool_name, message=error.message)
        return ToolRegistrationResult(
            success=not errors,
            tool_count=self.get_tool_count(),
            errors=tuple(errors),
        )

    async def initialize(self) -> ToolRegistrationResult:
        """Register built-in tools, then load and register plugin tools."""
        with self._write_gate:
            errors = self._register_builtin_tools()
        errors += await self._load_and_swap_plugins()
        result = self._result(errors)
        logger.info("registry_initialized", tools=result.tool_count, errors=len(result.errors))
        return result

    async def reload_plugins(self) -> ToolRegistrationResult:
        """
        Discard and rebuild the plugin namespace. Built-ins are untouched.

        Built-ins are registered first if `initialize()` has not run yet, so
        their names stay reserved. When reloads overlap, the most recently
        started one determines the plugin map.
        """
        errors: List[ToolRegistrationError] = []
        with self._write_gate:
            if not self._builtin_registered:
                errors = self._register_builtin_tools()
        errors += await self._load_and_swap_plugins()
        result = self._result(errors)
        logger.info("plugins_reloaded", tools=result.tool_count, errors=len(result.errors))
        return result

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def _all(self) -> List[RegisteredTool]:
        builtin, plugins = self._builtin, self._plugins
        return list(builtin.values()) + list(plugins.values())

    def _lookup(self, name: str) -> Optional[RegisteredTool]:
        entry = self._builtin.get(name)
        if entry is None:
            entry = self._plugins.get(name)
        return entry

    def list_tools(self) -> List[RegisteredToolInfo]:
        return [entry.info for entry in self._all()]

    def get_tool_info(self, name: str) -> Optional[RegisteredToolInfo]:
        entry = self._lookup(name)
        return entry.info if entry is not None else None

    def get_tool(self, name: str) -> Optional[Tool]:
        entry = self._lookup(name)
        return entry.tool if entry is not None else None

    def has_tool(self, name: str) -> bool:
        return name in self._builtin or name in self._plugins

    def get_tool_count(self) -> int:
        return len(self._builtin) + len(self._plugins)

    def count_by_source(self) -> Dict[str, int]:
        return {
            "total": self.get_tool_count(),
            ToolSource.BUILTIN.value: len(self._builtin),
            ToolSource.PLUGIN.value: len(self._plugins),
        }

    # ------------------------------------------------------------------
    # Invocation and external rendering
    # ------------------------------------------------------------------

    async def invoke(self, name: str, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        """
        Look up a tool and run it.

        Unknown names and unexpected handler exceptions are reported as
        error results, so callers only ever deal with `ToolResult`.
        """
        tool = self.get_tool(name)
        if tool is None:
            return text_result(f"Tool not found: {name}", True)
        try:
            return await tool.handler(args, context)
        except Exception as exc:  # noqa: BLE001
            logger.warning("tool_invocation_failed", tool=name, tool_use_id=context.tool_use_id, error=str(exc))
            return text_result(f"Tool '{name}' raised an error: {exc}", True)

    def to_agent_capability_config(self) -> Dict[str, Any]:
        """Render every registered tool in the agent runtime's SDK server shape."""
        return {
            "type": "sdk",
            "name": self.server_name,
            "version": self.server_version,
            "tools": [
                {
                    "name": entry.info.name,
                    "description": entry.info.description,
                    "inputSchema": thaw_schema(entry.info.input_schema),
                    "handler": entry.tool.handler,
                }
                for entry in self._all()
            ],
        }

    def get_allowed_tool_names(self) -> List[str]:
        """Fully qualified names (`mcp__<server>__<tool>`) for allow-listing."""
        namespace = f"{ALLOWED_NAME_PREFIX}__{self.server_name}"
        return [f"{namespace}__{entry.tool.name}" for entry in self._all()]
