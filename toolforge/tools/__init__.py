"""
Tool execution framework.

Tools are named capabilities an agent runtime can call. Built-in tools
inspect the workspace; plugin tools are declared in JSON files and run
through one of three strategies: shell command, HTTP request or confined
file read. The `ToolRegistry` merges both sources and renders them for
the agent runtime.
"""

from toolforge.tools.base import Tool, ToolContext, ToolResult, text_result
from toolforge.tools.plugins import load_plugin_tools
from toolforge.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "load_plugin_tools",
    "text_result",
]
