"""
toolforge package root.

This package provides configuration loading, logging setup and the
tool execution framework: execution strategies (shell, HTTP, confined
file read), the plugin loader, built-in workspace tools and the
registry that exposes them to an agent runtime.
"""

__all__ = [
    "config",
    "logging_setup",
    "tools",
]
