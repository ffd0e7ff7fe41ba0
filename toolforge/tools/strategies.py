"""
Handler factory.

Maps a handler configuration to the execution strategy that runs it.
"""

from __future__ import annotations

from typing import Optional

from toolforge.tools.base import (
    FileReadHandlerConfig,
    HandlerConfig,
    HttpHandlerConfig,
    ShellHandlerConfig,
    ToolHandler,
)
from toolforge.tools.files import FileReadHandler
from toolforge.tools.shell import ShellHandler
from toolforge.tools.web import HttpHandler


def create_handler(config: HandlerConfig, base_dir: Optional[str] = None) -> ToolHandler:
    """
    Build the execution strategy for `config`.

    Args:
        config: One of the three handler configuration variants.
        base_dir: Directory relative shell `cwd` and file-read `basePath`
            values are confined to.

    Raises:
        TypeError: If `config` is not a known handler configuration.
    """
    if isinstance(config, ShellHandlerConfig):
        return ShellHandler(config, base_dir=base_dir)
    if isinstance(config, HttpHandlerConfig):
        return HttpHandler(config)
    if isinstance(config, FileReadHandlerConfig):
        return FileReadHandler(config, base_dir=base_dir)
    raise TypeError(f"Unknown handler type: {type(config).__name__}")
