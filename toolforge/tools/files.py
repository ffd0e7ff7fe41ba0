"""
Confined file reading.

The file-read strategy resolves a caller-supplied relative path against
a base directory fixed at construction time and refuses anything that
resolves outside of it. The check runs on the fully resolved path
(symlinks, `..` segments and absolute paths included), never on the raw
string. File size is checked before any content is read.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

from toolforge.tools.base import FileReadHandlerConfig, ToolContext, ToolHandler, ToolResult, text_result


class PathTraversalError(ValueError):
    """Raised when a path resolves outside its base directory."""

    def __init__(self, requested: str, base_label: str = "base path") -> None:
        super().__init__(f"Path traversal detected: {requested} resolves outside {base_label}")
        self.requested = requested


class FileTooLargeError(ValueError):
    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"File size ({size} bytes) exceeds maximum allowed size ({max_size} bytes)"
        )


def resolve_within(base: str, relative: str, base_label: str = "base path") -> str:
    """
    Resolve `relative` against `base` and ensure it stays inside `base`.

    Args:
        base: Directory that confines the result.
        relative: Caller-supplied path; may be relative or absolute.
        base_label: How the base is named in the error message.

    Returns:
        The resolved absolute path.

    Raises:
        PathTraversalError: If the resolved path is outside `base`.
    """
    root = os.path.realpath(base)
    resolved = os.path.realpath(os.path.join(root, relative))
    if resolved != root and not resolved.startswith(root.rstrip(os.sep) + os.sep):
        raise PathTraversalError(relative, base_label)
    return resolved


def read_text_bounded(path: str, max_size: int) -> str:
    size = os.stat(path).st_size
    if size > max_size:
        raise FileTooLargeError(size, max_size)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def extract_line_range(
    content: str,
    start_line: Optional[int] = None,
    end_line: Optional[int] = None,
) -> str:
    """Slice `content` to the 1-indexed, inclusive line range."""
    if start_line is None and end_line is None:
        return content
    lines = content.split("\n")
    start = max(0, start_line - 1) if start_line is not None else 0
    end = min(len(lines), end_line) if end_line is not None else len(lines)
    return "\n".join(lines[start:end])


class FileReadHandler(ToolHandler):
    """
    Read a file below a fixed base directory.

    A relative `basePath` is resolved inside `base_dir` (the directory the
    plugin file was loaded from), like a relative shell `cwd`.

    Tool input schema:
    {
        "path": "relative/path/to/file.txt"
    }
    """

    def __init__(self, config: FileReadHandlerConfig, base_dir: Optional[str] = None) -> None:
        self.config = config
        base_path = config.base_path
        if not os.path.isabs(base_path) and base_dir is not None:
            base_path = resolve_within(base_dir, base_path)
        self.base_path = os.path.abspath(base_path)

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        requested = args.get("path")
        if not isinstance(requested, str):
            return text_result("Missing or invalid 'path' parameter: must be a string", True)
        try:
            resolved = resolve_within(self.base_path, requested)
        except PathTraversalError as exc:
            return text_result(str(exc), True)
        try:
            content = await asyncio.to_thread(read_text_bounded, resolved, self.config.max_size)
        except FileTooLargeError as exc:
            return text_result(str(exc), True)
        except Exception as exc:  # noqa: BLE001
            return text_result(f"File-read handler error: {exc}", True)
        return text_result(content)
