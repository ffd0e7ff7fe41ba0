"""
Built-in workspace tools.

These tools are always present and cannot be overridden by plugins.
Each one is bound to the workspace root given at construction time:

- git-status:        working tree status (`git status --porcelain`)
- git-diff-summary:  summary of uncommitted changes (`git diff --stat`)
- workspace-info:    project path, current branch and origin remote
- file-reader:       project-confined file reader with line slicing
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
from typing import Any, Dict, List, Optional

from toolforge.tools.base import DEFAULT_MAX_FILE_SIZE, Tool, ToolContext, ToolHandler, ToolResult, text_result
from toolforge.tools.files import (
    FileTooLargeError,
    PathTraversalError,
    extract_line_range,
    read_text_bounded,
    resolve_within,
)
from toolforge.tools.git import GitError, run_git


class BuiltinTool(ToolHandler):
    """A handler that also carries its own tool metadata."""

    name = ""
    description = ""
    input_schema: Dict[str, Any] = {"type": "object", "properties": {}}

    def __init__(self, project_path: str) -> None:
        self.project_path = project_path

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            input_schema=copy.deepcopy(self.input_schema),
            handler=self,
        )


class GitStatusTool(BuiltinTool):
    name = "git-status"
    description = "Returns working tree status for the current project"
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Optional subdirectory to check status for",
            },
        },
    }

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        git_args = ["status", "--porcelain"]
        sub_path = args.get("path")
        if sub_path is not None:
            if not isinstance(sub_path, str):
                return text_result("Invalid 'path' parameter: must be a string", True)
            git_args += ["--", sub_path]
        try:
            result = await run_git(git_args, cwd=self.project_path)
        except GitError as exc:
            return text_result(f"Git status tool error: {exc}", True)
        if result.exit_code != 0:
            return text_result(f"git status failed with exit code {result.exit_code}:\n{result.stderr}", True)
        return text_result(result.stdout)


class GitDiffSummaryTool(BuiltinTool):
    name = "git-diff-summary"
    description = "Returns a summary of uncommitted changes"
    input_schema = {
        "type": "object",
        "properties": {
            "staged": {
                "type": "boolean",
                "description": "If true, show staged diff; otherwise show unstaged",
            },
        },
    }

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        git_args = ["diff", "--stat"]
        if args.get("staged") is True:
            git_args.append("--staged")
        try:
            result = await run_git(git_args, cwd=self.project_path)
        except GitError as exc:
            return text_result(f"Git diff summary tool error: {exc}", True)
        if result.exit_code != 0:
            return text_result(f"git diff failed with exit code {result.exit_code}:\n{result.stderr}", True)
        return text_result(result.stdout)


class WorkspaceInfoTool(BuiltinTool):
    name = "workspace-info"
    description = "Returns metadata about the current workspace"

    async def _git_value(self, args: List[str], key: str, info: Dict[str, Any]) -> None:
        try:
            result = await run_git(args, cwd=self.project_path)
        except GitError as exc:
            info[f"{key}Error"] = str(exc)
            return
        if result.exit_code == 0:
            info[key] = result.stdout.strip()
        else:
            info[f"{key}Error"] = result.stderr.strip() or "Unknown error"

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        info: Dict[str, Any] = {"projectPath": self.project_path}
        await self._git_value(["rev-parse", "--abbrev-ref", "HEAD"], "branch", info)
        await self._git_value(["remote", "get-url", "origin"], "remoteUrl", info)
        return text_result(json.dumps(info, indent=2))


def _line_arg(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


class FileReaderTool(BuiltinTool):
    name = "file-reader"
    description = "Reads file content from the project directory"
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "File path relative to project root",
            },
            "startLine": {
                "type": "number",
                "description": "Optional starting line number (1-indexed, inclusive)",
            },
            "endLine": {
                "type": "number",
                "description": "Optional ending line number (1-indexed, inclusive)",
            },
        },
        "required": ["path"],
    }

    max_size = DEFAULT_MAX_FILE_SIZE

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        requested = args.get("path")
        if not isinstance(requested, str):
            return text_result("Missing or invalid 'path' parameter: must be a string", True)
        try:
            resolved = resolve_within(self.project_path, requested, base_label="project path")
        except PathTraversalError as exc:
            return text_result(str(exc), True)
        try:
            content = await asyncio.to_thread(read_text_bounded, resolved, self.max_size)
        except FileTooLargeError as exc:
            return text_result(str(exc), True)
        except Exception as exc:  # noqa: BLE001
            return text_result(f"File reader tool error: {exc}", True)
        return text_result(
            extract_line_range(content, _line_arg(args.get("startLine")), _line_arg(args.get("endLine")))
        )


BUILTIN_TOOL_CLASSES = (GitStatusTool, GitDiffSummaryTool, WorkspaceInfoTool, FileReaderTool)


def create_builtin_tools(project_path: str) -> List[Tool]:
    """Build the fixed set of built-in tools for a workspace root."""
    root = os.path.abspath(project_path)
    return [cls(root).to_tool() for cls in BUILTIN_TOOL_CLASSES]
