"""
Shell command execution strategy.

Runs a command template as an argument vector, never through a shell.
The template is split into tokens on whitespace *before* any argument
is substituted, and each token is interpolated on its own, so an
argument value can never add tokens, pipes or redirections. Every run
is bounded by a wall-clock timeout after which the process is killed.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Mapping, Optional

import structlog

from toolforge.tools.base import ShellHandlerConfig, ToolContext, ToolHandler, ToolResult, text_result
from toolforge.tools.files import PathTraversalError, resolve_within
from toolforge.tools.interpolation import InterpolationError, interpolate

logger = structlog.get_logger(__name__)


def strip_quotes(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1]
    return token


def parse_command_template(command: str, args: Mapping[str, Any]) -> List[str]:
    """
    Turn a command template into an argument vector.

    Tokenizes first, then interpolates each token independently and strips
    one pair of matching surrounding quotes from the result.
    """
    argv: List[str] = []
    for token in command.split():
        if "{{" in token:
            token = interpolate(token, args)
        argv.append(strip_quotes(token))
    return argv


class ShellHandler(ToolHandler):
    """
    Execute a command template with argument interpolation.

    A relative `cwd` is resolved inside `base_dir` (the directory the
    plugin file was loaded from) and may not escape it.
    """

    def __init__(self, config: ShellHandlerConfig, base_dir: Optional[str] = None) -> None:
        self.config = config
        self.base_dir = base_dir
        self.timeout = config.timeout_ms / 1000.0

    def _resolve_cwd(self) -> Optional[str]:
        cwd = self.config.cwd
        if cwd is None:
            return None
        if not os.path.isabs(cwd) and self.base_dir is not None:
            cwd = resolve_within(self.base_dir, cwd)
        else:
            cwd = os.path.realpath(cwd)
        if not os.path.isdir(cwd):
            raise NotADirectoryError(f"Working directory does not exist: {self.config.cwd}")
        return cwd

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        try:
            argv = parse_command_template(self.config.command, args)
            if not argv:
                return text_result("Invalid command: template resulted in empty argument list", True)
            cwd = self._resolve_cwd()
        except (InterpolationError, PathTraversalError, NotADirectoryError) as exc:
            return text_result(f"Shell handler error: {exc}", True)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return text_result(f"Process execution failed: {exc}", True)

        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning(
                "shell_timeout",
                command=argv[0],
                timeout_ms=self.config.timeout_ms,
                tool_use_id=context.tool_use_id,
            )
            return text_result(f"Command timed out after {self.config.timeout_ms}ms", True)
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise
        except Exception as exc:  # noqa: BLE001
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            return text_result(f"Process execution failed: {exc}", True)

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            message = stderr.strip() or stdout.strip() or "Command failed"
            return text_result(f"Command failed with exit code {proc.returncode}:\n{message}", True)

        output = stdout
        if stderr.strip():
            output += f"\n--- stderr ---\n{stderr}"
        return text_result(output)
