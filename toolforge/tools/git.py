"""
Minimal asynchronous git runner used by the built-in tools.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

GIT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class GitResult:
    exit_code: int
    stdout: str
    stderr: str


class GitError(RuntimeError):
    """Raised when git cannot be started or does not finish in time."""


async def run_git(args: Sequence[str], cwd: str, timeout: float = GIT_TIMEOUT_SECONDS) -> GitResult:
    """
    Run `git <args>` in `cwd` and capture its output.

    Raises:
        GitError: If the git binary cannot be spawned or times out.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise GitError(f"failed to run git: {exc}") from exc

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise GitError(f"git {' '.join(args)} timed out after {timeout}s") from exc

    return GitResult(
        exit_code=proc.returncode,
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
    )
