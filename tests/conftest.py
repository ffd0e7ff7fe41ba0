"""
Pytest configuration and fixtures.
"""

import json
import os
import shutil
import subprocess
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Generator
from urllib.parse import parse_qs, urlsplit

import pytest
import structlog

from toolforge.tools.base import ToolContext


@pytest.fixture(autouse=True, scope="session")
def quiet_structlog() -> None:
    """Keep log output out of captured stdout."""
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())


@pytest.fixture
def ctx() -> ToolContext:
    return ToolContext(tool_use_id="test-tool-use-id", session_id="test-session-id")


def write_plugin(directory, filename: str, data) -> str:
    """Write a plugin file (dict → JSON, str → raw) and return its path."""
    path = os.path.join(str(directory), filename)
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)
    return path


def shell_tool(name: str, command: str, **handler) -> dict:
    return {
        "name": name,
        "description": f"{name} tool",
        "inputSchema": {"type": "object", "properties": {}},
        "handler": {"type": "shell", "command": command, **handler},
    }


# --------------------------------------------------------------------------------------
# Local HTTP server
# --------------------------------------------------------------------------------------


class _RecordingHandler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):  # noqa: A002
        pass

    def _reply(self) -> None:
        parts = urlsplit(self.path)
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode("utf-8") if length else ""

        if parts.path == "/slow":
            time.sleep(2)
        if parts.path == "/fail":
            payload = b"boom"
            self.send_response(500, "Internal Server Error")
        else:
            payload = json.dumps(
                {
                    "method": self.command,
                    "path": parts.path,
                    "query": parse_qs(parts.query),
                    "contentType": self.headers.get("Content-Type"),
                    "token": self.headers.get("X-Token"),
                    "body": body,
                }
            ).encode("utf-8")
            self.send_response(200)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _reply
    do_POST = _reply
    do_PUT = _reply


@pytest.fixture
def http_server() -> Generator[str, None, None]:
    """Serve a recording HTTP endpoint on localhost; yields its base URL."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _RecordingHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


# --------------------------------------------------------------------------------------
# Temporary git repository
# --------------------------------------------------------------------------------------


def _git(cwd: str, *args: str) -> None:
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path) -> str:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = str(tmp_path / "repo")
    os.makedirs(repo)
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    with open(os.path.join(repo, "README.md"), "w", encoding="utf-8") as f:
        f.write("hello\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "initial")
    return repo
