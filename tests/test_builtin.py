"""Tests for the built-in workspace tools."""

import json
import os
import subprocess

import pytest

from toolforge.tools.builtin import create_builtin_tools


def _tool(project_path, name):
    return next(t for t in create_builtin_tools(project_path) if t.name == name)


class TestCreateBuiltinTools:
    """The fixed built-in set."""

    def test_returns_four_tools(self, tmp_path):
        tools = create_builtin_tools(str(tmp_path))
        assert [t.name for t in tools] == ["git-status", "git-diff-summary", "workspace-info", "file-reader"]

    def test_each_tool_is_complete(self, tmp_path):
        for tool in create_builtin_tools(str(tmp_path)):
            assert tool.description
            assert tool.input_schema["type"] == "object"
            assert callable(tool.handler)


class TestGitStatus:
    """git-status."""

    @pytest.mark.asyncio
    async def test_clean_repo(self, git_repo, ctx):
        result = await _tool(git_repo, "git-status").handler({}, ctx)
        assert result.is_error is False
        assert result.text == ""

    @pytest.mark.asyncio
    async def test_untracked_file(self, git_repo, ctx):
        with open(os.path.join(git_repo, "new.txt"), "w") as f:
            f.write("x")
        result = await _tool(git_repo, "git-status").handler({}, ctx)
        assert "?? new.txt" in result.text

    @pytest.mark.asyncio
    async def test_invalid_path_argument(self, git_repo, ctx):
        result = await _tool(git_repo, "git-status").handler({"path": 123}, ctx)
        assert result.is_error is True
        assert "Invalid 'path' parameter" in result.text

    @pytest.mark.asyncio
    async def test_not_a_repository(self, tmp_path, ctx, git_repo):
        plain = tmp_path / "plain"
        plain.mkdir()
        result = await _tool(str(plain), "git-status").handler({}, ctx)
        assert result.is_error is True
        assert "git status failed with exit code" in result.text


class TestGitDiffSummary:
    """git-diff-summary."""

    @pytest.mark.asyncio
    async def test_unstaged_changes(self, git_repo, ctx):
        with open(os.path.join(git_repo, "README.md"), "a") as f:
            f.write("more\n")
        result = await _tool(git_repo, "git-diff-summary").handler({}, ctx)
        assert result.is_error is False
        assert "README.md" in result.text

    @pytest.mark.asyncio
    async def test_staged_flag(self, git_repo, ctx):
        with open(os.path.join(git_repo, "README.md"), "a") as f:
            f.write("more\n")
        tool = _tool(git_repo, "git-diff-summary")
        assert "README.md" not in (await tool.handler({"staged": True}, ctx)).text
        subprocess.run(["git", "add", "README.md"], cwd=git_repo, check=True)
        staged = await tool.handler({"staged": True}, ctx)
        assert staged.is_error is False
        assert "README.md" in staged.text


class TestWorkspaceInfo:
    """workspace-info."""

    @pytest.mark.asyncio
    async def test_branch_and_missing_remote(self, git_repo, ctx):
        result = await _tool(git_repo, "workspace-info").handler({}, ctx)
        assert result.is_error is False
        info = json.loads(result.text)
        assert info["projectPath"] == os.path.abspath(git_repo)
        assert info["branch"] == "main"
        assert "remoteUrl" not in info
        assert info["remoteUrlError"]

    @pytest.mark.asyncio
    async def test_remote_url(self, git_repo, ctx):
        subprocess.run(["git", "remote", "add", "origin", "https://example.com/repo.git"], cwd=git_repo, check=True)
        info = json.loads((await _tool(git_repo, "workspace-info").handler({}, ctx)).text)
        assert info["remoteUrl"] == "https://example.com/repo.git"


class TestFileReader:
    """file-reader."""

    @pytest.fixture
    def project(self, tmp_path):
        (tmp_path / "test.txt").write_text("Hello, World!\nLine 2\nLine 3\n")
        (tmp_path / "multiline.txt").write_text("\n".join(f"Line {i}" for i in range(1, 101)))
        (tmp_path / "large.txt").write_text("x" * (2 * 1024 * 1024))
        return str(tmp_path)

    @pytest.mark.asyncio
    async def test_reads_file(self, project, ctx):
        result = await _tool(project, "file-reader").handler({"path": "test.txt"}, ctx)
        assert result.is_error is False
        assert "Hello, World!" in result.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", [{}, {"path": 123}])
    async def test_missing_or_invalid_path(self, project, ctx, args):
        result = await _tool(project, "file-reader").handler(args, ctx)
        assert result.is_error is True
        assert "Missing or invalid 'path'" in result.text

    @pytest.mark.asyncio
    async def test_prevents_traversal(self, project, ctx):
        result = await _tool(project, "file-reader").handler({"path": "../../../etc/passwd"}, ctx)
        assert result.is_error is True
        assert "Path traversal detected" in result.text
        assert "project path" in result.text

    @pytest.mark.asyncio
    async def test_line_range(self, project, ctx):
        result = await _tool(project, "file-reader").handler(
            {"path": "multiline.txt", "startLine": 1, "endLine": 3}, ctx
        )
        assert result.text == "Line 1\nLine 2\nLine 3"

    @pytest.mark.asyncio
    async def test_size_limit(self, project, ctx):
        result = await _tool(project, "file-reader").handler({"path": "large.txt"}, ctx)
        assert result.is_error is True
        assert "exceeds maximum allowed size" in result.text

    @pytest.mark.asyncio
    async def test_nonexistent_file(self, project, ctx):
        result = await _tool(project, "file-reader").handler({"path": "nonexistent.txt"}, ctx)
        assert result.is_error is True
        assert "File reader tool error" in result.text
