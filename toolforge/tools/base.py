"""
Base types for the tool execution framework.

Tools are named, schema-described capabilities that an agent runtime
can invoke. Each tool is backed by a handler that receives the call
arguments and a per-call context and always answers with a
`ToolResult`; failures are reported through the result, never raised.
Declarative tool definitions and registration errors live here too.
"""

from __future__ import annotations

import enum
import threading
from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

DEFAULT_SHELL_TIMEOUT_MS = 30000
DEFAULT_HTTP_TIMEOUT_MS = 10000
DEFAULT_MAX_FILE_SIZE = 1048576

HTTP_METHODS = ("GET", "POST", "PUT")


class ToolSource(str, enum.Enum):
    BUILTIN = "builtin"
    PLUGIN = "plugin"


@dataclass(frozen=True)
class ToolResultContent:
    """One content block of a tool result (text or base64 image data)."""

    type: str
    text: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type}
        if self.text is not None:
            out["text"] = self.text
        if self.data is not None:
            out["data"] = self.data
        if self.mime_type is not None:
            out["mimeType"] = self.mime_type
        return out


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of a single tool invocation.

    This is the only channel for reporting both success and failure:
    handlers set `is_error` instead of raising.
    """

    content: Tuple[ToolResultContent, ...]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(c.text for c in self.content if c.text is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [c.to_dict() for c in self.content],
            "isError": self.is_error,
        }


def text_result(text: str, is_error: bool = False) -> ToolResult:
    return ToolResult(content=(ToolResultContent(type="text", text=text),), is_error=is_error)


@dataclass(frozen=True)
class ToolContext:
    """
    Per-call context passed to every handler.

    `cancel_event` is an optional cooperative cancellation signal; handlers
    are bounded by their own timeouts and may ignore it mid-operation.
    """

    tool_use_id: str
    session_id: str
    cancel_event: Optional[threading.Event] = None


def freeze_schema(value: Any) -> Any:
    """Deep, read-only copy of a JSON-like value. Lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_schema(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_schema(item) for item in value)
    return value


def thaw_schema(value: Any) -> Any:
    """Inverse of `freeze_schema`: a fresh, mutable, JSON-serializable copy."""
    if isinstance(value, Mapping):
        return {key: thaw_schema(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_schema(item) for item in value]
    return value


ToolHandlerFn = Callable[[Dict[str, Any], ToolContext], Awaitable[ToolResult]]


class ToolHandler:
    """
    Base class for execution strategies.

    Subclasses close over their static configuration and implement
    `__call__(args, context)` as a coroutine returning a `ToolResult`.
    """

    async def __call__(self, args: Dict[str, Any], context: ToolContext) -> ToolResult:
        raise NotImplementedError


# --------------------------------------------------------------------------------------
# Handler configuration (tagged by the JSON "type" field)
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class ShellHandlerConfig:
    command: str
    cwd: Optional[str] = None
    timeout_ms: int = DEFAULT_SHELL_TIMEOUT_MS

    type_tag = "shell"

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "ShellHandlerConfig":
        return cls(
            command=cfg["command"],
            cwd=cfg.get("cwd"),
            timeout_ms=int(cfg.get("timeout", DEFAULT_SHELL_TIMEOUT_MS)),
        )


@dataclass(frozen=True)
class HttpHandlerConfig:
    url: str
    method: str = "POST"
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_ms: int = DEFAULT_HTTP_TIMEOUT_MS

    type_tag = "http"

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "HttpHandlerConfig":
        return cls(
            url=cfg["url"],
            method=cfg.get("method", "POST"),
            headers=dict(cfg.get("headers") or {}),
            timeout_ms=int(cfg.get("timeout", DEFAULT_HTTP_TIMEOUT_MS)),
        )


@dataclass(frozen=True)
class FileReadHandlerConfig:
    base_path: str
    max_size: int = DEFAULT_MAX_FILE_SIZE

    type_tag = "file-read"

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "FileReadHandlerConfig":
        return cls(
            base_path=cfg["basePath"],
            max_size=int(cfg.get("maxSize", DEFAULT_MAX_FILE_SIZE)),
        )


HandlerConfig = Union[ShellHandlerConfig, HttpHandlerConfig, FileReadHandlerConfig]

HANDLER_CONFIG_TYPES = {
    ShellHandlerConfig.type_tag: ShellHandlerConfig,
    HttpHandlerConfig.type_tag: HttpHandlerConfig,
    FileReadHandlerConfig.type_tag: FileReadHandlerConfig,
}


# --------------------------------------------------------------------------------------
# Definitions, executable tools and registration bookkeeping
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDefinition:
    """Declarative source for one plugin tool, as read from a plugin file."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: HandlerConfig


@dataclass(frozen=True)
class PluginConfigFile:
    name: str
    tools: Tuple[ToolDefinition, ...]
    version: Optional[str] = None


@dataclass(frozen=True)
class Tool:
    """An executable tool: metadata plus the handler that runs it."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: ToolHandlerFn


@dataclass(frozen=True)
class LoadedPluginTool(Tool):
    plugin_name: str = ""


@dataclass(frozen=True)
class RegisteredToolInfo:
    """Registry-facing metadata for a registered tool. The schema is frozen on creation."""

    name: str
    description: str
    source: ToolSource
    input_schema: Mapping[str, Any]
    plugin_name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_schema", freeze_schema(self.input_schema))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "source": self.source.value,
            "inputSchema": thaw_schema(self.input_schema),
        }
        if self.plugin_name is not None:
            out["pluginName"] = self.plugin_name
        return out


@dataclass(frozen=True)
class ToolRegistrationError:
    """A registration-time failure. Accumulated, never raised."""

    source: str
    message: str
    tool_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"source": self.source, "message": self.message}
        if self.tool_name is not None:
            out["toolName"] = self.tool_name
        return out


@dataclass(frozen=True)
class ToolRegistrationResult:
    success: bool
    tool_count: int
    errors: Tuple[ToolRegistrationError, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "toolCount": self.tool_count,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class PluginLoadResult:
    tools: Tuple[LoadedPluginTool, ...] = ()
    errors: Tuple[ToolRegistrationError, ...] = ()
