from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from toolforge.config import AppConfig, load_app_config
from toolforge.logging_setup import configure_logging
from toolforge.tools.base import ToolContext
from toolforge.tools.plugins import load_plugin_tools
from toolforge.tools.registry import ToolRegistry


# --------------------------------------------------------------------------------------
# Registry builder
# --------------------------------------------------------------------------------------


def build_tool_registry(cfg: AppConfig) -> ToolRegistry:
    """
    Build the tool registry from the loaded configuration.

    The registry is empty until `initialize()` is awaited.
    """
    return ToolRegistry(
        project_path=cfg.workspace,
        plugin_dir=cfg.plugin_dir,
        server_name=cfg.server_name,
        server_version=cfg.server_version,
    )


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


# --------------------------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------------------------


async def cmd_list(registry: ToolRegistry) -> int:
    await registry.initialize()
    for info in registry.list_tools():
        origin = info.source.value if info.plugin_name is None else f"{info.source.value}:{info.plugin_name}"
        print(f"{info.name:<28} {origin:<24} {info.description}")
    counts = registry.count_by_source()
    print(f"\n{counts['total']} tools ({counts['builtin']} builtin, {counts['plugin']} plugin)")
    return 0


async def cmd_show(registry: ToolRegistry, name: str) -> int:
    await registry.initialize()
    info = registry.get_tool_info(name)
    if info is None:
        print(f"Tool not found: {name}", file=sys.stderr)
        return 1
    _print_json(info.to_dict())
    return 0


async def cmd_reload(registry: ToolRegistry) -> int:
    await registry.initialize()
    result = await registry.reload_plugins()
    _print_json(result.to_dict())
    return 0 if result.success else 1


def cmd_validate(plugin_dir: str) -> int:
    result = load_plugin_tools(plugin_dir)
    for tool in result.tools:
        print(f"ok     {tool.plugin_name}/{tool.name}")
    for error in result.errors:
        scope = f"{error.source} [{error.tool_name}]" if error.tool_name else error.source
        print(f"error  {scope}: {error.message}")
    return 1 if result.errors else 0


async def cmd_call(registry: ToolRegistry, name: str, raw_args: str) -> int:
    try:
        args: Dict[str, Any] = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        print(f"--args is not valid JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(args, dict):
        print("--args must be a JSON object", file=sys.stderr)
        return 2

    await registry.initialize()
    context = ToolContext(tool_use_id=str(uuid.uuid4()), session_id="cli")
    result = await registry.invoke(name, args, context)
    print(result.text)
    return 1 if result.is_error else 0


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inspect, validate and call built-in and plugin tools."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml. Defaults and environment variables are used when omitted.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List all registered tools.")

    show_parser = subparsers.add_parser("show", help="Show metadata for one tool.")
    show_parser.add_argument("name", help="Tool name.")

    subparsers.add_parser("reload", help="Reload plugin tools and report registration errors.")

    validate_parser = subparsers.add_parser(
        "validate", help="Validate plugin definition files without registering them."
    )
    validate_parser.add_argument(
        "plugin_dir",
        nargs="?",
        default=None,
        help="Plugin directory (defaults to the configured one).",
    )

    call_parser = subparsers.add_parser("call", help="Invoke a tool and print its result.")
    call_parser.add_argument("name", help="Tool name.")
    call_parser.add_argument(
        "--args",
        default="{}",
        help="Tool arguments as a JSON object.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    # Load environment variables from .env (if present)
    load_dotenv()

    args = parse_args(sys.argv[1:] if argv is None else argv)

    config = load_app_config(args.config)
    configure_logging(config.log_level, config.json_logs)

    if args.command == "validate":
        return cmd_validate(args.plugin_dir or config.plugin_dir)

    registry = build_tool_registry(config)

    if args.command == "list":
        return asyncio.run(cmd_list(registry))
    if args.command == "show":
        return asyncio.run(cmd_show(registry, args.name))
    if args.command == "reload":
        return asyncio.run(cmd_reload(registry))
    if args.command == "call":
        return asyncio.run(cmd_call(registry, args.name, args.args))

    # Should never reach here
    raise SystemExit(f"Unknown command: {args.command!r}")


if __name__ == "__main__":
    sys.exit(main())
