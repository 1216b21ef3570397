"""Artificer CLI — validate config, run the server, and work with tools."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure project root is importable when running as script
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def _load(path: str):
    from artificer.config_loader import load_config

    try:
        return load_config(path)
    except FileNotFoundError:
        print(f"Error: config not found: {path}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        sys.exit(1)


async def _ready_manager(config):
    from artificer.components import build_components, configure_logging

    configure_logging(config)
    components = build_components(config)
    await components.manager.initialize()
    return components.manager


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate an artificer.yaml config."""
    config = _load(args.config)

    print(f"Config OK: {config.app.name} v{config.app.version}")
    print(f"  Model:          {config.models.backend} {config.models.model} @ {config.models.base_url}")
    print(f"  Embedding:      {config.embedding.backend} {config.embedding.model}")
    location = config.vector_db.url or config.vector_db.path
    print(f"  Vector store:   {config.vector_db.backend} ({location}) collection={config.vector_db.collection}")
    print(f"  Sandbox:        timeout={config.sandbox.timeout_seconds:g}s")
    print(f"  Allowed modules: {', '.join(config.sandbox.allowed_modules) or '(none)'}")
    print(f"  Audit path:     {config.audit.path if config.audit.enabled else '(disabled)'}")


def cmd_run(args: argparse.Namespace) -> None:
    """Start the Artificer HTTP server."""
    import os

    from artificer.config_loader import CONFIG_ENV_VAR

    os.environ[CONFIG_ENV_VAR] = args.config
    config = _load(args.config)

    print(f"Starting Artificer for '{config.app.name}'...")
    print(f"  Config: {args.config}")
    print(f"  Host:   {args.host}")
    print(f"  Port:   {args.port}")
    print()

    import uvicorn

    uvicorn.run(
        "artificer.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.logging.level.lower(),
    )


def cmd_tools(args: argparse.Namespace) -> None:
    """List tools relevant to a context string."""
    config = _load(args.config)

    async def _run():
        manager = await _ready_manager(config)
        return await manager.get_available_tools(args.context, args.k)

    tools = asyncio.run(_run())
    if args.openai:
        print(json.dumps([tool.to_openai() for tool in tools], indent=2))
        return
    for tool in tools:
        if args.json:
            print(tool.model_dump_json())
        else:
            required = ", ".join(tool.parameters.get("required") or []) or "-"
            print(f"{tool.name:24s}  required: {required:30s}  {tool.description}")


def cmd_show(args: argparse.Namespace) -> None:
    """Print a stored tool, including its source."""
    config = _load(args.config)

    async def _run():
        manager = await _ready_manager(config)
        return await manager.get_tool_definition(args.name)

    tool = asyncio.run(_run())
    if tool is None:
        print(f"Error: Tool '{args.name}' not found", file=sys.stderr)
        sys.exit(1)
    print(f"{tool.name} ({tool.provenance.value})")
    print(f"  {tool.description}")
    print(json.dumps(tool.parameters, indent=2))
    print()
    print(tool.code)


def cmd_create(args: argparse.Namespace) -> None:
    """Create a tool from a name, a description and a JSON schema."""
    config = _load(args.config)
    try:
        parameters = json.loads(args.parameters)
    except json.JSONDecodeError as exc:
        print(f"Error: parameters must be JSON: {exc}", file=sys.stderr)
        sys.exit(1)

    async def _run():
        manager = await _ready_manager(config)
        return await manager.create_tool(args.name, args.description, parameters)

    _finish(asyncio.run(_run()))


def cmd_exec(args: argparse.Namespace) -> None:
    """Execute a tool with JSON arguments."""
    config = _load(args.config)
    try:
        arguments = json.loads(args.arguments)
    except json.JSONDecodeError as exc:
        print(f"Error: arguments must be JSON: {exc}", file=sys.stderr)
        sys.exit(1)

    async def _run():
        manager = await _ready_manager(config)
        return await manager.execute_tool(args.name, arguments)

    _finish(asyncio.run(_run()))


def _finish(result: str) -> None:
    from artificer.errors import is_error

    print(result)
    if is_error(result):
        sys.exit(1)


def cmd_logs(args: argparse.Namespace) -> None:
    """Query audit logs."""
    from artificer.audit.logger import JsonlAuditLogger
    from contracts.audit import AuditEvent

    log_path = args.log_path

    if not Path(log_path).exists():
        print(f"No audit log found at {log_path}", file=sys.stderr)
        sys.exit(1)

    audit = JsonlAuditLogger(log_path)
    if args.request_id:
        entries = audit.query_by_request(args.request_id)
    elif args.tool:
        entries = audit.query_by_tool(args.tool, limit=args.limit)
    elif args.event:
        try:
            event = AuditEvent(args.event)
        except ValueError:
            valid = ", ".join(e.value for e in AuditEvent)
            print(f"Unknown event type: {args.event}", file=sys.stderr)
            print(f"Valid events: {valid}", file=sys.stderr)
            sys.exit(1)
        entries = audit.query_by_event(event, limit=args.limit)
    else:
        entries = audit.tail(n=args.limit)

    if not entries:
        print("No matching audit entries.")
        return

    for entry in entries:
        record = json.loads(entry.model_dump_json())
        if args.json:
            print(json.dumps(record))
        else:
            ts = record["ts"][:19]
            event = record["event"]
            rid = record["request_id"][:8]
            detail = json.dumps(record.get("detail", {}))
            print(f"{ts}  [{event:21s}]  {rid}  {record['tool']:20s}  {detail}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="artificer",
        description="Artificer — generate, store and run model-authored tools",
    )
    parser.add_argument(
        "--config", "-c", default="artificer.yaml", help="Path to config file"
    )
    sub = parser.add_subparsers(dest="command")

    # validate
    p_val = sub.add_parser("validate", help="Validate the config file")
    p_val.set_defaults(func=cmd_validate)

    # run
    p_run = sub.add_parser("run", help="Start the Artificer HTTP server")
    p_run.add_argument("--host", default="127.0.0.1", help="Bind address")
    p_run.add_argument("--port", type=int, default=8080, help="Port")
    p_run.add_argument("--reload", action="store_true", help="Enable auto-reload")
    p_run.set_defaults(func=cmd_run)

    # tools
    p_tools = sub.add_parser("tools", help="List tools relevant to a context")
    p_tools.add_argument("context", nargs="?", default="", help="Context text")
    p_tools.add_argument("-k", type=int, default=None, help="Number of stored tools")
    p_tools.add_argument("--json", action="store_true", help="Output raw JSON")
    p_tools.add_argument("--openai", action="store_true", help="Output OpenAI function-calling definitions")
    p_tools.set_defaults(func=cmd_tools)

    # show
    p_show = sub.add_parser("show", help="Show a stored tool and its source")
    p_show.add_argument("name", help="Tool name")
    p_show.set_defaults(func=cmd_show)

    # create
    p_create = sub.add_parser("create", help="Generate and store a new tool")
    p_create.add_argument("name", help="Tool name (snake_case)")
    p_create.add_argument("description", help="What the tool does")
    p_create.add_argument(
        "parameters",
        nargs="?",
        default='{"type": "object", "properties": {}, "required": []}',
        help="JSON parameter schema",
    )
    p_create.set_defaults(func=cmd_create)

    # exec
    p_exec = sub.add_parser("exec", help="Execute a tool")
    p_exec.add_argument("name", help="Tool name")
    p_exec.add_argument("arguments", nargs="?", default="{}", help="JSON arguments")
    p_exec.set_defaults(func=cmd_exec)

    # logs
    p_logs = sub.add_parser("logs", help="Query audit logs")
    p_logs.add_argument("log_path", help="Path to audit JSONL file")
    p_logs.add_argument("--request-id", "-r", help="Filter by request ID")
    p_logs.add_argument("--tool", "-t", help="Filter by tool name")
    p_logs.add_argument("--event", "-e", help="Filter by event type")
    p_logs.add_argument("--limit", "-n", type=int, default=20, help="Max entries")
    p_logs.add_argument("--json", action="store_true", help="Output raw JSON")
    p_logs.set_defaults(func=cmd_logs)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
