#!/usr/bin/env python3
"""
toolgate - tool-calling dispatch server.

Serves the tool catalog over HTTP, or lists/calls tools directly from the command line.
"""

import argparse
import json
import logging
import os
import sys

# Configure logging
logging.basicConfig(
    level=getattr(logging, (os.getenv("LOG_LEVEL") or "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)

#
# NOTE: Keep toolgate imports lazy (inside functions) so `--help` never touches
# the kubernetes client.
#


def list_tools() -> None:
    from toolgate.runtime import build_runtime

    runtime = build_runtime()
    infos = runtime.registry.infos()
    if not infos:
        print("No tools registered (check TOOLGATE_TOOLSETS / TOOLGATE_READ_ONLY)")
        return
    for info in infos:
        print(f"{info.name:32}  {info.description}")


def call_tool(name: str, raw_args: str, credential: str) -> int:
    from toolgate.runtime import build_runtime

    try:
        arguments = json.loads(raw_args) if raw_args else {}
    except ValueError as e:
        print(f"Invalid --args JSON: {e}", file=sys.stderr)
        return 2

    runtime = build_runtime()
    result = runtime.dispatcher.call(credential, name, arguments)
    print(json.dumps(result.to_wire(), indent=2, sort_keys=False))
    return 1 if result.is_error else 0


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tool-calling dispatch server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve tools over HTTP
  python main.py --serve --port 8080

  # List registered tools
  python main.py --list-tools

  # Call a tool directly
  TOOLGATE_AUTH_MODE=local python main.py --call core.resolve_resource --args '{"resource": "deploy"}'
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")
    parser.add_argument("--list-tools", action="store_true", help="List registered tools and exit")
    parser.add_argument("--call", metavar="TOOL", help="Call one tool and print the result as JSON")
    parser.add_argument("--args", default="", help="JSON object of tool arguments (used with --call)")
    parser.add_argument(
        "--credential",
        default=os.getenv("TOOLGATE_CREDENTIAL", ""),
        help="API key or bearer token for --call (default: $TOOLGATE_CREDENTIAL)",
    )

    args = parser.parse_args()

    if args.serve:
        from toolgate.api.server import run

        run(host=args.host, port=args.port)
        return

    if args.list_tools:
        list_tools()
        return

    if args.call:
        sys.exit(call_tool(args.call, args.args, args.credential))

    parser.print_help()


if __name__ == "__main__":
    main()
