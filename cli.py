#!/usr/bin/env python3
"""
CLI Mode for ide-mcp-proxy

Runs one endpoint resolution against the local IDE without an MCP client.
Useful to check which IDE instance the proxy would pick, what tools it
exposes, and to call a tool by hand.

Usage:
  python cli.py                                    # Resolve endpoint and list tools
  python cli.py --check endpoint                   # Resolve endpoint only
  python cli.py --check tools                      # List the IDE's tools
  python cli.py --ide-port 63343                   # Test one port instead of scanning
  python cli.py --format json                      # JSON output
  python cli.py --format yaml                      # YAML output
  python cli.py --call-tool get_open_files         # Call a tool
  python cli.py --call-tool find_files --tool-args '{"nameSubstring": "main"}'
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import yaml

# Add src directory to path
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from ide_mcp_proxy.config import ProxyConfig  # noqa: E402
from ide_mcp_proxy.core import IdeProxy  # noqa: E402
from ide_mcp_proxy.errors import (  # noqa: E402
    CatalogUnavailable,
    ExplicitEndpointUnhealthy,
    NoEndpointAvailable,
    ResolveError,
)
from ide_mcp_proxy.response import ErrorCodes, ResponseEnvelope  # noqa: E402

# Only show warnings/errors in CLI mode
logging.basicConfig(
    level=logging.WARNING,
    format='%(levelname)s: %(message)s'
)
logger = logging.getLogger("ide-mcp-proxy-cli")


class ProxyCLI:
    """CLI interface for ide-mcp-proxy."""

    def __init__(self, args, config: ProxyConfig):
        self.args = args
        self.config = config
        self.results: Dict[str, Dict[str, Any]] = {}

    async def run(self) -> int:
        """Resolve the endpoint and run the requested checks."""
        start_time = time.time()
        proxy = IdeProxy(self.config)
        try:
            self.results["endpoint"] = await self.check_endpoint(proxy)

            if self.args.check in ("all", "tools") and not self.args.call_tool:
                self.results["tools"] = await self.check_tools(proxy)

            if self.args.call_tool:
                self.results["call"] = await self.call_tool(proxy)
        finally:
            await proxy.stop()

        self.execution_time_ms = int((time.time() - start_time) * 1000)
        self.output_results()
        return self.get_exit_code()

    async def check_endpoint(self, proxy: IdeProxy) -> Dict[str, Any]:
        ports = self.config.scan_ports
        data = {
            "explicit_port": self.config.explicit_port,
            "scan_range": f"{ports[0]}-{ports[-1]}",
        }
        try:
            endpoint = await proxy.refresh()
        except ExplicitEndpointUnhealthy as e:
            return ResponseEnvelope.error(ErrorCodes.EXPLICIT_ENDPOINT_UNHEALTHY, str(e), data)
        except ResolveError as e:
            return ResponseEnvelope.error(ErrorCodes.ENDPOINT_NOT_FOUND, str(e), data)

        data["endpoint"] = str(endpoint)
        data["port"] = endpoint.port
        return ResponseEnvelope.success(f"Found working IDE endpoint at {endpoint}", data)

    async def check_tools(self, proxy: IdeProxy) -> Dict[str, Any]:
        try:
            tools = await proxy.list_tools()
        except NoEndpointAvailable as e:
            return ResponseEnvelope.error(ErrorCodes.NO_ENDPOINT_AVAILABLE, str(e))
        except CatalogUnavailable as e:
            return ResponseEnvelope.error(ErrorCodes.CATALOG_UNAVAILABLE, str(e))

        return ResponseEnvelope.success(
            f"IDE exposes {len(tools)} tools",
            {"count": len(tools), "tools": [tool.to_dict() for tool in tools]}
        )

    async def call_tool(self, proxy: IdeProxy) -> Dict[str, Any]:
        name = self.args.call_tool
        tool_args = self.args.parsed_tool_args

        problems = proxy.check_arguments(name, tool_args)
        if problems:
            return ResponseEnvelope.error(
                ErrorCodes.INVALID_ARGUMENT,
                f"Invalid arguments for tool {name}: {'; '.join(problems)}",
                {"tool": name, "problems": problems}
            )

        try:
            result = await proxy.call_tool(name, tool_args)
        except NoEndpointAvailable as e:
            return ResponseEnvelope.error(ErrorCodes.NO_ENDPOINT_AVAILABLE, str(e), {"tool": name})
        return ResponseEnvelope.from_tool_result(name, result)

    def output_results(self):
        """Output results in the requested format."""
        output = {
            "timestamp": datetime.now().isoformat(),
            "checks": self.results,
            "execution_time_ms": self.execution_time_ms,
            "ok": self.get_exit_code() == 0,
        }
        if self.args.format == "json":
            print(json.dumps(output, indent=2))
        elif self.args.format == "yaml":
            print(yaml.safe_dump(output, sort_keys=False, allow_unicode=True))
        else:
            self.output_text()

    def output_text(self):
        """Output human-readable text format."""
        print("=" * 80)
        print(f"IDE Proxy Report - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 80)
        print()

        if "endpoint" in self.results:
            self.print_endpoint_check()
        if "tools" in self.results:
            self.print_tools_check()
        if "call" in self.results:
            self.print_call_result()

        print(f"Execution time: {self.execution_time_ms}ms")

    def print_endpoint_check(self):
        check = self.results["endpoint"]
        data = check.get("data", {})
        print("ENDPOINT DISCOVERY")
        print("-" * 80)
        if check["ok"]:
            print(f"✓ {check['message']}")
        else:
            print(f"✗ {check['message']}")
        if data.get("explicit_port"):
            print(f"  Explicit port: {data['explicit_port']}")
        else:
            print(f"  Scanned ports: {data.get('scan_range')}")
        print()

    def print_tools_check(self):
        check = self.results["tools"]
        print("TOOL CATALOG")
        print("-" * 80)
        if not check["ok"]:
            print(f"✗ {check['message']}")
            print()
            return

        print(f"  Tools: {check['data']['count']}")
        for tool in check["data"]["tools"]:
            description = (tool.get("description") or "").strip().splitlines()
            summary = description[0][:60] if description else ""
            print(f"    • {tool['name']}: {summary}")
        print()

    def print_call_result(self):
        check = self.results["call"]
        data = check.get("data", {})
        print(f"TOOL CALL: {data.get('tool', self.args.call_tool)}")
        print("-" * 80)
        symbol = "✓" if check["ok"] else "✗"
        print(f"{symbol} {'Success' if check['ok'] else 'Error'}")
        print()
        print(data.get("text", check["message"]))
        print()

    def get_exit_code(self) -> int:
        """0 when every check succeeded, 1 otherwise."""
        return 0 if all(check.get("ok") for check in self.results.values()) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CLI interface for ide-mcp-proxy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py                          # Resolve endpoint and list tools
  python cli.py --check endpoint         # Resolve endpoint only
  python cli.py --format json            # JSON output
  python cli.py --ide-port 63343         # Test one port
        """
    )
    parser.add_argument(
        "--check",
        choices=["all", "endpoint", "tools"],
        default="all",
        help="Which check(s) to run (default: all)"
    )
    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (default: text)"
    )
    parser.add_argument(
        "--ide-port",
        type=int,
        help="IDE API port; disables port scanning"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-probe timeout in seconds (default: PROBE_TIMEOUT or 2)"
    )
    parser.add_argument(
        "--call-tool",
        metavar="TOOL_NAME",
        help="Call an IDE tool after resolving the endpoint"
    )
    parser.add_argument(
        "--tool-args",
        metavar="JSON",
        help="JSON object of arguments for --call-tool"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output (show info logs)"
    )
    return parser


async def main_async() -> int:
    """Async main function."""
    args = build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    args.parsed_tool_args = {}
    if args.tool_args:
        try:
            args.parsed_tool_args = json.loads(args.tool_args)
        except json.JSONDecodeError as e:
            print(f"✗ Invalid JSON in --tool-args: {e}")
            return 1
        if not isinstance(args.parsed_tool_args, dict):
            print("✗ --tool-args must be a JSON object")
            return 1

    try:
        config = ProxyConfig.from_env().with_overrides(
            explicit_port=args.ide_port,
            probe_timeout=args.timeout,
        )
    except ValueError as e:
        print(f"✗ Configuration error: {e}")
        return 1

    cli = ProxyCLI(args, config)
    return await cli.run()


def main():
    """Main entry point."""
    try:
        exit_code = asyncio.run(main_async())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
