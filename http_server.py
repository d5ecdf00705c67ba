#!/usr/bin/env python3
"""
HTTP Transport Runner for ide-mcp-proxy

Serves the IDE proxy over MCP Streamable HTTP (plus legacy SSE) with health
endpoints, for clients that cannot spawn a stdio process.

Endpoints:
  POST/GET/DELETE /mcp   - MCP Streamable HTTP
  GET  /sse              - Legacy SSE connection
  POST /messages/        - Legacy SSE message endpoint
  GET  /health           - Basic health check
  GET  /health?ready     - Readiness (IDE endpoint resolved)
  GET  /health?live      - Refresh loop liveness
  GET  /info             - Server info endpoint
  POST /tool/{tool_name} - Call an IDE tool (non-MCP endpoint)

Usage:
  python http_server.py                          # Default port 3000
  python http_server.py --port 3001              # Custom port
  python http_server.py --ide-port 63343         # Skip port scanning
  HTTP_PORT=3000 IDE_PORT=63342 python http_server.py
"""

import argparse
import sys
from pathlib import Path

# Add src directory to path for imports
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from ide_mcp_proxy.config import ProxyConfig  # noqa: E402
from ide_mcp_proxy.http_transport import run_http  # noqa: E402
from ide_mcp_proxy.logging_config import configure_logging, init_sentry  # noqa: E402
from ide_mcp_proxy.server import SERVER_VERSION  # noqa: E402


def build_parser(defaults: ProxyConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="HTTP transport for the JetBrains IDE MCP proxy"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help=f"HTTP port to listen on (default: {defaults.http_port})"
    )
    parser.add_argument(
        "--host",
        help=f"Host to bind to (default: {defaults.http_host})"
    )
    parser.add_argument(
        "--ide-port",
        type=int,
        help="IDE API port; disables port scanning"
    )
    parser.add_argument(
        "--ide-host",
        help=f"Host of the IDE API (default: {defaults.host})"
    )
    parser.add_argument(
        "--refresh-interval",
        type=float,
        help=f"Seconds between endpoint checks (default: {defaults.refresh_interval:g})"
    )
    parser.add_argument(
        "--evict-after",
        type=int,
        help="Drop the cached endpoint after N failed checks in a row (default: never)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable logging (same as LOG_ENABLED=true)"
    )
    return parser


def main():
    """Run the ide-mcp-proxy HTTP server."""
    try:
        defaults = ProxyConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args()

    try:
        config = defaults.with_overrides(
            http_port=args.port,
            http_host=args.host,
            explicit_port=args.ide_port,
            host=args.ide_host,
            refresh_interval=args.refresh_interval,
            evict_after=args.evict_after,
            log_enabled=True if args.verbose else None,
            transport_mode="http",
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_enabled, config.log_level, config.log_file)
    init_sentry(config.sentry_dsn, release=f"ide-mcp-proxy@{SERVER_VERSION}")
    run_http(config)


if __name__ == "__main__":
    main()
