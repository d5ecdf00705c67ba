#!/usr/bin/env python3
"""
IDE MCP Proxy Server

Exposes the tools of a running JetBrains IDE to MCP clients:
- Discovers the IDE's local API (IDE_PORT or port scan 63342-63352)
- Revalidates the endpoint every 10 seconds
- Sends tools/list_changed when the IDE's tool catalog changes
- Forwards tool calls to POST {endpoint}/mcp/{tool}

Transports:
- stdio (default)
- HTTP (TRANSPORT_MODE=http): Streamable HTTP at /mcp plus legacy SSE
"""

import asyncio
import logging
import signal
import sys
from typing import Any, Dict, Optional

import sentry_sdk
from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from ide_mcp_proxy.config import ProxyConfig
from ide_mcp_proxy.core import IdeProxy
from ide_mcp_proxy.errors import CatalogUnavailable, NoEndpointAvailable
from ide_mcp_proxy.logging_config import configure_logging, init_sentry
from ide_mcp_proxy.models import ToolCallResult, ToolDescriptor
from ide_mcp_proxy.notifications import ToolsChangedNotifier

logger = logging.getLogger(__name__)

SERVER_NAME = "jetbrains/proxy"
SERVER_VERSION = "0.1.0"

INSTRUCTIONS = (
    "You can interact with a JetBrains IntelliJ IDE and its features through this MCP "
    "(Model Context Protocol) server. The server provides access to various IDE tools "
    "and functionalities. All requests should be formatted as JSON objects according "
    "to the Model Context Protocol specification."
)


def to_mcp_tool(tool: ToolDescriptor) -> types.Tool:
    """Convert an IDE catalog entry to an MCP Tool, keeping its schema as-is."""
    return types.Tool(
        name=tool.name,
        title=tool.title or tool.name,
        description=tool.description or f"Proxy tool for {tool.name}",
        inputSchema=tool.input_schema or {"type": "object", "properties": {}},
    )


def to_call_tool_result(result: ToolCallResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


def _request_error(error: Exception) -> McpError:
    return McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=str(error)))


async def handle_list_tools(proxy: IdeProxy) -> list[types.Tool]:
    """Handle tools/list using the cached endpoint (no new search)."""
    try:
        tools = await proxy.list_tools()
    except (NoEndpointAvailable, CatalogUnavailable) as e:
        logger.error(f"Error handling list_tools request: {e}")
        raise _request_error(e)
    return [to_mcp_tool(tool) for tool in tools]


async def handle_call_tool(proxy: IdeProxy, name: str,
                           arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
    """
    Handle tools/call.

    Argument kinds are checked against the last catalog seen. Call-level
    failures come back as isError results; a missing endpoint is raised
    as a request error.
    """
    arguments = arguments or {}
    logger.info(f"Executing tool: {name} with args: {arguments}")

    problems = proxy.check_arguments(name, arguments)
    if problems:
        return to_call_tool_result(ToolCallResult.failure(
            f"Invalid arguments for tool {name}: {'; '.join(problems)}"
        ))

    try:
        result = await proxy.call_tool(name, arguments)
    except NoEndpointAvailable as e:
        logger.error(f"Error handling call_tool request: {e}")
        raise _request_error(e)
    return to_call_tool_result(result)


def create_server(proxy: IdeProxy, notifier: Optional[ToolsChangedNotifier] = None) -> Server:
    """
    Create the MCP server bound to a proxy.

    Every session that sends a request is tracked by the notifier so it
    receives tools/list_changed when the IDE catalog changes.
    """
    app = Server(SERVER_NAME, version=SERVER_VERSION, instructions=INSTRUCTIONS)

    if notifier is not None:
        proxy.add_catalog_listener(notifier.notify)

    def track_session():
        if notifier is None:
            return
        try:
            session = app.request_context.session
        except LookupError:
            # Handler invoked outside a client request
            return
        notifier.attach(session)

    @app.list_tools()
    async def list_tools() -> list[types.Tool]:
        track_session()
        return await handle_list_tools(proxy)

    @app.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        track_session()
        try:
            return await handle_call_tool(proxy, name, arguments)
        except McpError:
            raise
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            sentry_sdk.capture_exception(e)
            raise

    # The SDK turns anything raised inside a call_tool handler into an isError
    # result, so a missing endpoint is rejected before the request reaches it.
    dispatch_call_tool = app.request_handlers[types.CallToolRequest]

    async def call_tool_request(request: types.CallToolRequest) -> types.ServerResult:
        if proxy.endpoint is None:
            track_session()
            error = NoEndpointAvailable()
            logger.error(f"Error handling call_tool request: {error}")
            raise _request_error(error)
        return await dispatch_call_tool(request)

    app.request_handlers[types.CallToolRequest] = call_tool_request

    return app


def initialization_options(app: Server) -> InitializationOptions:
    return app.create_initialization_options(
        notification_options=NotificationOptions(tools_changed=True)
    )


async def run_stdio(config: ProxyConfig):
    """Resolve the IDE endpoint, then serve MCP over stdin/stdout."""
    logger.info("Initializing stdio server...")

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    try:
        loop.add_signal_handler(signal.SIGTERM, main_task.cancel)
    except NotImplementedError:
        # Windows event loops have no signal handlers
        pass

    notifier = ToolsChangedNotifier()
    try:
        async with IdeProxy(config) as proxy:
            app = create_server(proxy, notifier)
            async with stdio_server() as (read_stream, write_stream):
                logger.info("JetBrains Proxy MCP Server running on stdio")
                await app.run(read_stream, write_stream, initialization_options(app))
    except asyncio.CancelledError:
        logger.info("Received SIGTERM, shutting down gracefully...")


def main():
    """Entry point: pick the transport from TRANSPORT_MODE."""
    try:
        config = ProxyConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_enabled, config.log_level, config.log_file)
    init_sentry(config.sentry_dsn, release=f"ide-mcp-proxy@{SERVER_VERSION}")
    logger.info(f"Starting JetBrains MCP Proxy in {config.transport_mode} mode...")

    try:
        if config.transport_mode == "http":
            from ide_mcp_proxy.http_transport import run_http
            run_http(config)
        else:
            asyncio.run(run_stdio(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sentry_sdk.capture_exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
