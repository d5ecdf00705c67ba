"""
HTTP transport for ide-mcp-proxy.

Endpoints:
  POST/GET/DELETE /mcp   - MCP Streamable HTTP (session per Mcp-Session-Id)
  GET  /sse              - Legacy MCP SSE connection
  POST /messages/        - Legacy MCP SSE message endpoint
  GET  /health           - Basic health (IDE endpoint, session count)
  GET  /health?ready     - 200 once an IDE endpoint is resolved, else 503
  GET  /health?live      - Refresh loop status
  GET  /info             - Server info and effective configuration
  POST /tool/{tool_name} - Call an IDE tool without MCP
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime

import sentry_sdk
import uvicorn
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from ide_mcp_proxy.config import ProxyConfig
from ide_mcp_proxy.core import IdeProxy
from ide_mcp_proxy.errors import NoEndpointAvailable
from ide_mcp_proxy.notifications import ToolsChangedNotifier
from ide_mcp_proxy.response import ErrorCodes, ResponseEnvelope
from ide_mcp_proxy.server import SERVER_NAME, SERVER_VERSION, create_server, initialization_options

logger = logging.getLogger(__name__)


class _SseResponse(Response):
    """
    No-op Response for SSE endpoints.

    The SSE transport handles the response directly via ASGI send callback.
    """
    async def __call__(self, scope, receive, send):
        pass


class _StreamableHTTPApp:
    """ASGI adapter so Starlette routes /mcp straight to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send):
        await self.session_manager.handle_request(scope, receive, send)


class RequestLogMiddleware:
    """Log method and path of every HTTP request."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            logger.info(f"[{scope['method']}] {scope['path']}")
        await self.app(scope, receive, send)


def create_app(proxy: IdeProxy, notifier: ToolsChangedNotifier = None) -> Starlette:
    """
    Create the Starlette app.

    The lifespan starts the proxy (eager endpoint resolution plus the
    refresh loop) before serving and stops it on shutdown.
    """
    notifier = notifier if notifier is not None else ToolsChangedNotifier()
    mcp_server = create_server(proxy, notifier)
    session_manager = StreamableHTTPSessionManager(app=mcp_server, json_response=False)
    sse = SseServerTransport("/messages/")

    @asynccontextmanager
    async def lifespan(app):
        await proxy.start()
        try:
            async with session_manager.run():
                yield
        finally:
            await proxy.stop()
            logger.info("HTTP server closed")

    async def handle_sse(request):
        """Handle SSE connection for MCP protocol."""
        logger.info(f"SSE connection from {request.client.host if request.client else 'unknown'}")

        async with sse.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await mcp_server.run(streams[0], streams[1], initialization_options(mcp_server))

        return _SseResponse()

    async def health_basic(request):
        endpoint = proxy.endpoint
        return JSONResponse({
            "status": "ok",
            "transport": "http-streamable",
            "ideEndpoint": str(endpoint) if endpoint else None,
            "sessions": len(notifier),
            "refresh": proxy.scheduler.get_status()["status"],
            "timestamp": datetime.now().isoformat()
        })

    async def health_ready(request):
        """Readiness: an IDE endpoint has been resolved."""
        endpoint = proxy.endpoint
        result = {
            "status": "UP" if endpoint else "DOWN",
            "ideEndpoint": str(endpoint) if endpoint else None,
            "timestamp": datetime.now().isoformat()
        }
        if not endpoint:
            result["reason"] = "no_endpoint_resolved"
            last_error = proxy.scheduler.last_error
            if last_error:
                result["message"] = last_error
        return JSONResponse(result, status_code=200 if endpoint else 503)

    async def health_live(request):
        """Liveness: the refresh loop is running."""
        result = proxy.scheduler.get_status()
        return JSONResponse(result, status_code=503 if result["status"] == "DOWN" else 200)

    async def health(request):
        """
        Health check endpoint with query parameter support.

        GET /health        - Basic health check
        GET /health?live   - Refresh loop status
        GET /health?ready  - Endpoint readiness
        """
        if "live" in request.query_params:
            return await health_live(request)
        elif "ready" in request.query_params:
            return await health_ready(request)
        return await health_basic(request)

    async def info(request):
        """Server info endpoint."""
        return JSONResponse({
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "transport": "http",
            "protocol": "mcp",
            "endpoints": {
                "mcp": "/mcp",
                "sse": "/sse",
                "messages": "/messages/",
                "health": "/health",
                "health_live": "/health?live",
                "health_ready": "/health?ready",
                "info": "/info",
                "call_tool": "/tool/{tool_name}"
            },
            "config": proxy.config.to_dict(),
            "status": proxy.status(),
        })

    async def call_tool_endpoint(request):
        """
        Call an IDE tool via HTTP (non-MCP).

        POST /tool/{tool_name}
        Body: JSON arguments for the tool
        """
        tool_name = request.path_params["tool_name"]

        try:
            tool_args = await request.json()
        except json.JSONDecodeError:
            tool_args = {}

        if not isinstance(tool_args, dict):
            return JSONResponse(ResponseEnvelope.error(
                ErrorCodes.INVALID_ARGUMENT, "Tool arguments must be a JSON object"
            ), status_code=400)

        problems = proxy.check_arguments(tool_name, tool_args)
        if problems:
            return JSONResponse(ResponseEnvelope.error(
                ErrorCodes.INVALID_ARGUMENT,
                f"Invalid arguments for tool {tool_name}: {'; '.join(problems)}",
                {"tool": tool_name, "problems": problems}
            ), status_code=400)

        logger.info(f"HTTP tool call: {tool_name} with args {tool_args}")
        try:
            result = await proxy.call_tool(tool_name, tool_args)
        except NoEndpointAvailable as e:
            return JSONResponse(ResponseEnvelope.error(
                ErrorCodes.NO_ENDPOINT_AVAILABLE, str(e)
            ), status_code=503)
        except Exception as e:
            logger.error(f"Tool call error: {e}", exc_info=True)
            sentry_sdk.capture_exception(e)
            return JSONResponse(ResponseEnvelope.error(
                ErrorCodes.UNEXPECTED_EXCEPTION, str(e)
            ), status_code=500)

        return JSONResponse(ResponseEnvelope.from_tool_result(tool_name, result))

    routes = [
        Route("/health", endpoint=health, methods=["GET"]),
        Route("/info", endpoint=info, methods=["GET"]),
        Route("/tool/{tool_name}", endpoint=call_tool_endpoint, methods=["POST"]),
        Route("/sse", endpoint=handle_sse, methods=["GET"]),
        Mount("/messages/", app=sse.handle_post_message),
        Route("/mcp", endpoint=_StreamableHTTPApp(session_manager)),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "mcp-session-id"],
            expose_headers=["Mcp-Session-Id"],
        ),
        Middleware(RequestLogMiddleware),
    ]

    return Starlette(routes=routes, middleware=middleware, lifespan=lifespan)


def run_http(config: ProxyConfig):
    """Run the HTTP transport until SIGINT/SIGTERM."""
    logger.info("Starting HTTP MCP server...")
    app = create_app(IdeProxy(config))

    base = f"http://{config.http_host}:{config.http_port}"
    logger.info(f"JetBrains MCP Proxy HTTP Server listening on {base}")
    logger.info(f"Health check available at: {base}/health")
    logger.info(f"MCP endpoint: {base}/mcp")

    uvicorn.run(
        app,
        host=config.http_host,
        port=config.http_port,
        log_level=config.log_level.lower() if config.log_enabled else "warning",
    )
