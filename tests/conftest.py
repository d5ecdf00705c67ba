"""
Shared fixtures.

FakeIDE stands in for one or more JetBrains IDE instances behind an
httpx.MockTransport, so discovery and forwarding run over real httpx
requests without opening sockets.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

# Add src and repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from ide_mcp_proxy.config import ProxyConfig  # noqa: E402
from ide_mcp_proxy.models import Endpoint  # noqa: E402

SAMPLE_TOOLS = [
    {
        "name": "get_open_files",
        "description": "List files open in the editor",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "find_files",
        "title": "Find files",
        "description": "Find project files by name",
        "inputSchema": {
            "type": "object",
            "properties": {
                "nameSubstring": {"type": "string"},
                "limit": {"type": "integer"},
            },
            "required": ["nameSubstring"],
        },
    },
]


class FakeIDE:
    """
    Answers the IDE REST API on whichever ports are marked as serving.

    Ports that are not serving refuse the connection. Tool replies default
    to {"status": "ok"}; set tool_replies[name] to an httpx.Response, a
    dict (sent as JSON) or a callable taking the request.
    """

    def __init__(self, host: str = "127.0.0.1"):
        self.host = host
        self.catalogs: Dict[int, str] = {}
        self.tool_replies: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def serve(self, port: int, tools: Optional[list] = None, catalog: Optional[str] = None):
        self.catalogs[port] = catalog if catalog is not None else json.dumps(
            SAMPLE_TOOLS if tools is None else tools
        )

    def shutdown(self, port: int):
        self.catalogs.pop(port, None)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        port = request.url.port
        if port not in self.catalogs:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        if request.method == "GET" and path.endswith("/mcp/list_tools"):
            return httpx.Response(200, text=self.catalogs[port])

        if request.method == "POST" and "/mcp/" in path:
            name = path.rsplit("/mcp/", 1)[1]
            reply = self.tool_replies.get(name, {"status": "ok"})
            if callable(reply):
                return reply(request)
            if isinstance(reply, httpx.Response):
                return reply
            return httpx.Response(200, json=reply)

        return httpx.Response(404, text="Not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def probed_ports(self) -> List[int]:
        return [r.url.port for r in self.requests if r.method == "GET"]

    def tool_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_ide():
    return FakeIDE()


@pytest.fixture
def config():
    """Config with a quiet refresh loop; tests drive refreshes directly."""
    return ProxyConfig(refresh_interval=3600, shutdown_grace=0.5)


@pytest.fixture
def endpoint_for() -> Callable[[int], Endpoint]:
    return lambda port: Endpoint(host="127.0.0.1", port=port)
