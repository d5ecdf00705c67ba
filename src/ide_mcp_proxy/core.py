"""
IdeProxy: the single object the MCP transports talk to.

Owns the shared endpoint state, the HTTP client and the refresh loop, and
exposes the two entry points the transports need: list_tools() and
call_tool().
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from ide_mcp_proxy.config import ProxyConfig
from ide_mcp_proxy.errors import NoEndpointAvailable
from ide_mcp_proxy.models import Endpoint, ToolCallRequest, ToolCallResult, ToolDescriptor, parse_catalog
from ide_mcp_proxy.probe import HealthProbe
from ide_mcp_proxy.proxy import CatalogReader, ToolCallProxy
from ide_mcp_proxy.resolver import EndpointResolver
from ide_mcp_proxy.scheduler import RefreshScheduler
from ide_mcp_proxy.schema import ArgumentShape
from ide_mcp_proxy.state import CachedEndpointState

logger = logging.getLogger(__name__)


class IdeProxy:
    """
    Discovery, caching and forwarding for one IDE connection.

    Usage:
        async with IdeProxy(ProxyConfig.from_env()) as proxy:
            result = await proxy.call_tool("get_open_files", {})
    """

    def __init__(self, config: ProxyConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

        self.state = CachedEndpointState()
        self.probe = HealthProbe(self.client, timeout=config.probe_timeout)
        self.resolver = EndpointResolver(
            self.probe,
            self.state,
            ports=config.scan_ports,
            host=config.host,
            prefix=config.path_prefix,
            on_catalog_changed=self._catalog_changed,
        )
        self.scheduler = RefreshScheduler(
            self.resolver,
            self.state,
            interval=config.refresh_interval,
            explicit_port=config.explicit_port,
            evict_after=config.evict_after,
        )
        self.tool_proxy = ToolCallProxy(self.client, timeout=config.call_timeout)
        self.catalog = CatalogReader(self.client, timeout=config.call_timeout)

        self._listeners: List[Callable[[Endpoint], Awaitable[None]]] = []
        self._active_calls = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._shapes: Tuple[Optional[str], Dict[str, ArgumentShape]] = (None, {})

    async def __aenter__(self) -> "IdeProxy":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    @property
    def endpoint(self) -> Optional[Endpoint]:
        return self.state.endpoint

    @property
    def active_calls(self) -> int:
        return self._active_calls

    def add_catalog_listener(self, callback: Callable[[Endpoint], Awaitable[None]]):
        """Register a coroutine called once per detected catalog change."""
        self._listeners.append(callback)

    async def _catalog_changed(self, endpoint: Endpoint):
        for callback in list(self._listeners):
            try:
                await callback(endpoint)
            except Exception as e:
                logger.error(f"Catalog change listener failed: {e}", exc_info=True)

    async def start(self):
        """Resolve an endpoint once, then keep refreshing in the background."""
        await self.scheduler.start()

    async def refresh(self) -> Optional[Endpoint]:
        """
        Run one resolution now, outside the periodic schedule.

        Raises:
            ResolveError: The resolution failed
        """
        return await self.scheduler.refresh_once(raise_errors=True)

    async def stop(self):
        """Stop refreshing, let in-flight calls drain, release the client."""
        await self.scheduler.stop()

        if self._active_calls:
            logger.info(f"Waiting for {self._active_calls} in-flight tool call(s)")
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=self.config.shutdown_grace)
            except asyncio.TimeoutError:
                logger.warning(
                    f"{self._active_calls} tool call(s) still running after "
                    f"{self.config.shutdown_grace}s, shutting down anyway"
                )

        if self._owns_client:
            await self.client.aclose()

    async def list_tools(self) -> List[ToolDescriptor]:
        """
        Fetch the tool catalog from the cached endpoint.

        Raises:
            NoEndpointAvailable: No resolution has succeeded yet
            CatalogUnavailable: The IDE did not return a usable catalog
        """
        return await self.catalog.fetch(self.state.endpoint)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolCallResult:
        """
        Forward a tool call to the cached endpoint.

        Raises:
            NoEndpointAvailable: No resolution has succeeded yet
        """
        endpoint = self.state.endpoint
        if endpoint is None:
            raise NoEndpointAvailable()

        self._active_calls += 1
        self._idle.clear()
        try:
            return await self.tool_proxy.call(
                ToolCallRequest(name=name, arguments=dict(arguments or {})), endpoint
            )
        finally:
            self._active_calls -= 1
            if self._active_calls == 0:
                self._idle.set()

    def shape_for(self, name: str) -> Optional[ArgumentShape]:
        """Argument shape of a tool from the last catalog seen, if known."""
        snapshot = self.state.snapshot
        if not snapshot:
            return None

        cached_snapshot, shapes = self._shapes
        if cached_snapshot != snapshot:
            try:
                tools = parse_catalog(snapshot)
            except ValueError as e:
                logger.debug(f"Cannot derive argument shapes from catalog: {e}")
                return None
            shapes = {tool.name: ArgumentShape.from_input_schema(tool.input_schema) for tool in tools}
            self._shapes = (snapshot, shapes)
        return shapes.get(name)

    def check_arguments(self, name: str, arguments: Dict[str, Any]) -> List[str]:
        """Primitive-kind problems with the arguments; empty if fine or unknown tool."""
        shape = self.shape_for(name)
        return shape.validate(arguments) if shape is not None else []

    def status(self) -> Dict[str, Any]:
        endpoint = self.state.endpoint
        return {
            "ideEndpoint": str(endpoint) if endpoint else None,
            "state": self.state.to_dict(),
            "refresh": self.scheduler.get_status(),
            "active_calls": self._active_calls,
        }
