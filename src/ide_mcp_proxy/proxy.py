"""
Forwarding of tool calls and catalog reads to the IDE's REST API.

    POST {endpoint}/mcp/{tool}   body: arguments   -> {"status"} | {"error"}
    GET  {endpoint}/mcp/list_tools                 -> [ToolDescriptor, ...]
"""

import json
import logging
from typing import List, Optional
from urllib.parse import quote

import httpx

from ide_mcp_proxy.errors import (
    CatalogUnavailable,
    NoEndpointAvailable,
    ToolCallHTTPError,
    ToolCallTransportError,
)
from ide_mcp_proxy.models import (
    Endpoint,
    IDEResponse,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
    parse_catalog,
)
from ide_mcp_proxy.probe import LIST_TOOLS_PATH

logger = logging.getLogger(__name__)

CALL_PREFIX = "mcp"


class ToolCallProxy:
    """
    Sends one tool invocation to an endpoint and maps the reply.

    Once an endpoint is known, call() never raises: HTTP failures, transport
    failures and contract violations all come back as error results.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 120.0,
                 prefix: str = CALL_PREFIX):
        self.client = client
        self.timeout = timeout
        self.prefix = prefix

    async def call(self, request: ToolCallRequest,
                   endpoint: Optional[Endpoint]) -> ToolCallResult:
        """
        Forward a tool call.

        Raises:
            NoEndpointAvailable: endpoint is None; no request is sent
        """
        if endpoint is None:
            raise NoEndpointAvailable()

        url = endpoint.url(f"{self.prefix}/{quote(request.name, safe='')}")
        logger.info(f"ENDPOINT: {endpoint} | Tool name: {request.name} | "
                    f"args: {json.dumps(request.arguments, default=str)}")

        try:
            response = await self.client.post(url, json=request.arguments, timeout=self.timeout)
            if not response.is_success:
                logger.warning(f"Response failed with status {response.status_code} "
                               f"for tool {request.name}")
                return ToolCallResult.failure(str(ToolCallHTTPError(response.status_code)))
            payload = response.json()
        except httpx.TimeoutException:
            error = ToolCallTransportError(
                f"Tool {request.name} timed out after {self.timeout} seconds"
            )
            logger.warning(str(error))
            return ToolCallResult.failure(str(error))
        except httpx.HTTPError as e:
            error = ToolCallTransportError(f"Request to IDE failed: {str(e) or type(e).__name__}")
            logger.warning(f"Error in tool call {request.name}: {error}")
            return ToolCallResult.failure(str(error))
        except ValueError as e:
            error = ToolCallTransportError(f"IDE returned a malformed response body: {e}")
            logger.warning(f"Error in tool call {request.name}: {error}")
            return ToolCallResult.failure(str(error))

        try:
            result = IDEResponse.from_payload(payload).to_result()
        except ValueError as e:
            return ToolCallResult.failure(f"IDE response violates contract: {e}")

        logger.info(f"Tool {request.name} is error: {result.is_error}")
        return result


class CatalogReader:
    """Fetches and parses the tool catalog from an endpoint."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0,
                 path: str = LIST_TOOLS_PATH):
        self.client = client
        self.timeout = timeout
        self.path = path

    async def fetch(self, endpoint: Optional[Endpoint]) -> List[ToolDescriptor]:
        """
        Fetch the current catalog.

        Raises:
            NoEndpointAvailable: endpoint is None
            CatalogUnavailable: transport failure, non-2xx, or unparseable body
        """
        if endpoint is None:
            raise NoEndpointAvailable()

        logger.info(f"Using cached endpoint {endpoint} to list tools.")
        try:
            response = await self.client.get(endpoint.url(self.path), timeout=self.timeout)
        except httpx.HTTPError as e:
            raise CatalogUnavailable(f"Unable to list tools: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            logger.warning(f"Failed to fetch tools with status {response.status_code}")
            raise CatalogUnavailable(f"Unable to list tools: HTTP {response.status_code}")

        try:
            tools = parse_catalog(response.text)
        except ValueError as e:
            raise CatalogUnavailable(f"Unable to list tools: {e}") from e

        logger.info(f"Successfully fetched {len(tools)} tools")
        return tools
