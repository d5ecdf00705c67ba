"""
Tests for ToolCallProxy and CatalogReader.
"""

import json

import httpx
import pytest

from ide_mcp_proxy.errors import CatalogUnavailable, NoEndpointAvailable
from ide_mcp_proxy.models import ToolCallRequest, ToolCallResult
from ide_mcp_proxy.proxy import CatalogReader, ToolCallProxy


class TestToolCallProxy:
    """Test forwarding and reply mapping."""

    @pytest.mark.asyncio
    async def test_status_reply(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        fake_ide.tool_replies["find_files"] = {"status": "src/main.py", "error": None}
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(
            ToolCallRequest("find_files", {"nameSubstring": "main"}), endpoint_for(63342)
        )

        assert result == ToolCallResult(text="src/main.py", is_error=False)
        request = fake_ide.tool_calls()[0]
        assert str(request.url) == "http://127.0.0.1:63342/api/mcp/find_files"
        assert json.loads(request.content) == {"nameSubstring": "main"}

    @pytest.mark.asyncio
    async def test_error_reply(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        fake_ide.tool_replies["run"] = {"status": None, "error": "No such configuration"}
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(ToolCallRequest("run"), endpoint_for(63342))

        assert result == ToolCallResult(text="No such configuration", is_error=True)

    @pytest.mark.asyncio
    async def test_http_error_status(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        fake_ide.tool_replies["run"] = httpx.Response(500, text="Internal error")
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(ToolCallRequest("run"), endpoint_for(63342))

        assert result.is_error
        assert result.text == "Response failed: 500"

    @pytest.mark.asyncio
    async def test_connection_drop(self, fake_ide, endpoint_for):
        def drop(request):
            raise httpx.RemoteProtocolError("Server disconnected", request=request)

        fake_ide.serve(63342)
        fake_ide.tool_replies["run"] = drop
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(ToolCallRequest("run"), endpoint_for(63342))

        assert result.is_error
        assert "Server disconnected" in result.text

    @pytest.mark.asyncio
    async def test_timeout(self, fake_ide, endpoint_for):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        fake_ide.serve(63342)
        fake_ide.tool_replies["build"] = slow
        proxy = ToolCallProxy(fake_ide.client(), timeout=3)

        result = await proxy.call(ToolCallRequest("build"), endpoint_for(63342))

        assert result.is_error
        assert "timed out after 3 seconds" in result.text

    @pytest.mark.asyncio
    async def test_malformed_body(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        fake_ide.tool_replies["run"] = httpx.Response(200, text="<html>oops</html>")
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(ToolCallRequest("run"), endpoint_for(63342))

        assert result.is_error
        assert "malformed" in result.text

    @pytest.mark.asyncio
    async def test_non_object_body(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        fake_ide.tool_replies["run"] = httpx.Response(200, json=["a", "b"])
        proxy = ToolCallProxy(fake_ide.client())

        result = await proxy.call(ToolCallRequest("run"), endpoint_for(63342))

        assert result.is_error
        assert "violates contract" in result.text

    @pytest.mark.asyncio
    async def test_no_endpoint_sends_nothing(self, fake_ide):
        proxy = ToolCallProxy(fake_ide.client())

        with pytest.raises(NoEndpointAvailable):
            await proxy.call(ToolCallRequest("run"), None)

        assert fake_ide.requests == []

    @pytest.mark.asyncio
    async def test_tool_name_is_path_escaped(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        proxy = ToolCallProxy(fake_ide.client())

        await proxy.call(ToolCallRequest("a/b"), endpoint_for(63342))

        assert fake_ide.tool_calls()[0].url.raw_path == b"/api/mcp/a%2Fb"


class TestCatalogReader:
    """Test catalog fetching."""

    @pytest.mark.asyncio
    async def test_fetch(self, fake_ide, endpoint_for):
        fake_ide.serve(63342)
        reader = CatalogReader(fake_ide.client())

        tools = await reader.fetch(endpoint_for(63342))

        assert [t.name for t in tools] == ["get_open_files", "find_files"]

    @pytest.mark.asyncio
    async def test_no_endpoint(self, fake_ide):
        with pytest.raises(NoEndpointAvailable):
            await CatalogReader(fake_ide.client()).fetch(None)

    @pytest.mark.asyncio
    async def test_unreachable(self, fake_ide, endpoint_for):
        with pytest.raises(CatalogUnavailable) as exc_info:
            await CatalogReader(fake_ide.client()).fetch(endpoint_for(63342))
        assert str(exc_info.value).startswith("Unable to list tools")

    @pytest.mark.asyncio
    async def test_unparseable(self, fake_ide, endpoint_for):
        fake_ide.serve(63342, catalog="not json")
        with pytest.raises(CatalogUnavailable):
            await CatalogReader(fake_ide.client()).fetch(endpoint_for(63342))
