"""
Tests for value types: Endpoint URLs, catalog parsing and the IDE reply
contract.
"""

import json

import pytest

from ide_mcp_proxy.models import (
    Endpoint,
    IDEResponse,
    ToolCallResult,
    ToolDescriptor,
    parse_catalog,
)


class TestEndpoint:
    """Test Endpoint URL construction."""

    def test_base_url(self):
        assert Endpoint("127.0.0.1", 63342).base_url == "http://127.0.0.1:63342/api"

    def test_url_joins_relative_path(self):
        endpoint = Endpoint("127.0.0.1", 63342)
        assert endpoint.url("mcp/list_tools") == "http://127.0.0.1:63342/api/mcp/list_tools"
        assert endpoint.url("/mcp/list_tools") == "http://127.0.0.1:63342/api/mcp/list_tools"

    def test_ipv6_host_is_bracketed(self):
        assert Endpoint("::1", 63342).base_url == "http://[::1]:63342/api"

    def test_prefix_normalization(self):
        assert Endpoint("localhost", 1, prefix="api/").base_url == "http://localhost:1/api"
        assert Endpoint("localhost", 1, prefix="").base_url == "http://localhost:1"

    def test_equality_is_by_value(self):
        assert Endpoint("127.0.0.1", 63342) == Endpoint("127.0.0.1", 63342)
        assert Endpoint("127.0.0.1", 63342) != Endpoint("127.0.0.1", 63343)

    def test_str_is_base_url(self):
        assert str(Endpoint("127.0.0.1", 63343)) == "http://127.0.0.1:63343/api"


class TestCatalogParsing:
    """Test parse_catalog and ToolDescriptor."""

    def test_bare_array(self):
        tools = parse_catalog(json.dumps([{"name": "a"}, {"name": "b", "description": "B"}]))
        assert [t.name for t in tools] == ["a", "b"]
        assert tools[1].description == "B"
        assert tools[0].input_schema == {}

    def test_tools_object(self):
        tools = parse_catalog(json.dumps({"tools": [{"name": "a"}]}))
        assert [t.name for t in tools] == ["a"]

    def test_empty_body(self):
        assert parse_catalog("") == []

    def test_rejects_non_list(self):
        with pytest.raises(ValueError):
            parse_catalog(json.dumps({"tools": "nope"}))

    def test_rejects_invalid_json(self):
        with pytest.raises(ValueError):
            parse_catalog("<html>")

    def test_descriptor_requires_name(self):
        with pytest.raises(ValueError):
            ToolDescriptor.from_dict({"description": "no name"})

    def test_schema_is_kept_verbatim(self):
        schema = {"type": "object", "properties": {"x": {"type": "string", "format": "uri"}}}
        tool = ToolDescriptor.from_dict({"name": "t", "inputSchema": schema})
        assert tool.to_dict()["inputSchema"] == schema


class TestIDEResponse:
    """Test mapping of IDE replies onto ToolCallResult."""

    def test_status_is_success(self):
        result = IDEResponse.from_payload({"status": "done", "error": None}).to_result()
        assert result == ToolCallResult(text="done", is_error=False)

    def test_error_is_failure(self):
        result = IDEResponse.from_payload({"status": None, "error": "boom"}).to_result()
        assert result == ToolCallResult(text="boom", is_error=True)

    def test_both_set_violates_contract(self):
        result = IDEResponse.from_payload({"status": "ok", "error": "boom"}).to_result()
        assert result.is_error
        assert "violates contract" in result.text

    def test_neither_set_violates_contract(self):
        result = IDEResponse.from_payload({}).to_result()
        assert result.is_error
        assert "neither status nor error" in result.text

    def test_non_string_status_is_serialized(self):
        result = IDEResponse.from_payload({"status": ["a.py", "b.py"]}).to_result()
        assert result.text == '["a.py", "b.py"]'
        assert not result.is_error

    def test_non_object_payload_rejected(self):
        with pytest.raises(ValueError):
            IDEResponse.from_payload(["not", "an", "object"])

    def test_result_to_dict(self):
        assert ToolCallResult.failure("x").to_dict() == {"text": "x", "isError": True}
