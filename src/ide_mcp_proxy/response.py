"""Standard response envelope and error codes for the non-MCP surfaces."""

from typing import Any

from ide_mcp_proxy.models import ToolCallResult


class ResponseEnvelope:
    """Response envelope shared by the HTTP /tool endpoint and the CLI."""

    @staticmethod
    def success(message: str, data: Any = None) -> dict:
        """Create a success response."""
        return {
            "ok": True,
            "error": None,
            "message": message,
            "data": data or {}
        }

    @staticmethod
    def error(code: str, message: str, data: Any = None) -> dict:
        """Create an error response."""
        return {
            "ok": False,
            "error": code,
            "message": message,
            "data": data or {}
        }

    @staticmethod
    def from_tool_result(tool_name: str, result: ToolCallResult) -> dict:
        """Wrap a proxied tool call result."""
        data = {"tool": tool_name, **result.to_dict()}
        if result.is_error:
            return ResponseEnvelope.error(ErrorCodes.TOOL_CALL_FAILED, result.text, data)
        return ResponseEnvelope.success(f"Tool {tool_name} completed", data)


class ErrorCodes:
    """Error codes used in envelopes."""
    UNEXPECTED_EXCEPTION = "unexpected_exception"
    INVALID_ARGUMENT = "invalid_argument"
    NO_ENDPOINT_AVAILABLE = "no_endpoint_available"
    ENDPOINT_NOT_FOUND = "endpoint_not_found"
    EXPLICIT_ENDPOINT_UNHEALTHY = "explicit_endpoint_unhealthy"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    TOOL_CALL_FAILED = "tool_call_failed"
