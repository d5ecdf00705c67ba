"""
Value types shared by the discovery and proxy layers.

Endpoint and ToolCallResult are immutable; ToolDescriptor is forwarded to
MCP clients exactly as the IDE reported it.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ide_mcp_proxy.config import DEFAULT_PATH_PREFIX


@dataclass(frozen=True)
class Endpoint:
    """Base URL of one IDE instance's local API."""

    host: str
    port: int
    prefix: str = DEFAULT_PATH_PREFIX

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        prefix = "/" + self.prefix.strip("/") if self.prefix.strip("/") else ""
        return f"http://{host}:{self.port}{prefix}"

    def url(self, path: str) -> str:
        """Join a relative API path onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def __str__(self) -> str:
        return self.base_url


@dataclass(frozen=True)
class ToolDescriptor:
    """One entry of the IDE tool catalog."""

    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDescriptor":
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise ValueError(f"Tool descriptor without a name: {data!r}")
        schema = data.get("inputSchema")
        return cls(
            name=data["name"],
            title=data.get("title"),
            description=data.get("description"),
            input_schema=schema if isinstance(schema, dict) else {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def parse_catalog(text: str) -> List[ToolDescriptor]:
    """
    Parse a raw /mcp/list_tools body into descriptors.

    Accepts either a bare JSON array or an object with a "tools" array.

    Raises:
        ValueError: If the body is not JSON or has neither shape
    """
    payload = json.loads(text) if text else []
    if isinstance(payload, dict):
        payload = payload.get("tools")
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"Tool catalog must be a JSON array, got {type(payload).__name__}")
    return [ToolDescriptor.from_dict(item) for item in payload]


@dataclass(frozen=True)
class ToolCallRequest:
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCallResult:
    """Outward shape of a proxied tool call."""

    text: str
    is_error: bool = False

    @classmethod
    def failure(cls, text: str) -> "ToolCallResult":
        return cls(text=text, is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "isError": self.is_error}


@dataclass(frozen=True)
class IDEResponse:
    """
    Body of a POST /mcp/{tool} reply.

    By contract exactly one of status/error is non-null.
    """

    status: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "IDEResponse":
        if not isinstance(payload, dict):
            raise ValueError(
                f"IDE returned {type(payload).__name__} instead of a status/error object"
            )
        return cls(status=_as_text(payload.get("status")), error=_as_text(payload.get("error")))

    def to_result(self) -> ToolCallResult:
        """Map onto a ToolCallResult; contract violations become error results."""
        if self.status is not None and self.error is not None:
            return ToolCallResult.failure(
                f"IDE response violates contract: both status and error are set "
                f"(status={self.status!r}, error={self.error!r})"
            )
        if self.error is not None:
            return ToolCallResult.failure(self.error)
        if self.status is not None:
            return ToolCallResult(text=self.status)
        return ToolCallResult.failure(
            "IDE response violates contract: neither status nor error is set"
        )


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)
