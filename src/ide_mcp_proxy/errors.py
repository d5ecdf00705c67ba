"""Exception taxonomy for endpoint discovery and tool proxying."""

from typing import Optional


class ProxyError(Exception):
    """Base class for all proxy errors."""


class ProbeError(ProxyError):
    """A single candidate endpoint failed its liveness check."""

    def __init__(self, endpoint, reason: str, status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Probe of {endpoint} failed: {reason}")


class ResolveError(ProxyError):
    """A resolution attempt produced no endpoint."""


class ExplicitEndpointUnhealthy(ResolveError):
    """The operator-configured IDE port is not responding."""

    def __init__(self, port: int, cause: Optional[ProbeError] = None):
        self.port = port
        self.cause = cause
        super().__init__(f"Specified IDE_PORT={port} but it is not responding correctly.")


class NoEndpointFound(ResolveError):
    """No port in the scan range answered the probe."""

    def __init__(self, first_port: int, last_port: int):
        self.first_port = first_port
        self.last_port = last_port
        super().__init__(
            f"No working IDE endpoint found in range {first_port}-{last_port}"
        )


class NoEndpointAvailable(ProxyError):
    """No resolution has succeeded yet, so nothing can be forwarded."""

    def __init__(self, message: str = "No working IDE endpoint available."):
        super().__init__(message)


class CatalogUnavailable(ProxyError):
    """The IDE did not return a usable tool catalog."""


class ToolCallError(ProxyError):
    """Base class for failures while forwarding a tool call."""


class ToolCallTransportError(ToolCallError):
    """Connection failure, timeout or unreadable body during a tool call."""


class ToolCallHTTPError(ToolCallError):
    """The IDE answered a tool call with a non-2xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Response failed: {status_code}")
