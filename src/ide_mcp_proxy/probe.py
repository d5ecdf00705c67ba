"""
Liveness probe for candidate IDE endpoints.

A probe is a GET of the catalog-listing path. The raw body is returned
unparsed so catalog drift can be detected by plain text comparison.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ide_mcp_proxy.errors import ProbeError
from ide_mcp_proxy.models import Endpoint

logger = logging.getLogger(__name__)

LIST_TOOLS_PATH = "mcp/list_tools"


@dataclass(frozen=True)
class ProbeOutcome:
    endpoint: Endpoint
    catalog: Optional[str] = None
    error: Optional[ProbeError] = None

    @property
    def healthy(self) -> bool:
        return self.error is None


class HealthProbe:
    """Checks one endpoint at a time; never raises."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 2.0,
                 path: str = LIST_TOOLS_PATH):
        self.client = client
        self.timeout = timeout
        self.path = path

    async def probe(self, endpoint: Endpoint) -> ProbeOutcome:
        """
        Probe an endpoint's catalog path.

        Returns:
            ProbeOutcome with the raw catalog text on 2xx, or a ProbeError
            for non-2xx statuses and transport failures
        """
        url = endpoint.url(self.path)
        logger.debug(f"Sending test request to {url}")

        try:
            response = await self.client.get(url, timeout=self.timeout)
        except httpx.ConnectError:
            return self._failed(endpoint, "Connection refused")
        except httpx.TimeoutException:
            return self._failed(endpoint, f"No response within {self.timeout} seconds")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._failed(endpoint, f"{type(e).__name__}: {e}")

        if not response.is_success:
            logger.debug(f"Test request to {url} failed with status {response.status_code}")
            return ProbeOutcome(
                endpoint=endpoint,
                error=ProbeError(endpoint, f"HTTP {response.status_code}",
                                 status_code=response.status_code),
            )

        catalog = response.text
        logger.debug(f"Received response from {url}: {catalog[:100]}...")
        return ProbeOutcome(endpoint=endpoint, catalog=catalog)

    @staticmethod
    def _failed(endpoint: Endpoint, reason: str) -> ProbeOutcome:
        logger.debug(f"Probe of {endpoint} failed: {reason}")
        return ProbeOutcome(endpoint=endpoint, error=ProbeError(endpoint, reason))
