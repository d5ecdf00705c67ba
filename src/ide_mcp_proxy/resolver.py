"""
Endpoint discovery policy.

Order, first success wins:
1. Explicit port override (no scanning if it is unhealthy)
2. Previously cached endpoint, if it still answers
3. Linear scan of the configured port range
"""

import logging
from typing import Awaitable, Callable, List, Optional

from ide_mcp_proxy.errors import ExplicitEndpointUnhealthy, NoEndpointFound
from ide_mcp_proxy.models import Endpoint
from ide_mcp_proxy.probe import HealthProbe
from ide_mcp_proxy.state import CachedEndpointState

logger = logging.getLogger(__name__)

CatalogChangedCallback = Callable[[Endpoint], Awaitable[None]]


class EndpointResolver:
    """
    Produces the currently valid endpoint or raises a ResolveError.

    Every healthy probe also feeds change detection through the shared
    state, so one resolution both checks liveness and spots catalog drift.
    The resolver never writes the cached endpoint itself.
    """

    def __init__(
        self,
        probe: HealthProbe,
        state: CachedEndpointState,
        ports: range,
        host: str = "127.0.0.1",
        prefix: str = "/api",
        on_catalog_changed: Optional[CatalogChangedCallback] = None,
    ):
        if len(ports) == 0:
            raise ValueError("Port scan range must contain at least one port")
        self.probe = probe
        self.state = state
        self.ports = ports
        self.host = host
        self.prefix = prefix
        self.on_catalog_changed = on_catalog_changed

    def endpoint_for(self, port: int) -> Endpoint:
        return Endpoint(host=self.host, port=port, prefix=self.prefix)

    def candidates(self) -> List[Endpoint]:
        return [self.endpoint_for(port) for port in self.ports]

    async def resolve(self, explicit_port: Optional[int] = None,
                      cached: Optional[Endpoint] = None) -> Endpoint:
        """
        Run one resolution.

        Args:
            explicit_port: Operator-configured IDE port, if any
            cached: Endpoint from the last successful resolution, if any

        Returns:
            Endpoint: The first healthy endpoint under the policy

        Raises:
            ExplicitEndpointUnhealthy: explicit_port is set but not answering
            NoEndpointFound: Nothing in the scan range answered
        """
        logger.info("Attempting to find a working IDE endpoint...")

        if explicit_port is not None:
            endpoint = self.endpoint_for(explicit_port)
            logger.info(f"IDE_PORT is set to {explicit_port}. Testing this port.")
            outcome = await self._check(endpoint)
            if outcome.healthy:
                logger.info(f"IDE_PORT {explicit_port} is working.")
                return endpoint
            raise ExplicitEndpointUnhealthy(explicit_port, outcome.error)

        if cached is not None:
            if (await self._check(cached)).healthy:
                logger.info("Using cached endpoint, it's still working")
                return cached

        for endpoint in self.candidates():
            logger.debug(f"Testing port {endpoint.port}...")
            if (await self._check(endpoint)).healthy:
                logger.info(f"Found working IDE endpoint at {endpoint}")
                return endpoint
            logger.debug(f"Port {endpoint.port} is not responding correctly.")

        # Next catalog seen after the IDE returns is reported as a change
        self.state.reset_snapshot("")
        raise NoEndpointFound(self.ports[0], self.ports[-1])

    async def _check(self, endpoint: Endpoint):
        outcome = await self.probe.probe(endpoint)
        if outcome.healthy:
            observation = self.state.record_catalog(outcome.catalog)
            if observation.changed:
                logger.info("Response has changed since the last check.")
                await self._notify(endpoint)
        return outcome

    async def _notify(self, endpoint: Endpoint):
        if self.on_catalog_changed is None:
            return
        try:
            await self.on_catalog_changed(endpoint)
        except Exception as e:
            logger.error(f"Error sending tools changed notification: {e}", exc_info=True)
