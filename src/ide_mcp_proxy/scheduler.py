"""Periodic endpoint revalidation."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import sentry_sdk

from ide_mcp_proxy.errors import ResolveError
from ide_mcp_proxy.models import Endpoint
from ide_mcp_proxy.resolver import EndpointResolver
from ide_mcp_proxy.state import CachedEndpointState

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Runs endpoint resolution once at startup and then every `interval` seconds.

    Ticks never overlap: refresh_once() is guarded by an explicit lock and a
    tick that finds a resolution already in flight is skipped.

    Failure policy: a failed resolution keeps the last known-good endpoint.
    With evict_after > 0 the endpoint is dropped after that many failures
    in a row.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        state: CachedEndpointState,
        interval: float = 10.0,
        explicit_port: Optional[int] = None,
        evict_after: int = 0,
    ):
        self.resolver = resolver
        self.state = state
        self.interval = interval
        self.explicit_port = explicit_port
        self.evict_after = evict_after

        self._in_flight = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

        # Stats
        self.started_at: Optional[datetime] = None
        self.tick_count = 0
        self.skipped_ticks = 0
        self.failure_count = 0
        self.consecutive_failures = 0
        self.last_success_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    async def refresh_once(self, raise_errors: bool = False) -> Optional[Endpoint]:
        """
        Run one resolution and publish a successful result.

        Args:
            raise_errors: Re-raise the ResolveError after recording it

        Returns:
            The resolved endpoint, or None if the tick failed or was skipped
        """
        if self._in_flight.locked():
            self.skipped_ticks += 1
            logger.debug("Endpoint refresh already in flight, skipping tick")
            return None

        async with self._in_flight:
            self.tick_count += 1
            try:
                endpoint = await self.resolver.resolve(
                    explicit_port=self.explicit_port,
                    cached=self.state.endpoint,
                )
            except ResolveError as e:
                self._record_failure(e)
                if raise_errors:
                    raise
                return None

            previous = self.state.swap_endpoint(endpoint)
            if previous != endpoint:
                logger.info(f"Updated cachedEndpoint to: {endpoint}")
            self.consecutive_failures = 0
            self.last_success_at = datetime.now()
            self.last_error = None
            return endpoint

    def _record_failure(self, error: ResolveError):
        self.failure_count += 1
        self.consecutive_failures += 1
        self.last_error = str(error)
        logger.warning(f"Failed to update IDE endpoint: {error}")

        if self.evict_after and self.consecutive_failures >= self.evict_after:
            evicted = self.state.evict()
            if evicted is not None:
                logger.warning(
                    f"Evicted stale endpoint {evicted} after "
                    f"{self.consecutive_failures} failed refreshes"
                )

    async def start(self):
        """Resolve eagerly, then schedule periodic refreshes."""
        if self.running:
            return
        self.started_at = datetime.now()
        await self.refresh_once()
        self._task = asyncio.create_task(self._run(), name="ide-endpoint-refresh")
        logger.info(f"Scheduled endpoint check every {self.interval:g} seconds.")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh_once()
            except Exception as e:
                # Keep the timer alive whatever a single tick does
                logger.error(f"Unexpected error during endpoint refresh: {e}", exc_info=True)
                sentry_sdk.capture_exception(e)

    async def stop(self):
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped endpoint refresh")

    def get_status(self) -> Dict[str, Any]:
        """
        Refresh loop status.

        UP while the loop runs and the last resolution succeeded; DEGRADED
        while it runs on a stale endpoint; DOWN otherwise.
        """
        now = datetime.now()
        if not self.running:
            status = "DOWN"
        elif self.consecutive_failures == 0 and self.last_success_at is not None:
            status = "UP"
        elif self.state.endpoint is not None:
            status = "DEGRADED"
        else:
            status = "DOWN"

        result = {
            "status": status,
            "timestamp": now.isoformat(),
            "running": self.running,
            "in_flight": self.in_flight,
            "interval_seconds": self.interval,
            "ticks": self.tick_count,
            "skipped_ticks": self.skipped_ticks,
            "failures": self.failure_count,
            "consecutive_failures": self.consecutive_failures,
            "last_success": self.last_success_at.isoformat() if self.last_success_at else None,
        }
        if self.started_at:
            result["uptime_seconds"] = round((now - self.started_at).total_seconds(), 2)
        if self.last_error:
            result["last_error"] = self.last_error
        return result
