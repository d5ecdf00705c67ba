"""Process-wide cache of the resolved IDE endpoint."""

import threading
from datetime import datetime
from typing import Any, Dict, Optional

from ide_mcp_proxy.changes import CatalogObservation, ChangeDetector
from ide_mcp_proxy.models import Endpoint


class CachedEndpointState:
    """
    Single slot holding the current endpoint and the last catalog snapshot.

    The endpoint is only ever swapped as a whole under the lock; Endpoint is
    frozen, so readers get either the old or the new value, never a mix.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._endpoint: Optional[Endpoint] = None
        self._snapshot: Optional[str] = None
        self._updated_at: Optional[datetime] = None

    @property
    def endpoint(self) -> Optional[Endpoint]:
        with self._lock:
            return self._endpoint

    @property
    def snapshot(self) -> Optional[str]:
        with self._lock:
            return self._snapshot

    def swap_endpoint(self, endpoint: Endpoint) -> Optional[Endpoint]:
        """Replace the cached endpoint, returning the previous one."""
        with self._lock:
            previous = self._endpoint
            self._endpoint = endpoint
            self._updated_at = datetime.now()
            return previous

    def evict(self) -> Optional[Endpoint]:
        """Drop the cached endpoint, returning what was there."""
        with self._lock:
            previous = self._endpoint
            self._endpoint = None
            self._updated_at = datetime.now()
            return previous

    def record_catalog(self, catalog: str) -> CatalogObservation:
        """Run change detection against the stored snapshot and store the new one."""
        with self._lock:
            observation = ChangeDetector.observe(self._snapshot, catalog)
            self._snapshot = observation.next_snapshot
            return observation

    def reset_snapshot(self, value: Optional[str] = "") -> None:
        # "" (not None) makes the next catalog seen count as a change
        with self._lock:
            self._snapshot = value

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "endpoint": str(self._endpoint) if self._endpoint else None,
                "has_snapshot": self._snapshot is not None,
                "updated_at": self._updated_at.isoformat() if self._updated_at else None,
            }
