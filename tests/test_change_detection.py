"""
Tests for ChangeDetector and the snapshot slot in CachedEndpointState.
"""

import threading

from ide_mcp_proxy.changes import ChangeDetector
from ide_mcp_proxy.models import Endpoint
from ide_mcp_proxy.state import CachedEndpointState


class TestChangeDetector:
    """Test textual catalog comparison."""

    def test_first_observation_is_not_a_change(self):
        observation = ChangeDetector.observe(None, "abc")
        assert observation.changed is False
        assert observation.next_snapshot == "abc"

    def test_sequence(self):
        state = CachedEndpointState()
        changes = [state.record_catalog(body).changed for body in ("abc", "abc", "xyz")]
        assert changes == [False, False, True]
        assert state.snapshot == "xyz"

    def test_reset_snapshot_makes_next_catalog_a_change(self):
        state = CachedEndpointState()
        state.record_catalog("abc")
        state.reset_snapshot("")
        assert state.record_catalog("abc").changed is True

    def test_textual_comparison(self):
        # Same JSON, different key order
        assert ChangeDetector.observe('{"a":1,"b":2}', '{"b":2,"a":1}').changed is True


class TestCachedEndpointState:
    """Test the endpoint slot."""

    def test_swap_returns_previous(self):
        state = CachedEndpointState()
        first = Endpoint("127.0.0.1", 63342)
        second = Endpoint("127.0.0.1", 63343)

        assert state.swap_endpoint(first) is None
        assert state.swap_endpoint(second) == first
        assert state.endpoint == second

    def test_evict(self):
        state = CachedEndpointState()
        endpoint = Endpoint("127.0.0.1", 63342)
        state.swap_endpoint(endpoint)

        assert state.evict() == endpoint
        assert state.endpoint is None
        assert state.to_dict()["endpoint"] is None

    def test_concurrent_readers_see_whole_values(self):
        """Readers racing a writer only ever observe values that were written."""
        state = CachedEndpointState()
        written = {Endpoint("127.0.0.1", port) for port in range(63342, 63353)}
        seen = set()
        stop = threading.Event()

        def writer():
            for _ in range(200):
                for endpoint in written:
                    state.swap_endpoint(endpoint)
            stop.set()

        def reader():
            while not stop.is_set():
                seen.add(state.endpoint)

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert seen - {None} <= written
