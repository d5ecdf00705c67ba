"""Tool catalog change detection."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CatalogObservation:
    changed: bool
    next_snapshot: str


class ChangeDetector:
    """
    Compares successive raw catalog bodies.

    Stateless: the caller owns the snapshot and stores next_snapshot.
    Comparison is textual, so key reordering in the IDE's JSON counts
    as a change.
    """

    @staticmethod
    def observe(previous: Optional[str], current: str) -> CatalogObservation:
        """
        Compare the previous snapshot with the current catalog body.

        The very first observation (previous is None) never reports a
        change, so clients are not notified at startup.
        """
        return CatalogObservation(
            changed=previous is not None and previous != current,
            next_snapshot=current,
        )
