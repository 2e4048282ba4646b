"""Delta computation between consecutive per-UID snapshots."""

import time
from collections.abc import Callable

import structlog

from uid_io_monitor.resolver import IdentifierResolver
from uid_io_monitor.sample import Snapshot

log = structlog.get_logger()


class DeltaEngine:
    """Turns cumulative per-UID counters into per-interval deltas.

    Holds the previous snapshot between cycles. The first snapshot only
    primes state (previous counters, name cache) and produces no deltas.
    """

    def __init__(
        self,
        resolver: IdentifierResolver,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.resolver = resolver
        self._clock = clock
        self._previous: Snapshot | None = None
        self.last: float = 0.0
        self.now: float = 0.0

    @property
    def primed(self) -> bool:
        """True once a first snapshot has been stored."""
        return self._previous is not None

    @property
    def previous(self) -> Snapshot:
        """Snapshot retained from the last cycle (empty before priming)."""
        return self._previous if self._previous is not None else {}

    @property
    def interval_ms(self) -> int:
        """Length of the last interval in whole milliseconds."""
        return int((self.now - self.last) * 1000)

    def apply(self, snapshot: Snapshot) -> Snapshot | None:
        """Compute deltas against the previous snapshot.

        Returns None on the priming call. Otherwise returns uid -> delta for
        every uid in snapshot; uids absent from the previous snapshot count
        their full counters. Pending names are resolved before returning.
        """
        if self._previous is None:
            self._prime(snapshot)
            return None

        self.last = self.now
        self.now = self._clock()

        deltas: Snapshot = {}
        previous = self._previous
        for uid, current in snapshot.items():
            prev = previous.get(uid)
            delta = current if prev is None else current - prev
            deltas[uid] = delta
            if delta.is_active:
                self.resolver.mark_pending(uid)

        self._previous = snapshot
        self.resolver.drain_pending()
        return deltas

    def _prime(self, snapshot: Snapshot) -> None:
        self._previous = snapshot
        self.now = self._clock()
        self.last = self.now
        for uid in snapshot:
            self.resolver.mark_pending(uid)
        self.resolver.drain_pending(force_all=True)
        log.info("uid_io_primed", uids=len(snapshot), names=len(self.resolver.cache))
