# src/models/price_history.py

"""Bounded, time-ordered ledger of price observations."""

from collections import deque
from collections.abc import Iterable, Iterator

from src.models.price_observation import PriceObservation


class PriceHistory:
    """Ordered price observations with a FIFO retention cap.

    Appending beyond ``cap`` drops the oldest entries.  Observations
    must arrive in non-decreasing time order; an out-of-order append is
    rejected so eviction never has to reorder anything.
    """

    def __init__(
        self,
        cap: int,
        observations: Iterable[PriceObservation] = (),
    ) -> None:
        if cap < 1:
            raise ValueError(f"History cap must be >= 1, got {cap}")
        self.cap = cap
        self._entries: deque[PriceObservation] = deque(maxlen=cap)
        for observation in observations:
            self.append(observation)

    def append(self, observation: PriceObservation) -> None:
        """Record an observation, evicting the oldest past the cap."""
        latest = self.latest
        if latest is not None and observation.observed_at < latest.observed_at:
            raise ValueError(
                "Observation at "
                f"{observation.observed_at.isoformat()} is older than "
                f"latest {latest.observed_at.isoformat()}"
            )
        self._entries.append(observation)

    @property
    def latest(self) -> PriceObservation | None:
        """Most recent observation, or ``None`` when empty."""
        return self._entries[-1] if self._entries else None

    @property
    def earliest(self) -> PriceObservation | None:
        """Oldest retained observation, or ``None`` when empty."""
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        """Number of retained observations."""
        return len(self._entries)

    def __iter__(self) -> Iterator[PriceObservation]:
        """Iterate oldest first over a snapshot of the entries."""
        return iter(tuple(self._entries))

    def __repr__(self) -> str:
        return f"PriceHistory(cap={self.cap}, len={len(self)})"
