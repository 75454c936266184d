"""In-memory storage of combined time slice hashes."""

from __future__ import annotations

from typing import Dict, Iterator, Optional

from kitsune_dht.core import DhtArc, K2Error


class TimeSliceHashStore:
    """Sparse store of combined hashes, indexed by arc and slice id.

    Empty hashes are rejected. Looking up a slice with nothing stored gives
    ``None``; otherwise the most recently stored hash is returned.
    """

    def __init__(self) -> None:
        self._by_arc: Dict[DhtArc, Dict[int, bytes]] = {}

    def insert(self, arc: DhtArc, slice_id: int, hash: bytes) -> None:
        """Store ``hash`` at ``slice_id`` for ``arc``, replacing any previous value."""
        if not hash:
            raise K2Error("Cannot insert empty combined hash")
        if slice_id < 0:
            raise ValueError("slice id must not be negative")
        self._by_arc.setdefault(arc, {})[slice_id] = bytes(hash)

    def get(self, arc: DhtArc, slice_id: int) -> Optional[bytes]:
        """The hash stored at ``slice_id`` for ``arc``, if any."""
        return self._by_arc.get(arc, {}).get(slice_id)

    def highest_stored_id(self, arc: DhtArc) -> Optional[int]:
        """The largest slice id stored for ``arc``, or ``None``."""
        slices = self._by_arc.get(arc)
        return max(slices) if slices else None

    def __len__(self) -> int:
        return len(self._by_arc)

    def __iter__(self) -> Iterator[DhtArc]:
        return iter(self._by_arc)