"""Partition of time into full and partial slices with combined hashes.

Time slices are half-open intervals ``[start, end)``. Full slices all have
the length ``2**factor * UNIT_TIME``; their combined hashes are kept in the
op store. The recent time after the last full slice is split into partial
slices of decreasing size, from ``2**(factor - 1)`` units down to one unit;
their combined hashes are kept in memory.

Timestamps and durations are integers counting microseconds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from kitsune_dht.core import UNIT_TIME, UNIX_TIMESTAMP, DhtArc, K2Error, StoredOp
from kitsune_dht.layout import (
    full_slice_duration_for_factor,
    layout_full_slices,
    layout_partials,
)
from kitsune_dht.slices import (
    PartialSlice,
    combine_hashes,
    combine_op_hashes,
    residual_duration_for_factor,
)

_log = logging.getLogger(__name__)


@dataclass
class PartitionedTime:
    """Time slices for one arc of the location space.

    Build one with :meth:`try_from_store`, which brings the state in line
    with the store and the current time. Call :meth:`update` again once
    :meth:`next_update_at` has passed.
    """

    factor: int
    arc_constraint: DhtArc
    full_slices: int = 0
    partial_slices: List[PartialSlice] = field(default_factory=list)
    full_slice_duration: int = field(default=0, init=False)
    min_recent_time: int = field(default=0, init=False)
    _next_update_at: int = field(default=UNIX_TIMESTAMP, init=False)

    def __post_init__(self) -> None:
        if isinstance(self.factor, bool) or not isinstance(self.factor, int):
            raise K2Error("Time partitioning factor must be an integer")
        if self.factor < 1:
            raise K2Error("Time partitioning factor must be at least 1")
        self.full_slice_duration = full_slice_duration_for_factor(self.factor)
        # The largest partial slice is half a full slice, hence `factor - 1`.
        self.min_recent_time = residual_duration_for_factor(self.factor - 1)

    @classmethod
    async def try_from_store(
        cls, factor: int, current_time: int, arc_constraint: DhtArc, store
    ) -> "PartitionedTime":
        """Create the time partition for ``arc_constraint``, consistent with ``store``.

        The number of full slices already stored is read from the store, the
        layout is checked against the current time and then brought up to date.
        """
        if arc_constraint.is_empty():
            raise K2Error("Empty arc constraint is not valid")

        pt = cls(factor, arc_constraint)
        pt.full_slices = await store.slice_hash_count(arc_constraint)

        recent_time = current_time - pt.full_slice_end_timestamp()
        if recent_time < 0:
            raise K2Error(
                "Failed to calculate recent time, "
                "either the clock is wrong or this is a bug"
            )
        if pt.full_slices > 0 and recent_time < pt.min_recent_time:
            raise K2Error(
                "Not enough recent time reserved, "
                "either the clock is wrong or this is a bug"
            )

        await pt.update(store, current_time)
        return pt

    def next_update_at(self) -> int:
        """The timestamp after which :meth:`update` should be called again."""
        return self._next_update_at

    def full_slice_end_timestamp(self) -> int:
        """The end of the last full slice, or the UNIX epoch if there is none."""
        return UNIX_TIMESTAMP + self.full_slices * self.full_slice_duration

    async def update(self, store, current_time: int) -> None:
        """Allocate new full slices, relayout the partials and set the next update time."""
        await self._update_full_slice_hashes(store, current_time)
        await self._update_partials(store, current_time)

        # Less than one unit of time is left uncovered; once it has grown to a
        # full unit, another partial slice fits.
        if self.partial_slices:
            self._next_update_at = self.partial_slices[-1].end() + UNIT_TIME

    async def inform_ops_stored(self, store, stored_ops: Iterable[StoredOp]) -> None:
        """Fold newly stored ops into the hashes of the slices they fall in.

        The caller must ensure the ops belong to this arc. Ops newer than the
        last partial slice are left for a later update to pick up.
        """
        full_slice_end = self.full_slice_end_timestamp()

        for op in stored_ops:
            if op.timestamp < full_slice_end:
                _log.info(
                    "Historical update detected. Seeing many of these places "
                    "load on our system, but it is expected if we've been "
                    "offline or a network partition has been resolved."
                )
                slice_id = op.timestamp // self.full_slice_duration
                current = await store.retrieve_slice_hash(
                    self.arc_constraint, slice_id
                )
                if current is None:
                    new_hash = op.op_id.data
                else:
                    new_hash = bytes(combine_hashes(bytearray(current), op.op_id.data))
                await store.store_slice_hash(self.arc_constraint, slice_id, new_hash)
                continue

            if not self.partial_slices:
                _log.warning(
                    "No partial slices yet, can't update partials. "
                    "This is likely a configuration or clock issue."
                )
                continue

            if op.timestamp >= self.partial_slices[-1].end():
                continue

            partial = next(
                p for p in reversed(self.partial_slices) if op.timestamp >= p.start
            )
            combine_hashes(partial.hash, op.op_id.data)

    async def _update_full_slice_hashes(self, store, current_time: int) -> None:
        end = self.full_slice_end_timestamp()
        new_count = layout_full_slices(
            end, self.min_recent_time, self.full_slice_duration, current_time
        )

        for _ in range(new_count):
            op_hashes = await store.retrieve_op_hashes_in_time_slice(
                self.arc_constraint, end, end + self.full_slice_duration
            )
            combined = combine_op_hashes(op_hashes)
            if combined:
                await store.store_slice_hash(
                    self.arc_constraint, self.full_slices, bytes(combined)
                )
            self.full_slices += 1
            end += self.full_slice_duration

    async def _update_partials(self, store, current_time: int) -> None:
        layout = layout_partials(
            self.factor, current_time, self.full_slice_end_timestamp()
        )
        old_hashes = {(p.start, p.size): p.hash for p in self.partial_slices}

        new_partials: List[PartialSlice] = []
        for start, size in layout:
            previous = old_hashes.get((start, size))
            if previous is not None:
                slice_hash = bytearray(previous)
            else:
                end = start + (1 << size) * UNIT_TIME
                slice_hash = combine_op_hashes(
                    await store.retrieve_op_hashes_in_time_slice(
                        self.arc_constraint, start, end
                    )
                )
            new_partials.append(PartialSlice(start=start, size=size, hash=slice_hash))

        self.partial_slices = new_partials