"""Partition of the 32-bit location space into 512 equally sized arcs.

Each space partition owns a :class:`PartitionedTime` that manages the time
slices for its arc. All time partitions are updated together, so they stay
in lockstep.

Nothing here watches the store for new ops: callers report stored ops with
:meth:`PartitionedHashes.inform_ops_stored`, which routes each op to the
space partition that holds its location.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from kitsune_dht.core import U32_MAX, DhtArc, StoredOp
from kitsune_dht.partitioned_time import PartitionedTime

_log = logging.getLogger(__name__)

#: 32 - 23 = 9 bits of partition index, giving 2**9 = 512 partitions.
PARTITION_SIZE = 1 << 23


@dataclass
class PartitionedHashes:
    """The location space split into 512 arcs, each with its own time slices."""

    size: int
    partitions: List[PartitionedTime] = field(default_factory=list)

    @classmethod
    async def try_from_store(
        cls, time_factor: int, current_time: int, store
    ) -> "PartitionedHashes":
        """Create all 512 space partitions, each consistent with ``store``.

        The last partition reaches up to the top of the location space.
        """
        size = PARTITION_SIZE
        count = (U32_MAX // size) + 1

        partitions: List[PartitionedTime] = []
        for index in range(count):
            start = index * size
            end = U32_MAX if index == count - 1 else (index + 1) * size - 1
            partitions.append(
                await PartitionedTime.try_from_store(
                    time_factor, current_time, DhtArc(start, end), store
                )
            )

        _log.info("Allocated [%d] space partitions", len(partitions))
        return cls(size=size, partitions=partitions)

    def next_update_at(self) -> int:
        """The timestamp after which :meth:`update` should be called again."""
        return self.partitions[0].next_update_at()

    async def update(self, store, current_time: int) -> None:
        """Bring the time slices of every space partition up to ``current_time``."""
        for partition in self.partitions:
            await partition.update(store, current_time)

    async def inform_ops_stored(self, store, stored_ops: Iterable[StoredOp]) -> None:
        """Route newly stored ops to the space partitions holding their locations."""
        by_partition: Dict[int, List[StoredOp]] = defaultdict(list)
        for op in stored_ops:
            by_partition[op.op_id.loc() // self.size].append(op)

        for index in sorted(by_partition):
            await self.partitions[index].inform_ops_stored(store, by_partition[index])