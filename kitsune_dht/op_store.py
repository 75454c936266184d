"""An in-memory op store holding ops and combined time slice hashes."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from kitsune_dht.core import DhtArc, K2Error, MetaOp, OpId, StoredOp
from kitsune_dht.slice_hash_store import TimeSliceHashStore


@dataclass(frozen=True)
class MemoryOp:
    """A simple op, serialized as JSON, for use with :class:`MemoryOpStore`."""

    op_id: OpId
    timestamp: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", bytes(self.payload))

    def to_stored_op(self) -> StoredOp:
        """The id and timestamp of this op."""
        return StoredOp(op_id=self.op_id, timestamp=self.timestamp)

    def to_meta_op(self) -> MetaOp:
        """This op with its JSON serialization as the op data."""
        document = {
            "op_id": base64.b64encode(self.op_id.data).decode("ascii"),
            "timestamp": self.timestamp,
            "payload": list(self.payload),
        }
        return MetaOp(op_id=self.op_id, op_data=json.dumps(document).encode("utf-8"))

    @classmethod
    def _from_json(cls, data: bytes) -> "MemoryOp":
        document = json.loads(data)
        timestamp = document["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise TypeError("timestamp must be an integer")
        return cls(
            op_id=OpId(base64.b64decode(document["op_id"], validate=True)),
            timestamp=timestamp,
            payload=bytes(document["payload"]),
        )


@dataclass
class MemoryOpStore:
    """Ops and full slice hashes, kept in memory."""

    _ops: Dict[OpId, MemoryOp] = field(default_factory=dict)
    _slice_hashes: TimeSliceHashStore = field(default_factory=TimeSliceHashStore)

    async def process_incoming_ops(self, op_list: Iterable[MetaOp]) -> None:
        """Decode and store the given ops; nothing is stored if any fails to decode."""
        try:
            decoded = [(op.op_id, MemoryOp._from_json(op.op_data)) for op in op_list]
        except (ValueError, KeyError, TypeError) as err:
            raise K2Error(
                "Failed to deserialize op data, are you using `MemoryOp`s?"
            ) from err
        self._ops.update(decoded)

    async def retrieve_op_hashes_in_time_slice(
        self, arc: DhtArc, start: int, end: int
    ) -> List[OpId]:
        """Ids of ops located in ``arc`` with ``start <= timestamp < end``."""
        return [
            op_id
            for op_id, op in self._ops.items()
            if start <= op.timestamp < end and arc.contains(op.op_id.loc())
        ]

    async def store_slice_hash(
        self, arc: DhtArc, slice_id: int, slice_hash: bytes
    ) -> None:
        """Store the combined hash of the time slice ``slice_id`` for ``arc``.

        Slice ``n`` covers ``[n * period, (n + 1) * period)``.
        """
        self._slice_hashes.insert(arc, slice_id, slice_hash)

    async def slice_hash_count(self, arc: DhtArc) -> int:
        """The highest stored slice id for ``arc`` plus one, or zero."""
        highest = self._slice_hashes.highest_stored_id(arc)
        return 0 if highest is None else highest + 1

    async def retrieve_slice_hash(
        self, arc: DhtArc, slice_id: int
    ) -> Optional[bytes]:
        """The most recently stored hash for ``slice_id``, or ``None``."""
        return self._slice_hashes.get(arc, slice_id)