"""Time slice sizing and the XOR combination of op hashes.

Durations and timestamps are integers counting microseconds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from kitsune_dht.core import UNIT_TIME, K2Error, OpId

_log = logging.getLogger(__name__)

#: Factors at or above this value would overflow a duration.
MAX_FACTOR_EXCLUSIVE = 54


def residual_duration_for_factor(factor: int) -> int:
    """The duration of one slice of each size from ``2**0`` up to ``2**factor`` units.

    That is ``(2**0 + 2**1 + ... + 2**factor) * UNIT_TIME``. Raises
    :class:`K2Error` if the factor is 54 or higher, or negative.
    """
    if factor >= MAX_FACTOR_EXCLUSIVE:
        raise K2Error("Time partitioning factor must be less than 54")
    if factor < 0:
        raise K2Error("Time partitioning factor must not be negative")
    units = (1 << (factor + 1)) - 1
    return units * UNIT_TIME


def combine_hashes(into: bytearray, other: bytes) -> bytearray:
    """XOR ``other`` into ``into`` in place and return ``into``.

    An empty target takes a copy of ``other``. Hashes of different lengths
    are combined only over their common prefix.
    """
    other = bytes(other)
    if not into and other:
        into.extend(other)
        return into

    if len(into) != len(other):
        _log.debug(
            "Combining hashes of different lengths. This is undefined behaviour."
        )

    for index, other_byte in enumerate(other[: len(into)]):
        into[index] ^= other_byte
    return into


def combine_op_hashes(hashes: Iterable[OpId]) -> bytearray:
    """Combine op hashes into one by XOR; no hashes give an empty result."""
    hashes = list(hashes)
    if not hashes:
        return bytearray()

    out = bytearray(len(hashes[0].data))
    for op_id in hashes:
        combine_hashes(out, op_id.data)
    return out


@dataclass
class PartialSlice:
    """A recent time slice ``[start, end)`` whose combined hash is held in memory.

    Its length is ``2**size * UNIT_TIME``.
    """

    start: int
    size: int
    hash: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.hash = bytearray(self.hash)

    def end(self) -> int:
        """The timestamp at which the slice ends; not included in the slice."""
        return self.start + (1 << self.size) * UNIT_TIME