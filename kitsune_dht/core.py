"""Shared types: locations, arcs, op identifiers and units of time.

Timestamps and durations are plain integers counting microseconds; a
timestamp counts from the UNIX epoch.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import ClassVar, Optional

U32_MAX = 0xFFFF_FFFF
MICROS_PER_SECOND = 1_000_000

#: The base unit of time slicing: 15 minutes, in microseconds.
UNIT_TIME = 15 * 60 * MICROS_PER_SECOND

#: The UNIX epoch as a timestamp.
UNIX_TIMESTAMP = 0


class K2Error(Exception):
    """Error raised by the stores and the space-time partitioning."""


def now_micros() -> int:
    """The current time as microseconds since the UNIX epoch."""
    return time.time_ns() // 1000


@dataclass(frozen=True)
class DhtArc:
    """An inclusive range of 32-bit locations, possibly wrapping, or empty.

    An arc with no bounds is empty. When ``start > end`` the arc wraps
    around the top of the location space.
    """

    start: Optional[int] = None
    end: Optional[int] = None

    EMPTY: ClassVar["DhtArc"]
    FULL: ClassVar["DhtArc"]

    def __post_init__(self) -> None:
        if (self.start is None) != (self.end is None):
            raise ValueError("an arc needs both bounds or neither")
        for bound in (self.start, self.end):
            if bound is None:
                continue
            if isinstance(bound, bool) or not isinstance(bound, int):
                raise ValueError(f"arc bound must be an integer, got {bound!r}")
            if not 0 <= bound <= U32_MAX:
                raise ValueError(f"arc bound {bound} is outside the u32 range")

    def is_empty(self) -> bool:
        """Whether the arc covers no locations."""
        return self.start is None

    def contains(self, loc: int) -> bool:
        """Whether the location falls inside the arc."""
        if self.start is None or self.end is None:
            return False
        if self.start <= self.end:
            return self.start <= loc <= self.end
        return loc >= self.start or loc <= self.end

    def __repr__(self) -> str:
        if self.is_empty():
            return "DhtArc.EMPTY"
        return f"DhtArc({self.start}, {self.end})"


DhtArc.EMPTY = DhtArc()
DhtArc.FULL = DhtArc(0, U32_MAX)


@dataclass(frozen=True)
class OpId:
    """The identifier (hash) of an op."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def loc(self) -> int:
        """The 32-bit location of this id: its last four bytes, little-endian."""
        tail = self.data[-4:]
        return int.from_bytes(tail.ljust(4, b"\x00"), "little")


@dataclass(frozen=True)
class StoredOp:
    """An op that has been stored, by id and timestamp."""

    op_id: OpId
    timestamp: int


@dataclass(frozen=True)
class MetaOp:
    """An op id together with its serialized data."""

    op_id: OpId
    op_data: bytes