"""Layout of time into full slices and decreasing partial slices.

Durations and timestamps are integers counting microseconds.
"""

from __future__ import annotations

from typing import List, Tuple

from kitsune_dht.core import UNIT_TIME, K2Error
from kitsune_dht.slices import residual_duration_for_factor


def full_slice_duration_for_factor(factor: int) -> int:
    """The length of a full slice, ``2**factor * UNIT_TIME``."""
    if factor < 0:
        raise K2Error("Time partitioning factor must not be negative")
    return (1 << factor) * UNIT_TIME


def layout_full_slices(
    full_slice_end: int,
    min_recent_time: int,
    full_slice_duration: int,
    current_time: int,
) -> int:
    """How many new full slices fit between ``full_slice_end`` and ``current_time``.

    At least ``min_recent_time`` is always left over as recent time. Raises
    :class:`K2Error` if the current time is before ``full_slice_end``.
    """
    recent_time = current_time - full_slice_end
    if recent_time < 0:
        raise K2Error("Current time is before the complete time slice boundary")

    if recent_time <= min_recent_time:
        return 0
    return (recent_time - min_recent_time) // full_slice_duration


def layout_partials(
    factor: int, current_time: int, start_at: int
) -> List[Tuple[int, int]]:
    """Partition ``[start_at, current_time)`` into partial slices.

    Returns ``(start, size)`` pairs, largest first. For each size from
    ``factor - 1`` down to 0, two slices are taken if there is room for them
    and one of each smaller size, otherwise one if it fits.
    """
    recent_time = current_time - start_at
    if recent_time < 0:
        raise K2Error(
            "Failed to calculate recent time for partials, "
            "either the clock is wrong or this is a bug"
        )

    partials: List[Tuple[int, int]] = []
    for size in reversed(range(factor)):
        slice_size = (1 << size) * UNIT_TIME
        if recent_time > residual_duration_for_factor(size) + slice_size:
            count = 2
        elif recent_time > slice_size:
            count = 1
        else:
            continue

        for _ in range(count):
            partials.append((start_at, size))
            start_at += slice_size
            recent_time -= slice_size

    return partials