import pytest

from kitsune_dht.core import MICROS_PER_SECOND, UNIT_TIME, UNIX_TIMESTAMP, K2Error
from kitsune_dht.layout import (
    full_slice_duration_for_factor,
    layout_full_slices,
    layout_partials,
)
from kitsune_dht.slices import residual_duration_for_factor

ONE_SECOND = MICROS_PER_SECOND


def min_recent_time(factor):
    return residual_duration_for_factor(factor - 1)


def assert_valid_partials(partials, start_at):
    expected_start = start_at
    for index, (start, size) in enumerate(partials):
        if index > 0:
            assert partials[index - 1][1] >= size
        if index > 1:
            assert not (partials[index - 2][1] == partials[index - 1][1] == size)
        assert start == expected_start
        expected_start += (1 << size) * UNIT_TIME
    return expected_start


def test_full_slice_duration_factor_4():
    assert full_slice_duration_for_factor(4) == 16 * UNIT_TIME


def test_full_slice_duration_factor_9_is_128_hours():
    assert full_slice_duration_for_factor(9) == 128 * 3600 * MICROS_PER_SECOND


def test_full_slice_duration_negative_factor():
    with pytest.raises(K2Error):
        full_slice_duration_for_factor(-1)


def test_no_full_slices_within_min_recent_time():
    factor = 7
    result = layout_full_slices(
        UNIX_TIMESTAMP,
        min_recent_time(factor),
        full_slice_duration_for_factor(factor),
        UNIX_TIMESTAMP + min_recent_time(factor),
    )
    assert result == 0


def test_two_full_slices():
    factor = 7
    fsd = full_slice_duration_for_factor(factor)
    current = UNIX_TIMESTAMP + 2 * fsd + min_recent_time(factor) + ONE_SECOND
    assert layout_full_slices(UNIX_TIMESTAMP, min_recent_time(factor), fsd, current) == 2


def test_full_slices_counted_from_existing_end():
    factor = 7
    fsd = full_slice_duration_for_factor(factor)
    end = UNIX_TIMESTAMP + fsd
    current = end + fsd + min_recent_time(factor) + ONE_SECOND
    assert layout_full_slices(end, min_recent_time(factor), fsd, current) == 1


def test_full_slices_before_boundary_raises():
    factor = 7
    fsd = full_slice_duration_for_factor(factor)
    with pytest.raises(K2Error, match="before the complete time slice boundary"):
        layout_full_slices(fsd, min_recent_time(factor), fsd, fsd - 1)


def test_partials_at_unix_timestamp_are_empty():
    assert layout_partials(4, UNIX_TIMESTAMP, UNIX_TIMESTAMP) == []


def test_one_partial_slice():
    current = UNIX_TIMESTAMP + UNIT_TIME + ONE_SECOND
    partials = layout_partials(4, current, UNIX_TIMESTAMP)
    assert partials == [(UNIX_TIMESTAMP, 0)]


def test_exactly_unit_time_gives_no_partial():
    assert layout_partials(4, UNIX_TIMESTAMP + UNIT_TIME, UNIX_TIMESTAMP) == []


def test_all_single_partial_slices():
    factor = 7
    current = UNIX_TIMESTAMP + min_recent_time(factor) + ONE_SECOND
    partials = layout_partials(factor, current, UNIX_TIMESTAMP)
    assert len(partials) == factor
    assert [size for _, size in partials] == list(reversed(range(factor)))
    assert_valid_partials(partials, UNIX_TIMESTAMP)


def test_one_double_others_single():
    factor = 7
    current = (
        UNIX_TIMESTAMP
        + min_recent_time(factor)
        + (1 << (factor - 1)) * UNIT_TIME
        + ONE_SECOND
    )
    partials = layout_partials(factor, current, UNIX_TIMESTAMP)
    assert len(partials) == factor + 1
    assert partials[0][1] == factor - 1
    assert partials[1][1] == partials[0][1]
    assert_valid_partials(partials, UNIX_TIMESTAMP)


def test_all_double_slices():
    factor = 7
    current = UNIX_TIMESTAMP + 2 * min_recent_time(factor) + ONE_SECOND
    partials = layout_partials(factor, current, UNIX_TIMESTAMP)
    assert len(partials) == factor * 2
    assert_valid_partials(partials, UNIX_TIMESTAMP)


def test_partials_start_at_offset():
    factor = 7
    start_at = UNIX_TIMESTAMP + 2 * full_slice_duration_for_factor(factor)
    current = start_at + min_recent_time(factor) + ONE_SECOND
    partials = layout_partials(factor, current, start_at)
    assert partials[0][0] == start_at
    assert len(partials) == factor
    assert_valid_partials(partials, start_at)


@pytest.mark.parametrize("units", [0, 1, 2, 3, 5, 17, 64, 127, 200, 254])
@pytest.mark.parametrize("extra_seconds", [0, 1, 899])
def test_partials_never_exceed_recent_time(units, extra_seconds):
    factor = 7
    current = UNIX_TIMESTAMP + units * UNIT_TIME + extra_seconds * ONE_SECOND
    partials = layout_partials(factor, current, UNIX_TIMESTAMP)
    end = assert_valid_partials(partials, UNIX_TIMESTAMP)
    assert end <= current
    assert all(size < factor for _, size in partials)


def test_partials_before_start_raises():
    with pytest.raises(K2Error, match="recent time for partials"):
        layout_partials(7, UNIX_TIMESTAMP, UNIX_TIMESTAMP + ONE_SECOND)