import math

import pytest

from pcmnet.scaling import (
    float_to_int16,
    float_to_int24,
    float_to_int32,
    lrint,
    scaled_to_int16,
    scaled_to_int24,
)


def test_lrint_ties_to_even():
    assert lrint(2.5) == 2
    assert lrint(-2.5) == -2
    assert lrint(3.5) == 4


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_lrint_rejects_non_finite(bad):
    with pytest.raises(ValueError):
        lrint(bad)


@pytest.mark.parametrize("value", [1.0, 1.5, 100.0, math.inf])
def test_int16_clips_high(value):
    assert float_to_int16(value) == 32767


@pytest.mark.parametrize("value", [-1.0, -1.5, -100.0, -math.inf])
def test_int16_clips_low_symmetric(value):
    assert float_to_int16(value) == -32767


def test_int16_round_trip_of_exact_levels():
    for k in range(-32766, 32767, 97):
        assert float_to_int16(k / 32767.0) == k


def test_int16_is_odd_and_monotonic():
    values = [i / 1000.0 for i in range(-999, 1000)]
    results = [float_to_int16(v) for v in values]
    assert results == sorted(results)
    for v in values:
        assert float_to_int16(-v) == -float_to_int16(v)
    assert float_to_int16(0.0) == 0


def test_scaled_int16_limits():
    assert scaled_to_int16(40000.0) == 32767
    assert scaled_to_int16(-40000.0) == -32767
    assert scaled_to_int16(32767.0) == 32767
    assert scaled_to_int16(-32767.0) == -32767
    assert scaled_to_int16(0.0) == 0


def test_int24_limits():
    assert float_to_int24(1.0) == 8388607
    assert float_to_int24(-1.0) == -8388607
    assert float_to_int24(7.0) == 8388607
    assert scaled_to_int24(1e9) == 8388607
    assert scaled_to_int24(-1e9) == -8388607


def test_int24_close_to_exact_levels():
    for k in range(-8388000, 8388000, 123457):
        assert abs(float_to_int24(k / 8388607.0) - k) <= 1


def test_int32_limits_and_nan():
    assert float_to_int32(1.0) == 2147483647
    assert float_to_int32(3.0) == 2147483647
    assert float_to_int32(-1.0) == -2147483647
    assert float_to_int32(-3.0) == -2147483647
    assert float_to_int32(math.nan) == -2147483647
    assert float_to_int32(0.0) == 0


def test_int32_symmetry():
    for v in (0.1, 0.25, 0.333, 0.9):
        assert float_to_int32(-v) == -float_to_int32(v)
        assert 0 < float_to_int32(v) < 2147483647