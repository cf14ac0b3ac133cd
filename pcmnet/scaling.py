"""Conversion of normalised float samples to clipped integer sample values."""

from __future__ import annotations

import math
import struct

__all__ = [
    "lrint",
    "float_to_int16",
    "scaled_to_int16",
    "float_to_int24",
    "scaled_to_int24",
    "float_to_int32",
]

SAMPLE_32BIT_SCALING = 2147483647.0
SAMPLE_24BIT_SCALING = 8388607.0
SAMPLE_16BIT_SCALING = 32767.0

# Symmetric limits used when a value falls outside the representable range.
SAMPLE_32BIT_MAX = 2147483647
SAMPLE_32BIT_MIN = -2147483647
SAMPLE_24BIT_MAX = 8388607
SAMPLE_24BIT_MIN = -8388607
SAMPLE_16BIT_MAX = 32767
SAMPLE_16BIT_MIN = -32767

NORMALIZED_FLOAT_MIN = -1.0
NORMALIZED_FLOAT_MAX = 1.0

_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def lrint(value: float) -> int:
    """Round to the nearest integer, ties to even."""
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    return round(value)


def _normalized_to_int(value: float, scaling: float, low: int, high: int) -> int:
    value = _f32(value)
    if value <= NORMALIZED_FLOAT_MIN:
        return low
    if value >= NORMALIZED_FLOAT_MAX:
        return high
    return lrint(_f32(value * scaling))


def _scaled_to_int(value: float, low: int, high: int) -> int:
    value = _f32(value)
    if value <= low:
        return low
    if value >= high:
        return high
    return lrint(value)


def float_to_int16(value: float) -> int:
    """Convert a normalised sample (-1.0..1.0) to a clipped 16-bit integer."""
    return _normalized_to_int(value, SAMPLE_16BIT_SCALING, SAMPLE_16BIT_MIN, SAMPLE_16BIT_MAX)


def scaled_to_int16(value: float) -> int:
    """Clip and round a sample already scaled to the 16-bit range."""
    return _scaled_to_int(value, SAMPLE_16BIT_MIN, SAMPLE_16BIT_MAX)


def float_to_int24(value: float) -> int:
    """Convert a normalised sample (-1.0..1.0) to a clipped 24-bit integer."""
    return _normalized_to_int(value, SAMPLE_24BIT_SCALING, SAMPLE_24BIT_MIN, SAMPLE_24BIT_MAX)


def scaled_to_int24(value: float) -> int:
    """Clip and round a sample already scaled to the 24-bit range."""
    return _scaled_to_int(value, SAMPLE_24BIT_MIN, SAMPLE_24BIT_MAX)


def float_to_int32(value: float) -> int:
    """Convert a normalised sample to a 32-bit integer, clipping in double precision."""
    value = _f32(value)
    if math.isnan(value):
        # fmax/fmin discard a NaN operand, leaving the lower bound.
        clipped = NORMALIZED_FLOAT_MIN
    else:
        clipped = min(NORMALIZED_FLOAT_MAX, max(value, NORMALIZED_FLOAT_MIN))
    return lrint(clipped * SAMPLE_32BIT_SCALING)