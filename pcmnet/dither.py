"""Dithering of float samples down to 16-bit integers."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum

from pcmnet.scaling import SAMPLE_16BIT_SCALING, float_to_int16, scaled_to_int16

__all__ = ["DitherAlgorithm", "NoiseGenerator", "DitherState", "dither_sample"]

DITHER_BUF_SIZE = 8
DITHER_BUF_MASK = 7

_UINT_MAX = 0xFFFFFFFF
_UINT_MAX_F = 4294967296.0  # UINT_MAX as a single-precision float

# Lipshitz's minimally audible error filter.
_FIR = (2.033, -2.165, 1.959, -1.590, 0.6149)

_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


class DitherAlgorithm(Enum):
    """Dither kinds applied when reducing to 16 bits."""

    NONE = 0
    RECTANGULAR = 1
    TRIANGULAR = 2
    SHAPED = 3


class NoiseGenerator:
    """Linear congruential noise source; fast rather than very random."""

    def __init__(self, seed: int = 22222) -> None:
        self.seed = seed & _UINT_MAX

    def next(self) -> int:
        """Advance the generator and return the new 32-bit value."""
        self.seed = (self.seed * 196314165 + 907633515) & _UINT_MAX
        return self.seed

    def rectangular(self) -> float:
        """Uniform noise in [-0.5, 0.5]."""
        return _f32(_f32(_f32(self.next()) / _UINT_MAX_F) - 0.5)

    def triangular(self) -> float:
        """Triangular-distribution noise in [-1.0, 1.0]."""
        total = _f32(_f32(self.next()) + _f32(self.next()))
        return _f32(_f32(total / _UINT_MAX_F) - 1.0)


@dataclass
class DitherState:
    """Error history and previous noise value for noise-shaped dither."""

    depth: int = 0
    rm1: float = 0.0
    idx: int = 0
    e: list[float] = field(default_factory=lambda: [0.0] * DITHER_BUF_SIZE)

    def shape(self, x: float, noise: float) -> tuple[float, float]:
        """Filter the error out of scaled sample x and add noise.

        Returns (xp, xe): the value to quantise and the filtered input.
        """
        xe = x
        sign = -1.0
        for tap, coeff in enumerate(_FIR):
            xe = _f32(xe + sign * _f32(self.e[(self.idx - tap) & DITHER_BUF_MASK] * _f32(coeff)))
        # Taps alternate in sign because the coefficients already carry it.
        xp = _f32(_f32(xe + noise) - self.rm1)
        self.rm1 = noise
        return xp, xe

    def commit(self, quantized: float, xe: float) -> None:
        """Advance the history and record the error of the quantised value."""
        self.idx = (self.idx + 1) & DITHER_BUF_MASK
        self.e[self.idx] = _f32(quantized - xe)


def dither_sample(
    sample: float,
    algorithm: DitherAlgorithm,
    state: DitherState | None = None,
    noise: NoiseGenerator | None = None,
) -> int:
    """Convert one normalised sample to a 16-bit integer using the given dither."""
    if algorithm is DitherAlgorithm.NONE:
        return float_to_int16(sample)
    if noise is None:
        raise ValueError(f"{algorithm.name} dither needs a noise generator")
    x = _f32(_f32(sample) * SAMPLE_16BIT_SCALING)
    if algorithm is DitherAlgorithm.RECTANGULAR:
        return scaled_to_int16(x + noise.rectangular())
    if algorithm is DitherAlgorithm.TRIANGULAR:
        return scaled_to_int16(x + noise.triangular())
    if algorithm is DitherAlgorithm.SHAPED:
        if state is None:
            raise ValueError("shaped dither needs a DitherState")
        xp, xe = state.shape(x, noise.triangular())
        quantized = scaled_to_int16(xp)
        state.commit(quantized, xe)
        return quantized
    raise ValueError(f"unknown dither algorithm {algorithm!r}")