"""Packing of float samples into integer and float PCM byte layouts."""

from __future__ import annotations

import struct
import sys
from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from pcmnet.dither import DitherAlgorithm, DitherState, NoiseGenerator, dither_sample
from pcmnet.scaling import (
    SAMPLE_16BIT_SCALING,
    float_to_int16,
    float_to_int24,
    float_to_int32,
    scaled_to_int16,
)

__all__ = [
    "SampleFormat",
    "encode_sample",
    "encode_samples",
    "encode_into",
    "encode_dithered_int16",
]

_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


class SampleFormat(Enum):
    """On-the-wire sample layouts."""

    FLOAT = "float"
    INT32 = "32"
    INT32_U24 = "32u24"
    INT32_L24 = "32l24"
    INT24 = "24"
    INT16 = "16"

    def width(self) -> int:
        """Number of bytes one sample occupies."""
        return _WIDTHS[self]


_WIDTHS = {
    SampleFormat.FLOAT: 4,
    SampleFormat.INT32: 4,
    SampleFormat.INT32_U24: 4,
    SampleFormat.INT32_L24: 4,
    SampleFormat.INT24: 3,
    SampleFormat.INT16: 2,
}

_INT_CONVERTERS: dict[SampleFormat, Callable[[float], int]] = {
    SampleFormat.INT32: float_to_int32,
    SampleFormat.INT32_U24: lambda value: float_to_int24(value) << 8,
    SampleFormat.INT32_L24: float_to_int24,
    SampleFormat.INT24: float_to_int24,
    SampleFormat.INT16: float_to_int16,
}

_NATIVE = sys.byteorder
_SWAPPED = "big" if _NATIVE == "little" else "little"

# Shared by all callers that do not bring their own, like a process-wide seed.
_SHARED_NOISE = NoiseGenerator()


def _byteorder(byteswap: bool) -> str:
    return _SWAPPED if byteswap else _NATIVE


def _resolve_stride(fmt: SampleFormat, stride: int | None) -> int:
    width = fmt.width()
    if stride is None:
        return width
    if stride < width:
        raise ValueError(f"stride {stride} is smaller than the sample width {width}")
    return stride


def encode_sample(value: float, fmt: SampleFormat, byteswap: bool = False) -> bytes:
    """Encode one normalised sample; byteswap selects the opposite of host order."""
    order = _byteorder(byteswap)
    if fmt is SampleFormat.FLOAT:
        return struct.pack("<f" if order == "little" else ">f", value)
    return _INT_CONVERTERS[fmt](value).to_bytes(fmt.width(), order, signed=True)


def _place(chunks: Sequence[bytes], buffer, offset: int, width: int, stride: int) -> None:
    if offset < 0:
        raise ValueError(f"negative offset {offset}")
    if chunks:
        needed = offset + (len(chunks) - 1) * stride + width
        if needed > len(buffer):
            raise ValueError(f"buffer of {len(buffer)} bytes is too small, {needed} needed")
    for position, chunk in zip(range(offset, offset + len(chunks) * stride, stride), chunks):
        buffer[position:position + width] = chunk


def encode_into(
    buffer,
    offset: int,
    samples: Iterable[float],
    fmt: SampleFormat,
    byteswap: bool = False,
    stride: int | None = None,
) -> None:
    """Write samples into a writable buffer starting at offset, stride bytes apart.

    Bytes between the samples are left untouched.
    """
    stride = _resolve_stride(fmt, stride)
    chunks = [encode_sample(value, fmt, byteswap) for value in samples]
    _place(chunks, buffer, offset, fmt.width(), stride)


def encode_samples(
    samples: Iterable[float],
    fmt: SampleFormat,
    byteswap: bool = False,
    stride: int | None = None,
) -> bytes:
    """Encode samples into a new zero-filled buffer of len(samples) * stride bytes."""
    stride = _resolve_stride(fmt, stride)
    values = list(samples)
    buffer = bytearray(len(values) * stride)
    encode_into(buffer, 0, values, fmt, byteswap, stride)
    return bytes(buffer)


def encode_dithered_int16(
    samples: Iterable[float],
    algorithm: DitherAlgorithm,
    state: DitherState | None = None,
    noise: NoiseGenerator | None = None,
    byteswap: bool = False,
    stride: int | None = None,
) -> bytes:
    """Encode samples as 16-bit integers with the given dither applied."""
    fmt = SampleFormat.INT16
    stride = _resolve_stride(fmt, stride)
    if noise is None:
        noise = _SHARED_NOISE
    if algorithm is DitherAlgorithm.SHAPED and state is None:
        raise ValueError("shaped dither needs a DitherState")
    order = _byteorder(byteswap)
    chunks = []
    for sample in samples:
        if algorithm is DitherAlgorithm.SHAPED:
            x = _f32(_f32(sample) * SAMPLE_16BIT_SCALING)
            xp, xe = state.shape(x, noise.triangular())
            quantized = scaled_to_int16(xp)
            # The byte-swapped variant records the unquantised error.
            state.commit(xp if byteswap else quantized, xe)
        else:
            quantized = dither_sample(sample, algorithm, state, noise)
        chunks.append(quantized.to_bytes(2, order, signed=True))
    buffer = bytearray(len(chunks) * stride)
    _place(chunks, buffer, 0, 2, stride)
    return bytes(buffer)