"""Unpacking of integer and float PCM byte layouts into normalised float samples."""

from __future__ import annotations

import struct
import sys

from pcmnet.encode import SampleFormat
from pcmnet.scaling import (
    SAMPLE_16BIT_SCALING,
    SAMPLE_24BIT_SCALING,
    SAMPLE_32BIT_SCALING,
)

__all__ = ["decode_sample", "decode_samples"]

_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


_SCALE_16 = _f32(1.0 / SAMPLE_16BIT_SCALING)
_SCALE_24 = _f32(1.0 / SAMPLE_24BIT_SCALING)
_SCALE_32_SINGLE = _f32(1.0 / SAMPLE_32BIT_SCALING)
_SCALE_32_DOUBLE = 1.0 / SAMPLE_32BIT_SCALING

_NATIVE = sys.byteorder
_SWAPPED = "big" if _NATIVE == "little" else "little"


def _byteorder(byteswap: bool) -> str:
    return _SWAPPED if byteswap else _NATIVE


def _scaled(value: int, scale: float) -> float:
    return _f32(_f32(float(value)) * scale)


def decode_sample(data, fmt: SampleFormat, byteswap: bool = False) -> float:
    """Decode one sample from the start of data; byteswap selects the opposite of host order."""
    width = fmt.width()
    raw = bytes(data[:width])
    if len(raw) < width:
        raise ValueError(f"need {width} bytes for a {fmt.value} sample, got {len(raw)}")
    order = _byteorder(byteswap)

    if fmt is SampleFormat.FLOAT:
        return struct.unpack("<f" if order == "little" else ">f", raw)[0]
    if fmt is SampleFormat.INT16:
        return _scaled(int.from_bytes(raw, order, signed=True), _SCALE_16)
    if fmt is SampleFormat.INT24:
        return _scaled(int.from_bytes(raw, order, signed=True), _SCALE_24)
    if fmt is SampleFormat.INT32_U24:
        return _scaled(int.from_bytes(raw, order, signed=True) >> 8, _SCALE_24)
    if fmt is SampleFormat.INT32_L24:
        if byteswap:
            # The reverse-endian layout is taken as a full 32-bit value.
            return _scaled(int.from_bytes(raw, order, signed=True), _SCALE_24)
        unsigned = int.from_bytes(raw, order, signed=False)
        if unsigned & 0x800000:
            unsigned |= 0xFF000000
        value = unsigned - (1 << 32) if unsigned & 0x80000000 else unsigned
        return _scaled(value, _SCALE_24)
    if fmt is SampleFormat.INT32:
        value = int.from_bytes(raw, order, signed=True)
        if byteswap:
            return _scaled(value, _SCALE_32_SINGLE)
        return _f32(value * _SCALE_32_DOUBLE)
    raise ValueError(f"unknown sample format {fmt!r}")


def decode_samples(
    data,
    fmt: SampleFormat,
    count: int | None = None,
    byteswap: bool = False,
    stride: int | None = None,
) -> list[float]:
    """Decode count samples spaced stride bytes apart; by default as many as fit."""
    width = fmt.width()
    if stride is None:
        stride = width
    elif stride < width:
        raise ValueError(f"stride {stride} is smaller than the sample width {width}")
    view = memoryview(data).cast("B")
    available = 0 if len(view) < width else (len(view) - width) // stride + 1
    if count is None:
        count = available
    elif count < 0:
        raise ValueError(f"negative sample count {count}")
    elif count > available:
        raise ValueError(f"data holds {available} samples, {count} requested")
    return [
        decode_sample(view[position:position + width], fmt, byteswap)
        for position in range(0, count * stride, stride)
    ]