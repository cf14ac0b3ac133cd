"""Filling, copying and mixing of interleaved sample buffers."""

from __future__ import annotations

import struct
import sys
from collections.abc import MutableSequence, Sequence

__all__ = ["fill_interleaved", "copy_interleaved", "copy_plain", "mix_into"]

_FLOAT32 = struct.Struct("=f")
_COPY_WIDTHS = (2, 3, 4)


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def _signed_char(value: int) -> int:
    if not -128 <= value <= 255:
        raise ValueError(f"fill value {value} does not fit in one byte")
    return value - 256 if value > 127 else value


def _check_span(name: str, length: int, offset: int, units: int, unit: int, skip: int) -> None:
    if units == 0:
        return
    needed = offset + (units - 1) * skip + unit
    if needed > length:
        raise ValueError(f"{name} of {length} bytes is too small, {needed} needed")


def _unit_count(nbytes: int, unit: int) -> int:
    if nbytes < 0:
        raise ValueError(f"negative byte count {nbytes}")
    if nbytes % unit:
        raise ValueError(f"byte count {nbytes} is not a multiple of the unit size {unit}")
    return nbytes // unit


def fill_interleaved(
    buffer,
    value: int,
    nbytes: int,
    unit_bytes: int,
    skip_bytes: int,
    offset: int = 0,
) -> None:
    """Write value into every unit of an interleaved channel.

    For 2- and 4-byte units the byte is widened as a signed integer in host
    order; other unit sizes have every byte set to value.
    """
    if unit_bytes <= 0:
        raise ValueError(f"unit size must be positive, got {unit_bytes}")
    if skip_bytes < 0 or offset < 0:
        raise ValueError("skip and offset must not be negative")
    signed = _signed_char(value)
    if unit_bytes in (2, 4):
        pattern = signed.to_bytes(unit_bytes, sys.byteorder, signed=True)
    else:
        pattern = bytes([signed & 0xFF]) * unit_bytes
    units = _unit_count(nbytes, unit_bytes)
    _check_span("buffer", len(buffer), offset, units, unit_bytes, skip_bytes)
    for position in range(offset, offset + units * skip_bytes, skip_bytes or 1)[:units]:
        buffer[position:position + unit_bytes] = pattern
    if skip_bytes == 0 and units:
        buffer[offset:offset + unit_bytes] = pattern


def copy_interleaved(dst, src, width: int, src_bytes: int, dst_skip: int, src_skip: int) -> None:
    """Copy src_bytes worth of width-byte samples between interleaved buffers."""
    if width not in _COPY_WIDTHS:
        raise ValueError(f"unsupported sample width {width}")
    if dst_skip <= 0 or src_skip <= 0:
        raise ValueError("skip distances must be positive")
    units = _unit_count(src_bytes, width)
    _check_span("source", len(src), 0, units, width, src_skip)
    _check_span("destination", len(dst), 0, units, width, dst_skip)
    for d, s in zip(range(0, units * dst_skip, dst_skip), range(0, units * src_skip, src_skip)):
        dst[d:d + width] = src[s:s + width]


def copy_plain(dst, src, src_bytes: int) -> None:
    """Copy the first src_bytes bytes of src to the start of dst."""
    if src_bytes < 0:
        raise ValueError(f"negative byte count {src_bytes}")
    if src_bytes > len(src) or src_bytes > len(dst):
        raise ValueError(f"cannot copy {src_bytes} bytes between buffers of {len(src)} and {len(dst)}")
    dst[:src_bytes] = src[:src_bytes]


def mix_into(dst: MutableSequence[float], src: Sequence[float]) -> None:
    """Add every sample of src to the matching sample of dst."""
    if len(src) > len(dst):
        raise ValueError(f"source has {len(src)} samples, destination only {len(dst)}")
    dst[:len(src)] = [_f32(a + b) for a, b in zip(dst, src)]