"""Packing of MIDI events into the word-based network buffer layout."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable
from dataclasses import dataclass

__all__ = ["MidiEvent", "encode_midi_buffer", "decode_midi_buffer"]

_log = logging.getLogger(__name__)
_WORD = struct.Struct(">I")
_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class MidiEvent:
    """One MIDI event: a frame offset and its raw bytes."""

    time: int
    data: bytes


def _data_quads(size: int) -> int:
    return ((((size - 1) & _U32) & ~0x3) >> 2) + 1


def encode_midi_buffer(events: Iterable[MidiEvent], size_words: int) -> bytes:
    """Encode events into a buffer of size_words big-endian 32-bit words.

    Each event is written as payload size, time and byte count, followed by its
    bytes padded to whole words. Events that no longer fit are dropped, and a
    zero word ends the list.
    """
    if size_words < 1:
        raise ValueError(f"buffer must hold at least one word, got {size_words}")
    buffer = bytearray(size_words * 4)
    written = 0
    for event in events:
        size = len(event.data)
        quads = _data_quads(size)
        payload_size = 3 + quads
        if written + payload_size >= size_words - 1:
            _log.error("midi buffer overflow")
            break
        for value in (payload_size, event.time, size):
            _WORD.pack_into(buffer, written * 4, value & _U32)
            written += 1
        start = written * 4
        buffer[start:start + size] = event.data
        written += quads
    _WORD.pack_into(buffer, written * 4, 0)
    return bytes(buffer)


def decode_midi_buffer(data, size_words: int) -> list[MidiEvent]:
    """Decode the events held in the first size_words words of data."""
    if size_words < 0:
        raise ValueError(f"negative word count {size_words}")
    if len(data) < size_words * 4:
        raise ValueError(f"buffer of {len(data)} bytes is shorter than {size_words} words")
    events: list[MidiEvent] = []
    i = 0
    while i < size_words - 3:
        (payload_size,) = _WORD.unpack_from(data, i * 4)
        if not payload_size:
            break
        (time,) = _WORD.unpack_from(data, (i + 1) * 4)
        (size,) = _WORD.unpack_from(data, (i + 2) * 4)
        start = (i + 3) * 4
        if start + size > len(data):
            raise ValueError(f"event of {size} bytes runs past the end of the buffer")
        events.append(MidiEvent(time, bytes(data[start:start + size])))
        i += 3 + _data_quads(size)
    return events