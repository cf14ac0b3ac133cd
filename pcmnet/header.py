"""The network packet header and port-type helpers."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, fields

__all__ = [
    "OPUS_MODE",
    "MASTER_FREEWHEELS",
    "HEADER_SIZE",
    "DEFAULT_AUDIO_TYPE",
    "DEFAULT_MIDI_TYPE",
    "PacketHeader",
    "get_sample_size",
    "is_audio_type",
    "is_midi_type",
]

OPUS_MODE = 999  # bit depth value that selects Opus compression
MASTER_FREEWHEELS = 0x80000000

DEFAULT_AUDIO_TYPE = "32 bit float mono audio"
DEFAULT_MIDI_TYPE = "8 bit raw midi"
PORT_TYPE_SIZE = 32

_HEADER = struct.Struct(">14I")
HEADER_SIZE = _HEADER.size


@dataclass
class PacketHeader:
    """Fixed header carried at the start of every packet, in network byte order on the wire."""

    capture_channels_audio: int = 0
    playback_channels_audio: int = 0
    capture_channels_midi: int = 0
    playback_channels_midi: int = 0
    period_size: int = 0
    sample_rate: int = 0
    sync_state: int = 0
    transport_frame: int = 0
    transport_state: int = 0
    framecnt: int = 0
    latency: int = 0
    reply_port: int = 0
    mtu: int = 0
    fragment_nr: int = 0

    def to_bytes(self) -> bytes:
        """Pack the header as big-endian 32-bit unsigned fields."""
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0 <= value <= 0xFFFFFFFF:
                raise ValueError(f"{f.name}={value} does not fit in 32 unsigned bits")
        return _HEADER.pack(*astuple(self))

    @classmethod
    def from_bytes(cls, data) -> PacketHeader:
        """Unpack a header from the start of data; trailing payload is ignored."""
        if len(data) < HEADER_SIZE:
            raise ValueError(f"need {HEADER_SIZE} bytes for a packet header, got {len(data)}")
        return cls(*_HEADER.unpack_from(data, 0))


def get_sample_size(bitdepth: int) -> int:
    """Bytes taken by one sample on the wire for the given bit depth."""
    if bitdepth == 8:
        return 1
    if bitdepth == 16:
        return 2
    if bitdepth == OPUS_MODE:
        return 1
    return 4


def _type_matches(port_type: str, expected: str) -> bool:
    return port_type[:PORT_TYPE_SIZE] == expected[:PORT_TYPE_SIZE]


def is_audio_type(port_type: str) -> bool:
    """True if port_type names the default audio type."""
    return _type_matches(port_type, DEFAULT_AUDIO_TYPE)


def is_midi_type(port_type: str) -> bool:
    """True if port_type names the default MIDI type."""
    return _type_matches(port_type, DEFAULT_MIDI_TYPE)