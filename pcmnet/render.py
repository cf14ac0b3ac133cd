"""Conversion between port buffers and the per-channel packet payload layout."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from pcmnet.header import OPUS_MODE, get_sample_size, is_audio_type, is_midi_type
from pcmnet.midi import MidiEvent, decode_midi_buffer, encode_midi_buffer

__all__ = [
    "Port",
    "LinearResampler",
    "render_payload_to_ports",
    "render_ports_to_payload",
]

_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


@dataclass
class Port:
    """A port's buffers: audio samples for audio ports, events for MIDI ports."""

    port_type: str
    samples: list[float] = field(default_factory=list)
    events: list[MidiEvent] = field(default_factory=list)


class LinearResampler:
    """Resamples a block of samples to a new length by linear interpolation."""

    def __init__(self) -> None:
        self.ratio = 1.0

    def process(self, data: Iterable[float], output_frames: int) -> list[float]:
        """Return output_frames samples spanning the input block."""
        if output_frames < 0:
            raise ValueError(f"negative output length {output_frames}")
        values = list(data)
        if not values:
            return [0.0] * output_frames
        if output_frames == 0:
            return []
        self.ratio = output_frames / len(values)
        step = len(values) / output_frames
        last = len(values) - 1
        out = []
        for position in (j * step for j in range(output_frames)):
            i = int(position)
            frac = position - i
            a = values[i]
            b = values[min(i + 1, last)]
            out.append(_f32(a + (b - a) * frac))
        return out


def _check_bitdepth(bitdepth: int) -> None:
    if bitdepth == OPUS_MODE:
        raise ValueError("Opus compression is not supported")


def _decode_midi_words(bitdepth: int, net_period: int) -> int:
    if bitdepth in (8, 16):
        return net_period // 2
    return net_period


def _encode_midi_words(bitdepth: int, net_period: int) -> int:
    if bitdepth == 8:
        return net_period // 4
    if bitdepth == 16:
        return net_period // 2
    return net_period


def _next_resampler(resamplers: Iterator[LinearResampler]) -> LinearResampler:
    try:
        return next(resamplers)
    except StopIteration:
        raise ValueError("not enough resamplers for the audio ports") from None


def _decode_audio(bitdepth: int, chunk, count: int, resampling: bool, dont_htonl: bool) -> list[float]:
    if bitdepth == 8:
        return [_f32(v / 127.0) for v in struct.unpack(f"{count}b", chunk)]
    if bitdepth == 16:
        divisor = 32767.0 if resampling else 32768.0
        return [_f32(v / divisor - 1.0) for v in struct.unpack(f">{count}H", chunk)]
    order = "=" if dont_htonl and not resampling else ">"
    return list(struct.unpack(f"{order}{count}f", chunk))


def _encode_audio(bitdepth: int, samples: Sequence[float], resampled: bool, dont_htonl: bool) -> bytes:
    count = len(samples)
    if bitdepth == 8:
        values = [max(-128, min(127, int(x * 127.0))) for x in samples]
        return struct.pack(f"{count}b", *values)
    if bitdepth == 16:
        values = [max(0, min(0xFFFF, int((x + 1.0) * 32767.0))) for x in samples]
        return struct.pack(f">{count}H", *values)
    order = "=" if dont_htonl and not resampled else ">"
    return struct.pack(f"{order}{count}f", *samples)


def render_payload_to_ports(
    bitdepth: int,
    payload,
    net_period: int,
    ports: Sequence[Port],
    resamplers: Iterable[LinearResampler] | None,
    nframes: int,
    dont_htonl_floats: bool = False,
) -> None:
    """Fill the ports from a payload of net_period samples per port.

    Audio is resampled to nframes when the periods differ, taking one resampler
    per audio port in order. A payload of None leaves the ports untouched.
    """
    _check_bitdepth(bitdepth)
    if payload is None:
        return
    payload = bytes(payload)
    width = get_sample_size(bitdepth)
    chunk_size = net_period * width
    needed = chunk_size * len(ports)
    if len(payload) < needed:
        raise ValueError(f"payload of {len(payload)} bytes is too short, {needed} needed")
    pending = iter(resamplers or ())
    for offset, port in zip(range(0, needed, chunk_size), ports):
        chunk = payload[offset:offset + chunk_size]
        if is_audio_type(port.port_type):
            resampling = net_period != nframes
            values = _decode_audio(bitdepth, chunk, net_period, resampling, dont_htonl_floats)
            if resampling:
                values = _next_resampler(pending).process(values, nframes)
            port.samples = values
        elif is_midi_type(port.port_type):
            words = min(_decode_midi_words(bitdepth, net_period), (len(payload) - offset) // 4)
            port.events = decode_midi_buffer(payload[offset:], words)


def render_ports_to_payload(
    bitdepth: int,
    ports: Sequence[Port],
    resamplers: Iterable[LinearResampler] | None,
    nframes: int,
    net_period: int,
    dont_htonl_floats: bool = False,
) -> bytes:
    """Build a payload of net_period samples per port from the ports' buffers."""
    _check_bitdepth(bitdepth)
    width = get_sample_size(bitdepth)
    chunk_size = net_period * width
    payload = bytearray(chunk_size * len(ports))
    pending = iter(resamplers or ())
    for offset, port in zip(range(0, len(payload), chunk_size), ports):
        if is_audio_type(port.port_type):
            if len(port.samples) < nframes:
                raise ValueError(f"port holds {len(port.samples)} samples, {nframes} needed")
            samples = port.samples[:nframes]
            resampled = net_period != nframes
            if resampled:
                samples = _next_resampler(pending).process(samples, net_period)
            payload[offset:offset + chunk_size] = _encode_audio(
                bitdepth, samples, resampled, dont_htonl_floats
            )
        elif is_midi_type(port.port_type):
            encoded = encode_midi_buffer(port.events, _encode_midi_words(bitdepth, net_period))
            payload[offset:offset + len(encoded)] = encoded
    return bytes(payload)