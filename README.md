# pcmnet

A pure-Python library for converting audio samples between normalised floats
and integer PCM byte layouts, and for carrying audio and MIDI over UDP in
packets that are split into MTU-sized fragments and put back together on the
receiving side. It has no dependencies beyond the standard library.

## Modules

### `pcmnet.scaling`

Clipping and rounding of single samples.

- `float_to_int16`, `float_to_int24`, `float_to_int32` turn a normalised
  sample (-1.0 .. 1.0) into an integer. The limits are symmetric
  (±32767, ±8388607, ±2147483647); values at or beyond ±1.0 are clipped.
- `scaled_to_int16`, `scaled_to_int24` clip and round a value that has
  already been scaled to the integer range.
- `lrint` rounds to the nearest integer, ties to even, and raises
  `ValueError` for NaN or infinity.

Arithmetic is carried out at single precision, as for 32-bit float samples.

### `pcmnet.dither`

Dithering when reducing to 16 bits.

- `DitherAlgorithm`: `NONE`, `RECTANGULAR`, `TRIANGULAR`, `SHAPED`.
- `NoiseGenerator(seed=22222)`: a linear congruential noise source with
  `next()`, `rectangular()` (noise in -0.5 .. 0.5) and `triangular()`
  (noise in -1.0 .. 1.0).
- `DitherState`: error history for noise-shaped dither, with `shape(x, noise)`
  and `commit(quantized, xe)`.
- `dither_sample(sample, algorithm, state=None, noise=None)` returns one
  16-bit integer. Every algorithm but `NONE` needs a `NoiseGenerator`;
  `SHAPED` also needs a `DitherState`. Missing ones raise `ValueError`.

### `pcmnet.encode` and `pcmnet.decode`

- `SampleFormat`: `FLOAT`, `INT32`, `INT32_U24` (24 bits in the upper three
  bytes), `INT32_L24` (24 bits in the lower three bytes), `INT24`, `INT16`;
  `width()` gives the bytes per sample.
- `encode_sample(value, fmt, byteswap=False)` and
  `encode_samples(samples, fmt, byteswap=False, stride=None)` return bytes.
  `byteswap=True` writes the opposite of the host byte order; `stride` spaces
  samples that many bytes apart (zero-filled in between).
- `encode_into(buffer, offset, samples, fmt, byteswap=False, stride=None)`
  writes into an existing writable buffer, leaving the bytes between samples
  untouched.
- `encode_dithered_int16(samples, algorithm, state=None, noise=None,
  byteswap=False, stride=None)` encodes 16-bit samples with dither; without a
  `noise` argument a generator shared by the module is used.
- `decode_sample(data, fmt, byteswap=False)` and
  `decode_samples(data, fmt, count=None, byteswap=False, stride=None)` read
  samples back as floats; `count=None` decodes as many as fit.

Too-small strides, buffers or data raise `ValueError`.

### `pcmnet.interleave`

- `fill_interleaved(buffer, value, nbytes, unit_bytes, skip_bytes, offset=0)`
  writes a byte value into every unit of an interleaved channel.
- `copy_interleaved(dst, src, width, src_bytes, dst_skip, src_skip)` copies
  2-, 3- or 4-byte samples between interleaved buffers.
- `copy_plain(dst, src, src_bytes)` copies a leading run of bytes.
- `mix_into(dst, src)` adds `src` samples onto `dst` in place.

### `pcmnet.header`

- `PacketHeader`: a dataclass of fourteen 32-bit unsigned fields
  (channel counts, `period_size`, `sample_rate`, transport state, `framecnt`,
  `latency`, `reply_port`, `mtu`, `fragment_nr`). `to_bytes()` packs it in
  network byte order (`HEADER_SIZE` bytes); `PacketHeader.from_bytes(data)`
  reads it from the start of a packet.
- `get_sample_size(bitdepth)`: bytes per sample on the wire (1 for 8 and
  `OPUS_MODE`, 2 for 16, 4 otherwise).
- `is_audio_type(port_type)`, `is_midi_type(port_type)` compare against
  `DEFAULT_AUDIO_TYPE` and `DEFAULT_MIDI_TYPE`.

### `pcmnet.midi`

- `MidiEvent(time, data)`.
- `encode_midi_buffer(events, size_words)` packs events into a buffer of
  big-endian 32-bit words, dropping (and logging) events that do not fit, and
  ends the list with a zero word.
- `decode_midi_buffer(data, size_words)` returns the list of events.

### `pcmnet.cache`

- `PacketCache(num_packets, packet_size, mtu)` keeps a fixed number of
  `CachePacket` slots and reassembles fragments by frame count.
  `receive(data, sender, timestamp=None)` stores one datagram; the first
  sender becomes the master and datagrams from others are dropped, as are
  fragments of frames at or before the last retrieved one.
  `drain_socket(sock)` reads every waiting datagram without blocking.
- `retrieve_packet(framecnt)` returns `(packet_bytes, timestamp)` for a
  complete packet, or `None`. `release_packet(framecnt)` frees it and all
  older slots, raising `KeyError` if there is no complete packet.
- `get_fill`, `next_available_framecnt`, `highest_available_framecnt`,
  `find_latency`, `clear_old_packets` and `reset_master_address` inspect and
  manage the cache. Timestamps are microseconds of the monotonic clock.

### `pcmnet.netio`

- `fragment_packet(packet, mtu)` splits a packet (header included) into
  datagrams of at most `mtu` bytes, each carrying the header with its
  `fragment_nr` set.
- `send_fragmented(sock, packet, addr, mtu, flags=0)` sends those datagrams.
- `poll_deadline(sock, deadline)` waits for the socket to become readable
  until a deadline in monotonic microseconds (deadlines a second or more
  away are trimmed to half a second) and returns whether it did.
- `poll(sock, timeout)` waits until the socket is readable, retrying every
  `timeout` milliseconds; a negative timeout waits without limit.

### `pcmnet.render`

- `Port(port_type, samples=[], events=[])` holds a port's audio samples or
  MIDI events.
- `render_ports_to_payload(bitdepth, ports, resamplers, nframes, net_period,
  dont_htonl_floats=False)` builds a payload of `net_period` samples per port
  at 8 bits, 16 bits or 32-bit float (any other bit depth but `OPUS_MODE`).
- `render_payload_to_ports(bitdepth, payload, net_period, ports, resamplers,
  nframes, dont_htonl_floats=False)` fills the ports from such a payload; a
  payload of `None` leaves them untouched.
- When `net_period` and `nframes` differ, audio is resampled with one
  `LinearResampler` per audio port, taken in order from `resamplers`.

## Examples

```python
from pcmnet.encode import SampleFormat, encode_samples
from pcmnet.decode import decode_samples

data = encode_samples([0.0, 0.5, -0.5], SampleFormat.INT16)
print(decode_samples(data, SampleFormat.INT16, 3))
```

```python
from pcmnet.dither import DitherAlgorithm, NoiseGenerator, dither_sample

value = dither_sample(0.25, DitherAlgorithm.TRIANGULAR, noise=NoiseGenerator())
```

```python
from pcmnet.cache import PacketCache
from pcmnet.header import PacketHeader
from pcmnet.netio import fragment_packet

header = PacketHeader(period_size=256, sample_rate=48000, framecnt=1, mtu=1400)
packet = header.to_bytes() + bytes(4000)
fragments = fragment_packet(packet, 1400)

cache = PacketCache(4, len(packet), 1400)
for fragment in fragments:
    cache.receive(fragment, ("127.0.0.1", 5000))
data, timestamp = cache.retrieve_packet(1)
```

```python
from pcmnet.header import DEFAULT_AUDIO_TYPE
from pcmnet.render import Port, render_payload_to_ports, render_ports_to_payload

out = Port(DEFAULT_AUDIO_TYPE, samples=[0.0, 0.25, -0.25, 0.5])
payload = render_ports_to_payload(32, [out], None, nframes=4, net_period=4)

into = Port(DEFAULT_AUDIO_TYPE)
render_payload_to_ports(32, payload, 4, [into], None, nframes=4)
```

## What it does not do

- There is no Opus compression: both render functions raise `ValueError`
  for `OPUS_MODE`.
- Resampling is plain linear interpolation, not a band-limited converter.
- Dither is applied only for 16-bit output.
- It is a library only: it has no command-line tool, no audio server or
  driver, and does not open sound devices.

## Installation

```
pip install .
```

## Running the tests

```
pip install .[test]
pytest
```