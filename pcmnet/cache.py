"""Reassembly cache for packets that arrive split into fragments."""

from __future__ import annotations

import logging
import socket
import struct
import time
from collections.abc import Iterator

from pcmnet.header import HEADER_SIZE, PacketHeader

__all__ = ["JACK_MAX_FRAMES", "CachePacket", "PacketCache"]

_log = logging.getLogger(__name__)

JACK_MAX_FRAMES = 0xFFFFFFFF
_U32 = 0xFFFFFFFF
_FLOAT32 = struct.Struct("=f")


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def _now_us() -> int:
    return time.monotonic_ns() // 1000


def _fragment_count(packet_size: int, mtu: int) -> int:
    payload = mtu - HEADER_SIZE
    if payload <= 0:
        raise ValueError(f"mtu {mtu} leaves no room after the {HEADER_SIZE}-byte header")
    if packet_size < HEADER_SIZE:
        raise ValueError(f"packet size {packet_size} is smaller than the header")
    if packet_size == HEADER_SIZE:
        return 1
    return (packet_size - HEADER_SIZE - 1) // payload + 1


class CachePacket:
    """One packet slot, collecting the fragments of a single frame count."""

    def __init__(self, packet_size: int, mtu: int) -> None:
        self.num_fragments = _fragment_count(packet_size, mtu)
        self.packet_size = packet_size
        self.mtu = mtu
        self.valid = False
        self.framecnt = 0
        self.recv_timestamp = 0
        self.fragments = [False] * self.num_fragments
        self.buffer = bytearray(packet_size)

    def reset(self) -> None:
        """Mark the slot free and forget which fragments were seen."""
        self.valid = False
        self.fragments = [False] * self.num_fragments

    def set_framecnt(self, framecnt: int) -> None:
        """Claim the slot for a frame count, with no fragments received yet."""
        self.framecnt = framecnt
        self.fragments = [False] * self.num_fragments
        self.valid = True

    def add_fragment(self, data) -> None:
        """Store one received fragment (header included) in the packet buffer.

        Fragment numbers beyond the expected count are ignored.
        """
        data = bytes(data)
        header = PacketHeader.from_bytes(data)
        if header.framecnt != self.framecnt:
            raise ValueError(
                f"fragment for frame {header.framecnt} does not match frame {self.framecnt}"
            )
        nr = header.fragment_nr
        if nr == 0:
            if len(data) > self.packet_size:
                raise ValueError("too long packet received")
            self.buffer[:len(data)] = data
            self.fragments[0] = True
            return
        if nr < self.num_fragments:
            body = data[HEADER_SIZE:]
            start = HEADER_SIZE + nr * (self.mtu - HEADER_SIZE)
            if start + len(body) > self.packet_size:
                raise ValueError("too long packet received")
            self.buffer[start:start + len(body)] = body
            self.fragments[nr] = True

    def is_complete(self) -> bool:
        """True once every fragment has arrived."""
        return all(self.fragments)


class PacketCache:
    """A fixed set of packet slots that reorders and reassembles fragments."""

    def __init__(self, num_packets: int, packet_size: int, mtu: int) -> None:
        if num_packets < 1:
            raise ValueError(f"cache needs at least one packet, got {num_packets}")
        self.packets = [CachePacket(packet_size, mtu) for _ in range(num_packets)]
        self.packet_size = packet_size
        self.mtu = mtu
        self.master_address = None
        self.last_framecnt_retrieved: int | None = None

    def _find(self, framecnt: int) -> CachePacket | None:
        return next((p for p in self.packets if p.valid and p.framecnt == framecnt), None)

    def _complete_packets(self) -> Iterator[CachePacket]:
        return (p for p in self.packets if p.valid and p.is_complete())

    def get_packet(self, framecnt: int) -> CachePacket:
        """Slot for framecnt: the existing one, a free one, or the oldest reused."""
        packet = self._find(framecnt)
        if packet is not None:
            return packet
        packet = self.get_free_packet()
        if packet is None:
            packet = self.get_oldest_packet()
            packet.reset()
        packet.set_framecnt(framecnt)
        return packet

    def get_oldest_packet(self) -> CachePacket:
        """The valid slot with the lowest frame count, or the first slot if none is valid."""
        oldest = self.packets[0]
        minimal = JACK_MAX_FRAMES
        for packet in self.packets:
            if packet.valid and packet.framecnt < minimal:
                minimal = packet.framecnt
                oldest = packet
        return oldest

    def get_free_packet(self) -> CachePacket | None:
        """The first unused slot, or None."""
        return next((p for p in self.packets if not p.valid), None)

    def receive(self, data, sender, timestamp: int | None = None) -> bool:
        """Take one datagram from sender into the cache; True if it was stored.

        The first sender seen becomes the master; datagrams from others and
        fragments of frames already retrieved are dropped.
        """
        if self.master_address is None:
            self.master_address = sender
        elif sender != self.master_address:
            return False
        if len(data) < HEADER_SIZE:
            _log.error("runt packet of %d bytes dropped", len(data))
            return False
        framecnt = PacketHeader.from_bytes(data).framecnt
        last = self.last_framecnt_retrieved
        if last is not None and framecnt <= last:
            return False
        packet = self.get_packet(framecnt)
        stored = True
        try:
            packet.add_fragment(data)
        except ValueError as exc:
            _log.error("%s", exc)
            stored = False
        packet.recv_timestamp = _now_us() if timestamp is None else timestamp
        return stored

    def drain_socket(self, sock: socket.socket) -> None:
        """Read every datagram waiting on sock into the cache without blocking."""
        flags = getattr(socket, "MSG_DONTWAIT", 0)
        if not flags:
            sock.setblocking(False)
        while True:
            try:
                data, sender = sock.recvfrom(self.mtu, flags)
            except OSError:
                return
            self.receive(data, sender)

    def reset_master_address(self) -> None:
        """Forget the master and the last retrieved frame."""
        self.master_address = None
        self.last_framecnt_retrieved = None

    def clear_old_packets(self, framecnt: int) -> None:
        """Free every slot holding a frame older than framecnt."""
        for packet in self.packets:
            if packet.valid and packet.framecnt < framecnt:
                packet.reset()

    def retrieve_packet(self, framecnt: int) -> tuple[bytes, int] | None:
        """The complete packet for framecnt and its receive time, or None."""
        packet = self._find(framecnt)
        if packet is None or not packet.is_complete():
            return None
        self.last_framecnt_retrieved = framecnt
        return bytes(packet.buffer), packet.recv_timestamp

    def release_packet(self, framecnt: int) -> None:
        """Free the complete packet for framecnt and every older one."""
        packet = self._find(framecnt)
        if packet is None or not packet.is_complete():
            raise KeyError(f"no complete packet for frame {framecnt}")
        packet.reset()
        self.clear_old_packets(framecnt)

    def get_fill(self, expected_framecnt: int) -> float:
        """Percentage of slots holding complete packets at or after expected_framecnt."""
        count = sum(1 for p in self._complete_packets() if p.framecnt >= expected_framecnt)
        return _f32(100.0 * _f32(count / len(self.packets)))

    def next_available_framecnt(self, expected_framecnt: int) -> int | None:
        """The nearest complete frame at or after expected_framecnt, or None."""
        best = JACK_MAX_FRAMES // 2 - 1
        found = False
        for packet in self._complete_packets():
            if packet.framecnt < expected_framecnt:
                continue
            offset = packet.framecnt - expected_framecnt
            if offset > best:
                continue
            best = offset
            found = True
            if best == 0:
                break
        return expected_framecnt + best if found else None

    def highest_available_framecnt(self) -> int | None:
        """The highest complete frame count, or None."""
        counts = [p.framecnt for p in self._complete_packets()]
        return max(counts) if counts else None

    def find_latency(self, expected_framecnt: int) -> int | None:
        """Latency estimate from the complete packet furthest from expected_framecnt."""
        best = 0
        found = False
        for packet in self._complete_packets():
            offset = (packet.framecnt - expected_framecnt) & _U32
            if offset < best:
                continue
            best = offset
            found = True
            if best == 0:
                break
        return JACK_MAX_FRAMES - best if found else None