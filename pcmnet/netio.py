"""Fragmented sending and deadline-bounded waiting on datagram sockets."""

from __future__ import annotations

import logging
import select
import socket
import struct
import time

from pcmnet.header import HEADER_SIZE

__all__ = ["fragment_packet", "send_fragmented", "poll_deadline", "poll"]

_log = logging.getLogger(__name__)

_FRAGMENT_NR = struct.Struct(">I")
_FRAGMENT_NR_OFFSET = HEADER_SIZE - _FRAGMENT_NR.size
_MAX_WAIT_US = 1_000_000
_TRIMMED_WAIT_US = 500_000


def _now_us() -> int:
    return time.monotonic_ns() // 1000


def _with_fragment_nr(header: bytes, nr: int) -> bytes:
    return header[:_FRAGMENT_NR_OFFSET] + _FRAGMENT_NR.pack(nr) + header[HEADER_SIZE:]


def fragment_packet(packet, mtu: int) -> list[bytes]:
    """Split a packet into datagrams of at most mtu bytes, each with the header.

    Every datagram carries its fragment number in the header.
    """
    packet = bytes(packet)
    if len(packet) < HEADER_SIZE:
        raise ValueError(f"packet of {len(packet)} bytes is shorter than the header")
    if mtu <= HEADER_SIZE:
        raise ValueError(f"mtu {mtu} leaves no room after the {HEADER_SIZE}-byte header")
    if len(packet) <= mtu:
        return [_with_fragment_nr(packet, 0)]
    payload = mtu - HEADER_SIZE
    header = packet[:HEADER_SIZE]
    starts = range(HEADER_SIZE, len(packet) - payload, payload)
    result = [
        _with_fragment_nr(header, nr) + packet[start:start + payload]
        for nr, start in enumerate(starts)
    ]
    last = HEADER_SIZE + len(starts) * payload
    result.append(_with_fragment_nr(header, len(starts)) + packet[last:])
    return result


def send_fragmented(sock: socket.socket, packet, addr, mtu: int, flags: int = 0) -> None:
    """Send a packet to addr, split into datagrams no larger than mtu."""
    for fragment in fragment_packet(packet, mtu):
        sock.sendto(fragment, flags, addr)


def poll_deadline(sock: socket.socket, deadline: int) -> bool:
    """Wait until sock is readable or the monotonic deadline (microseconds) passes.

    Deadlines more than a second away are trimmed to half a second.
    """
    now = _now_us()
    if now >= deadline:
        return False
    if deadline - now >= _MAX_WAIT_US:
        _log.error("deadline more than 1 second in the future, trimming it.")
        deadline = now + _TRIMMED_WAIT_US
    timeout_ms = round((deadline - now) / 1000.0)
    readable, _, _ = select.select([sock], [], [], timeout_ms / 1000.0)
    return bool(readable)


def poll(sock: socket.socket, timeout: int) -> bool:
    """Wait until sock is readable, retrying every timeout milliseconds.

    A negative timeout waits without a time limit.
    """
    wait = None if timeout < 0 else timeout / 1000.0
    while True:
        readable, _, _ = select.select([sock], [], [], wait)
        if readable:
            return True