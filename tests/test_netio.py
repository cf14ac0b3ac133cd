import struct
import threading
import time

import socket

import pytest

from pcmnet.header import HEADER_SIZE, PacketHeader
from pcmnet.netio import fragment_packet, poll, poll_deadline, send_fragmented

H = HEADER_SIZE


def now_us():
    return time.monotonic_ns() // 1000


def make_packet(payload_len, framecnt=3, fragment_nr=0):
    body = bytes(i % 251 for i in range(payload_len))
    return PacketHeader(framecnt=framecnt, fragment_nr=fragment_nr).to_bytes() + body


@pytest.fixture
def udp_pair():
    rx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    tx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    rx.bind(("127.0.0.1", 0))
    tx.bind(("127.0.0.1", 0))
    rx.settimeout(2.0)
    yield rx, tx
    rx.close()
    tx.close()


def test_small_packet_single_fragment_with_zero_number():
    packet = make_packet(10, fragment_nr=7)
    result = fragment_packet(packet, H + 40)
    assert len(result) == 1
    assert PacketHeader.from_bytes(result[0]).fragment_nr == 0
    assert result[0][H:] == packet[H:]
    assert result[0][:H - 4] == packet[:H - 4]


@pytest.mark.parametrize("payload_len", [41, 80, 100, 200])
def test_fragments_reassemble(payload_len):
    packet = make_packet(payload_len)
    mtu = H + 40
    result = fragment_packet(packet, mtu)
    assert all(len(f) <= mtu for f in result)
    headers = [PacketHeader.from_bytes(f) for f in result]
    assert [h.fragment_nr for h in headers] == list(range(len(result)))
    assert all(h.framecnt == 3 for h in headers)
    assert b"".join(f[H:] for f in result) == packet[H:]


def test_fragment_count_matches_payload_split():
    result = fragment_packet(make_packet(80), H + 40)
    assert [len(f) - H for f in result] == [40, 40]


def test_fragment_errors():
    with pytest.raises(ValueError):
        fragment_packet(b"\x00" * (H - 1), H + 40)
    with pytest.raises(ValueError):
        fragment_packet(make_packet(10), H)


def test_send_fragmented(udp_pair):
    rx, tx = udp_pair
    packet = make_packet(100)
    mtu = H + 40
    send_fragmented(tx, packet, rx.getsockname(), mtu)
    received = [rx.recvfrom(4096)[0] for _ in fragment_packet(packet, mtu)]
    assert sorted(received) == sorted(fragment_packet(packet, mtu))


def test_poll_deadline_past(udp_pair):
    rx, _ = udp_pair
    assert poll_deadline(rx, now_us() - 1) is False


def test_poll_deadline_readable(udp_pair):
    rx, tx = udp_pair
    tx.sendto(b"x", rx.getsockname())
    assert poll_deadline(rx, now_us() + 900_000) is True


def test_poll_deadline_times_out(udp_pair):
    rx, _ = udp_pair
    start = time.monotonic()
    assert poll_deadline(rx, now_us() + 50_000) is False
    assert time.monotonic() - start < 0.5


def test_poll_deadline_far_future_is_trimmed(udp_pair):
    rx, _ = udp_pair
    start = time.monotonic()
    assert poll_deadline(rx, now_us() + 10_000_000) is False
    assert time.monotonic() - start < 2.0


def test_poll_returns_when_data_arrives(udp_pair):
    rx, tx = udp_pair
    target = rx.getsockname()
    sender = threading.Timer(0.2, lambda: tx.sendto(b"late", target))
    sender.start()
    try:
        assert poll(rx, 50) is True
    finally:
        sender.join()
    assert rx.recvfrom(16)[0] == b"late"


def test_poll_immediate(udp_pair):
    rx, tx = udp_pair
    tx.sendto(struct.pack(">I", 1), rx.getsockname())
    assert poll(rx, -1) is True