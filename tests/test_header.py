import pytest

from pcmnet.header import (
    DEFAULT_AUDIO_TYPE,
    DEFAULT_MIDI_TYPE,
    HEADER_SIZE,
    OPUS_MODE,
    PacketHeader,
    get_sample_size,
    is_audio_type,
    is_midi_type,
)


def _sample_header():
    return PacketHeader(
        capture_channels_audio=2,
        playback_channels_audio=2,
        capture_channels_midi=1,
        playback_channels_midi=1,
        period_size=128,
        sample_rate=48000,
        sync_state=1,
        transport_frame=1000,
        transport_state=3,
        framecnt=77,
        latency=5,
        reply_port=3000,
        mtu=1400,
        fragment_nr=0,
    )


def test_header_is_fourteen_words():
    assert HEADER_SIZE == 14 * 4
    assert len(_sample_header().to_bytes()) == HEADER_SIZE


def test_round_trip():
    header = _sample_header()
    assert PacketHeader.from_bytes(header.to_bytes()) == header


def test_fields_are_big_endian_in_order():
    data = PacketHeader(framecnt=1, fragment_nr=2).to_bytes()
    assert data[36:40] == (1).to_bytes(4, "big")
    assert data[52:56] == (2).to_bytes(4, "big")
    assert data[:36] == bytes(36)


def test_from_bytes_ignores_payload():
    header = _sample_header()
    assert PacketHeader.from_bytes(header.to_bytes() + b"payload") == header


def test_from_bytes_too_short():
    with pytest.raises(ValueError):
        PacketHeader.from_bytes(bytes(HEADER_SIZE - 1))


def test_to_bytes_rejects_out_of_range():
    with pytest.raises(ValueError):
        PacketHeader(framecnt=1 << 32).to_bytes()
    with pytest.raises(ValueError):
        PacketHeader(mtu=-1).to_bytes()


@pytest.mark.parametrize(
    "bitdepth, size",
    [(8, 1), (16, 2), (OPUS_MODE, 1), (24, 4), (32, 4), (0, 4)],
)
def test_get_sample_size(bitdepth, size):
    assert get_sample_size(bitdepth) == size


def test_port_types():
    assert is_audio_type(DEFAULT_AUDIO_TYPE)
    assert not is_audio_type(DEFAULT_MIDI_TYPE)
    assert is_midi_type(DEFAULT_MIDI_TYPE)
    assert not is_midi_type(DEFAULT_AUDIO_TYPE)
    assert not is_audio_type("32 bit float")