import pytest

from pcmnet.dither import DitherAlgorithm, DitherState, NoiseGenerator, dither_sample
from pcmnet.scaling import float_to_int16

SAMPLES = [i / 50.0 for i in range(-49, 50)]


def test_default_seed_matches_documented_seed():
    a = NoiseGenerator()
    b = NoiseGenerator(22222)
    assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]


def test_next_stays_in_32_bits():
    gen = NoiseGenerator(1)
    values = [gen.next() for _ in range(1000)]
    assert all(0 <= v <= 0xFFFFFFFF for v in values)
    assert len(set(values)) > 900


def test_noise_ranges():
    gen = NoiseGenerator()
    rect = [gen.rectangular() for _ in range(2000)]
    tri = [gen.triangular() for _ in range(2000)]
    assert all(-0.5 <= r <= 0.5 for r in rect)
    assert all(-1.0 <= t <= 1.0 for t in tri)


def test_none_matches_plain_conversion():
    for s in SAMPLES:
        assert dither_sample(s, DitherAlgorithm.NONE) == float_to_int16(s)


def test_rectangular_within_one_step():
    gen = NoiseGenerator()
    for s in SAMPLES:
        assert abs(dither_sample(s, DitherAlgorithm.RECTANGULAR, noise=gen) - float_to_int16(s)) <= 1


def test_triangular_within_two_steps():
    gen = NoiseGenerator()
    for s in SAMPLES:
        assert abs(dither_sample(s, DitherAlgorithm.TRIANGULAR, noise=gen) - float_to_int16(s)) <= 2


def test_dither_clips_at_full_scale():
    gen = NoiseGenerator()
    assert dither_sample(5.0, DitherAlgorithm.TRIANGULAR, noise=gen) == 32767
    assert dither_sample(-5.0, DitherAlgorithm.RECTANGULAR, noise=gen) == -32767


def test_shaped_requires_state_and_noise():
    with pytest.raises(ValueError):
        dither_sample(0.1, DitherAlgorithm.SHAPED, None, NoiseGenerator())
    with pytest.raises(ValueError):
        dither_sample(0.1, DitherAlgorithm.TRIANGULAR, DitherState(), None)


def test_shaped_is_deterministic_and_advances_state():
    state_a, state_b = DitherState(), DitherState()
    gen_a, gen_b = NoiseGenerator(), NoiseGenerator()
    out_a = [dither_sample(s, DitherAlgorithm.SHAPED, state_a, gen_a) for s in SAMPLES]
    out_b = [dither_sample(s, DitherAlgorithm.SHAPED, state_b, gen_b) for s in SAMPLES]
    assert out_a == out_b
    assert state_a.idx == len(SAMPLES) & 7
    assert all(-32767 <= v <= 32767 for v in out_a)


def test_shaped_stays_near_input():
    state, gen = DitherState(), NoiseGenerator()
    for s in SAMPLES:
        assert abs(dither_sample(s, DitherAlgorithm.SHAPED, state, gen) - float_to_int16(s)) <= 40


def test_commit_wraps_and_records_error():
    state = DitherState(idx=7)
    state.commit(10, 9.5)
    assert state.idx == 0
    assert state.e[0] == 0.5


def test_shape_with_zero_history_adds_noise_difference():
    state = DitherState(rm1=0.25)
    xp, xe = state.shape(100.0, 0.5)
    assert xe == 100.0
    assert xp == 100.25
    assert state.rm1 == 0.5
    assert len(state.e) == 8