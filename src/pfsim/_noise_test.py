import numpy as np
import pytest

from ._frame_store import PackedFrameStore
from ._noise import UnbiasedUncorrelatedNoise, apply_noise, pauli_noise


def test_pauli_noise():
    assert pauli_noise(0.3) == UnbiasedUncorrelatedNoise(0.3 / 3)
    assert pauli_noise(0) == UnbiasedUncorrelatedNoise(0)


def test_noise_is_immutable():
    n = UnbiasedUncorrelatedNoise(0.1)
    with pytest.raises(AttributeError):
        n.errprobthird = 0.2


@pytest.mark.parametrize('p', [0.03, 0.1, 0.25, 1 / 3])
def test_channel_distribution(p: float):
    n = 100_000
    s = PackedFrameStore.zeros(n, 3)
    apply_noise(s, UnbiasedUncorrelatedNoise(p), 1, np.random.default_rng(11))
    x = s.x_bits(1)
    z = s.z_bits(1)
    tolerance = 5 * np.sqrt(p * (1 - p) / n) + 1e-9
    assert abs(np.mean(x & ~z) - p) < tolerance
    assert abs(np.mean(~x & z) - p) < tolerance
    assert abs(np.mean(x & z) - p) < tolerance
    assert abs(np.mean(~x & ~z) - (1 - 3 * p)) < 5 * np.sqrt(3 * p * (1 - 3 * p) / n) + 1e-9

    # Untargeted qubits are untouched.
    for q in [0, 2]:
        assert not np.any(s.x_bits(q))
        assert not np.any(s.z_bits(q))


def test_zero_probability_does_nothing():
    s = PackedFrameStore.zeros(1000, 2)
    apply_noise(s, UnbiasedUncorrelatedNoise(0), [0, 1], np.random.default_rng(0))
    assert not np.any(s.xzs)


def test_channel_is_xored_into_existing_errors():
    s = PackedFrameStore.zeros(1000, 1)
    s.flip_x(0, np.ones(1000, dtype=np.bool_))
    apply_noise(s, UnbiasedUncorrelatedNoise(1 / 3), 0, np.random.default_rng(2))
    x = s.x_bits(0)
    z = s.z_bits(0)
    # X errors cancel the existing X, Z errors make Y, Y errors make Z.
    assert not np.any(x & ~z)
    assert 0.28 < np.mean(~x & ~z) < 0.39


def test_qubits_are_independent():
    n = 20_000
    s = PackedFrameStore.zeros(n, 2)
    apply_noise(s, pauli_noise(0.5), [0, 1], np.random.default_rng(7))
    a = s.x_bits(0)
    b = s.x_bits(1)
    # Each has an X component with probability 1/3.
    assert abs(np.mean(a) - 1 / 3) < 0.02
    assert abs(np.mean(b) - 1 / 3) < 0.02
    assert abs(np.mean(a & b) - 1 / 9) < 0.02
    assert not np.array_equal(a, b)


def test_repeated_index_applies_twice():
    n = 20_000
    s = PackedFrameStore.zeros(n, 1)
    apply_noise(s, UnbiasedUncorrelatedNoise(1 / 3), [0, 0], np.random.default_rng(9))
    # Two uniform non-identity Paulis cancel when they are equal.
    assert abs(np.mean(~s.x_bits(0) & ~s.z_bits(0)) - 1 / 3) < 0.02


def test_out_of_range_qubit():
    s = PackedFrameStore.zeros(10, 2)
    with pytest.raises(ValueError, match='out of range'):
        apply_noise(s, pauli_noise(0.1), [0, 2], np.random.default_rng())


def test_unknown_noise():
    s = PackedFrameStore.zeros(10, 2)
    with pytest.raises(NotImplementedError):
        apply_noise(s, 'DEPOLARIZE1', 0, np.random.default_rng())


def test_bad_qubit_rejected_before_any_noise():
    s = PackedFrameStore.zeros(500, 2)
    rng = np.random.default_rng(3)
    with pytest.raises(ValueError):
        apply_noise(s, UnbiasedUncorrelatedNoise(1 / 3), [0, 1, 2], rng)
    assert s == PackedFrameStore.zeros(500, 2)
    assert rng.random() == np.random.default_rng(3).random()
