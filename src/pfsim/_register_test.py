import numpy as np
import pytest
import stim

from ._noise import UnbiasedUncorrelatedNoise
from ._ops import Gate, MeasureResetZ, MeasureZ, NoiseOp, NoiseOpAll, NoisyGate
from ._pauli_frame import PauliFrame
from ._register import Register, absolute_measurements, pfmeasurements


def test_register_deterministic_circuit():
    r = Register(2, 3, seed=0)
    r.run([
        Gate('X', (0,)),
        Gate('CX', (0, 1)),
        MeasureZ(0, bit=0),
        MeasureResetZ(1, bit=1),
        MeasureZ(1, bit=2),
    ])
    assert list(pfmeasurements(r)) == [True, True, False]


def test_register_ignores_noise():
    n = UnbiasedUncorrelatedNoise(1 / 3)
    r = Register(2, 2, seed=0)
    r.run([
        NoiseOp(n, (0,)),
        NoiseOpAll(n),
        NoisyGate(Gate('X', (1,)), n),
        MeasureZ(0, bit=0),
        MeasureZ(1, bit=1),
    ])
    assert list(r.bits) == [False, True]


def test_register_unrecorded_measurement():
    r = Register(1, 1, seed=0)
    r.run([Gate('X', (0,)), MeasureZ(0), MeasureResetZ(0)])
    assert not r.bits[0]
    r.run([MeasureZ(0, bit=0)])
    assert not r.bits[0]


def test_register_runs_stim_circuit():
    r = Register(2, 2, seed=5)
    r.run(stim.Circuit("""
        H 0
        CX 0 1
        M 0 1
    """))
    assert r.bits[0] == r.bits[1]


def test_register_out_of_range():
    r = Register(2, 1)
    with pytest.raises(ValueError, match='out of range'):
        r.apply(Gate('H', (2,)))
    with pytest.raises(ValueError, match='out of range'):
        r.apply(MeasureZ(0, bit=1))
    with pytest.raises(NotImplementedError):
        r.apply('M 0')


def test_absolute_measurements():
    f = PauliFrame(3, 1, 2, rng=0)
    f.measurements[:] = [[False, False], [True, False], [True, True]]
    reference = np.array([True, False])
    np.testing.assert_array_equal(absolute_measurements(reference, f), [
        [True, False],
        [False, False],
        [False, True],
    ])

    r = Register(1, 2)
    r.bits[:] = reference
    np.testing.assert_array_equal(absolute_measurements(r, f), absolute_measurements(reference, f))

    with pytest.raises(ValueError):
        absolute_measurements(np.array([True]), f)


def test_pfmeasurements():
    f = PauliFrame(3, 1, 2, rng=0)
    assert pfmeasurements(f) is f.measurements
    with pytest.raises(NotImplementedError):
        pfmeasurements('measurements')


def test_out_of_range_bit_leaves_state_unmeasured():
    r = Register(1, 1, seed=0)
    r.apply(Gate('H', (0,)))
    with pytest.raises(ValueError, match='out of range'):
        r.apply(MeasureZ(0, bit=3))
    with pytest.raises(ValueError, match='out of range'):
        r.apply(MeasureResetZ(0, bit=3))
    assert r.simulator.peek_x(0) == 1
