import pytest
import stim

from ._compile import CompiledCircuit, compile_circuit, operations_from_stim_circuit
from ._noise import UnbiasedUncorrelatedNoise, pauli_noise
from ._ops import Gate, MeasureResetZ, MeasureZ, NoiseOp, NoiseOpAll, NoisyGate


def test_operations_from_stim_circuit():
    ops = operations_from_stim_circuit(stim.Circuit("""
        QUBIT_COORDS(0, 0) 0
        R 0 1
        H 0
        TICK
        CX 0 1
        DEPOLARIZE1(0.03) 0 1
        M 0 1
        MR 1
        DETECTOR rec[-1] rec[-2]
        OBSERVABLE_INCLUDE(0) rec[-3]
    """))
    assert ops == [
        MeasureResetZ(0),
        MeasureResetZ(1),
        Gate('H', (0,)),
        Gate('CX', (0, 1)),
        NoiseOp(pauli_noise(0.03), (0, 1)),
        MeasureZ(0, bit=0),
        MeasureZ(1, bit=1),
        MeasureResetZ(1, bit=2),
    ]


def test_operations_from_stim_circuit_unrolls_loops():
    ops = operations_from_stim_circuit(stim.Circuit("""
        REPEAT 3 {
            H 0
            MR 0
        }
    """))
    assert ops == [
        Gate('H', (0,)), MeasureResetZ(0, bit=0),
        Gate('H', (0,)), MeasureResetZ(0, bit=1),
        Gate('H', (0,)), MeasureResetZ(0, bit=2),
    ]


@pytest.mark.parametrize('line', [
    'MX 0',
    'M(0.1) 0',
    'M !0',
    'CX rec[-1] 0',
    'X_ERROR(0.1) 0',
    'MPP X0*X1',
])
def test_unsupported_stim_instructions(line: str):
    c = stim.Circuit('M 0\n' + line)
    with pytest.raises(NotImplementedError):
        operations_from_stim_circuit(c)


def test_compile_stim_circuit_sizes():
    c = compile_circuit(stim.Circuit("""
        H 0
        CX 0 5
        M 5 0
    """))
    assert c.num_qubits == 6
    assert c.num_measurements == 2
    assert len(c) == 4

    c = compile_circuit(stim.Circuit("""
        H 2
    """))
    assert c.num_qubits == 3
    assert c.num_measurements == 1


def test_compile_operation_sizes():
    n = UnbiasedUncorrelatedNoise(0.01)
    c = compile_circuit([
        NoisyGate(Gate('CX', (0, 7)), n),
        MeasureZ(2),
        MeasureResetZ(1, bit=4),
        NoiseOpAll(n),
    ])
    assert c.num_qubits == 8
    assert c.num_measurements == 5

    assert compile_circuit([]) == CompiledCircuit(operations=(), num_qubits=0, num_measurements=1)


def test_compile_merges_consecutive_gates():
    c = compile_circuit([
        Gate('H', (0,)),
        Gate('H', (1,)),
        Gate('CX', (0, 1)),
        Gate('CNOT', (1, 2)),
        MeasureZ(2, bit=0),
        Gate('H', (0,)),
    ])
    assert c.operations == (
        Gate('H', (0, 1)),
        Gate('CX', (0, 1, 1, 2)),
        MeasureZ(2, bit=0),
        Gate('H', (0,)),
    )


def test_compile_is_idempotent():
    c = compile_circuit(stim.Circuit('H 0\nM 0'))
    assert compile_circuit(c) is c
    assert list(c) == [Gate('H', (0,)), MeasureZ(0, bit=0)]
