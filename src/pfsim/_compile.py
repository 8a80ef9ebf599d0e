import dataclasses
from typing import Iterable, Union

import stim

from pfsim._noise import pauli_noise
from pfsim._ops import Gate, MeasureResetZ, MeasureZ, NoiseOp, Operation

_ANNOTATIONS = {
    'DETECTOR',
    'OBSERVABLE_INCLUDE',
    'QUBIT_COORDS',
    'SHIFT_COORDS',
    'TICK',
}


@dataclasses.dataclass(frozen=True)
class CompiledCircuit:
    """An operation sequence prepared for repeated application to frames.

    Attributes:
        operations: The operations, in program order.
        num_qubits: One more than the largest qubit index used.
        num_measurements: One more than the largest measurement bit used, and
            at least 1.
    """
    operations: tuple[Operation, ...]
    num_qubits: int
    num_measurements: int

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)


CircuitLike = Union[CompiledCircuit, stim.Circuit, Iterable[Operation]]


def compile_circuit(circuit: CircuitLike) -> CompiledCircuit:
    """Compacts a circuit into a `CompiledCircuit`.

    Compiled circuits are returned as is. Sequences of operations have runs of
    consecutive same-named gates merged into single batched gates. Stim
    circuits are flattened and translated into operations.
    """
    if isinstance(circuit, CompiledCircuit):
        return circuit
    if isinstance(circuit, stim.Circuit):
        operations = operations_from_stim_circuit(circuit)
        min_qubits = circuit.num_qubits
    else:
        operations = list(circuit)
        min_qubits = 0
    operations = _merge_gate_runs(operations)
    num_qubits = max(
        (q + 1 for op in operations for q in op.affected_qubits()),
        default=0,
    )
    num_measurements = max(
        (b + 1 for op in operations for b in op.affected_bits()),
        default=1,
    )
    return CompiledCircuit(
        operations=tuple(operations),
        num_qubits=max(num_qubits, min_qubits),
        num_measurements=num_measurements,
    )


def _merge_gate_runs(operations: list[Operation]) -> list[Operation]:
    result: list[Operation] = []
    for op in operations:
        prev = result[-1] if result else None
        if isinstance(op, Gate) and isinstance(prev, Gate) and prev.name == op.name:
            result[-1] = Gate(op.name, prev.targets + op.targets)
        else:
            result.append(op)
    return result


def _qubit_targets(inst: stim.CircuitInstruction) -> list[int]:
    result = []
    for t in inst.targets_copy():
        if not t.is_qubit_target or t.is_inverted_result_target:
            raise NotImplementedError(f'{inst=}')
        result.append(t.value)
    return result


def operations_from_stim_circuit(circuit: stim.Circuit) -> list[Operation]:
    """Translates a stim circuit into operations.

    Measurement bits are assigned in the order stim records measurements.
    """
    result: list[Operation] = []
    num_m = 0
    for inst in circuit.flattened():
        if inst.name in _ANNOTATIONS:
            continue
        if inst.name in ['M', 'MR'] and any(inst.gate_args_copy()):
            raise NotImplementedError(f'{inst=}')
        if inst.name == 'M':
            for q in _qubit_targets(inst):
                result.append(MeasureZ(q, bit=num_m))
                num_m += 1
        elif inst.name == 'MR':
            for q in _qubit_targets(inst):
                result.append(MeasureResetZ(q, bit=num_m))
                num_m += 1
        elif inst.name == 'R':
            for q in _qubit_targets(inst):
                result.append(MeasureResetZ(q))
        elif inst.name == 'DEPOLARIZE1':
            (p,) = inst.gate_args_copy()
            result.append(NoiseOp(pauli_noise(p), tuple(_qubit_targets(inst))))
        elif stim.gate_data(inst.name).is_unitary:
            result.append(Gate(inst.name, tuple(_qubit_targets(inst))))
        else:
            raise NotImplementedError(f'{inst=}')
    return result
