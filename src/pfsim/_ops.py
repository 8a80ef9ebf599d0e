import dataclasses
from typing import Iterable, Optional, Union

import numpy as np
import stim

from pfsim._clifford import gate_arity
from pfsim._noise import UnbiasedUncorrelatedNoise, pauli_noise


def _check_index(kind: str, index: int) -> None:
    if index < 0:
        raise ValueError(f'{kind} index {index} is negative.')


@dataclasses.dataclass(frozen=True)
class Gate:
    """A unitary Clifford gate, applied to consecutive groups of targets.

    Attributes:
        name: The stim name of the gate, such as 'H', 'S' or 'CX'. Aliases are
            normalized to stim's canonical name (e.g. 'CNOT' becomes 'CX').
        targets: Qubits the gate acts on. A two qubit gate with targets
            (0, 1, 2, 3) applies to the pair (0, 1) and then to (2, 3).
    """
    name: str
    targets: tuple[int, ...]

    def __post_init__(self):
        data = stim.gate_data(self.name)
        if not data.is_unitary:
            raise ValueError(f'{self.name=} is not a unitary gate.')
        object.__setattr__(self, 'name', data.name)
        object.__setattr__(self, 'targets', tuple(int(t) for t in self.targets))
        if len(self.targets) % gate_arity(self.name):
            raise ValueError(f'{self.name} needs groups of {gate_arity(self.name)} targets, got {self.targets!r}.')
        for t in self.targets:
            _check_index('Qubit', t)

    def affected_qubits(self) -> tuple[int, ...]:
        return self.targets

    def affected_bits(self) -> tuple[int, ...]:
        return ()

    def __str__(self) -> str:
        return f'{self.name} ' + ' '.join(str(t) for t in self.targets)


@dataclasses.dataclass(frozen=True)
class MeasureZ:
    """Z basis measurement that leaves the qubit in place.

    A `bit` of None means the result is not recorded.
    """
    qubit: int
    bit: Optional[int] = None

    def __post_init__(self):
        _check_index('Qubit', self.qubit)
        if self.bit is not None:
            _check_index('Measurement bit', self.bit)

    def affected_qubits(self) -> tuple[int, ...]:
        return (self.qubit,)

    def affected_bits(self) -> tuple[int, ...]:
        return () if self.bit is None else (self.bit,)


@dataclasses.dataclass(frozen=True)
class MeasureResetZ:
    """Z basis measurement followed by a reset into |0>.

    A `bit` of None means the result is not recorded, making this a plain reset.
    """
    qubit: int
    bit: Optional[int] = None

    def __post_init__(self):
        _check_index('Qubit', self.qubit)
        if self.bit is not None:
            _check_index('Measurement bit', self.bit)

    def affected_qubits(self) -> tuple[int, ...]:
        return (self.qubit,)

    def affected_bits(self) -> tuple[int, ...]:
        return () if self.bit is None else (self.bit,)


@dataclasses.dataclass(frozen=True)
class NoiseOp:
    """Applies a noise model to each of the given qubits."""
    noise: UnbiasedUncorrelatedNoise
    indices: tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, 'indices', tuple(int(q) for q in self.indices))
        for q in self.indices:
            _check_index('Qubit', q)

    def affected_qubits(self) -> tuple[int, ...]:
        return self.indices

    def affected_bits(self) -> tuple[int, ...]:
        return ()


@dataclasses.dataclass(frozen=True)
class NoiseOpAll:
    """Applies a noise model to every qubit of the simulated state."""
    noise: UnbiasedUncorrelatedNoise

    def affected_qubits(self) -> tuple[int, ...]:
        return ()

    def affected_bits(self) -> tuple[int, ...]:
        return ()


@dataclasses.dataclass(frozen=True)
class NoisyGate:
    """A perfect gate followed by noise on the qubits the gate touched."""
    gate: Gate
    noise: UnbiasedUncorrelatedNoise

    def affected_qubits(self) -> tuple[int, ...]:
        return self.gate.affected_qubits()

    def affected_bits(self) -> tuple[int, ...]:
        return ()

    def noisy_qubits(self) -> tuple[int, ...]:
        """The distinct affected qubits, in order of first appearance."""
        return tuple(dict.fromkeys(self.gate.affected_qubits()))


Operation = Union[Gate, MeasureZ, MeasureResetZ, NoiseOp, NoiseOpAll, NoisyGate]


def pauli_error(qubits: Union[int, Iterable[int]], p: float) -> NoiseOp:
    """Returns an operation applying unbiased Pauli errors with total probability `p`.

    Each given qubit gets an independent error.
    """
    if isinstance(qubits, (int, np.integer)):
        qubits = [qubits]
    return NoiseOp(pauli_noise(p), tuple(qubits))
