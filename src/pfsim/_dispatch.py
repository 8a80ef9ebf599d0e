from typing import Callable, TYPE_CHECKING

import numpy as np

from pfsim._clifford import conjugate_frames
from pfsim._noise import apply_noise
from pfsim._ops import Gate, MeasureResetZ, MeasureZ, NoiseOp, NoiseOpAll, NoisyGate, Operation

if TYPE_CHECKING:
    from pfsim._pauli_frame import PauliFrame


def _apply_gate(frame: 'PauliFrame', op: Gate) -> 'PauliFrame':
    conjugate_frames(frame.store, op.name, op.targets)
    return frame


def _record_flips(frame: 'PauliFrame', qubit: int, bit: int | None) -> None:
    # An X component in the difference anticommutes with Z, flipping the result.
    if bit is None:
        return
    if not 0 <= bit < frame.num_measurements:
        raise ValueError(f'Measurement bit {bit} is out of range for {frame.num_measurements} measurement slots.')
    frame.measurements[:, bit] = frame.store.x_bits(qubit)


def _apply_measure(frame: 'PauliFrame', op: MeasureZ) -> 'PauliFrame':
    frame.store.check_qubit(op.qubit)
    _record_flips(frame, op.qubit, op.bit)
    return frame


def _apply_measure_reset(frame: 'PauliFrame', op: MeasureResetZ) -> 'PauliFrame':
    frame.store.check_qubit(op.qubit)
    _record_flips(frame, op.qubit, op.bit)
    frame.store.clear_x(op.qubit)
    coins = frame.rng.integers(0, 2, size=len(frame), dtype=np.uint64)
    frame.store.flip_z(op.qubit, coins)
    return frame


def _apply_noise_op(frame: 'PauliFrame', op: NoiseOp) -> 'PauliFrame':
    apply_noise(frame.store, op.noise, op.indices, frame.rng)
    return frame


def _apply_noise_all(frame: 'PauliFrame', op: NoiseOpAll) -> 'PauliFrame':
    apply_noise(frame.store, op.noise, range(frame.num_qubits), frame.rng)
    return frame


def _apply_noisy_gate(frame: 'PauliFrame', op: NoisyGate) -> 'PauliFrame':
    _apply_gate(frame, op.gate)
    apply_noise(frame.store, op.noise, op.noisy_qubits(), frame.rng)
    return frame


_RULES: dict[type, Callable[['PauliFrame', Operation], 'PauliFrame']] = {
    Gate: _apply_gate,
    MeasureZ: _apply_measure,
    MeasureResetZ: _apply_measure_reset,
    NoiseOp: _apply_noise_op,
    NoiseOpAll: _apply_noise_all,
    NoisyGate: _apply_noisy_gate,
}


def apply_op(frame: 'PauliFrame', op: Operation) -> 'PauliFrame':
    """Applies one operation to every frame of the ensemble, in place.

    Returns:
        The given frame.
    """
    rule = _RULES.get(type(op))
    if rule is None:
        raise NotImplementedError(f'{op=}')
    return rule(frame, op)
