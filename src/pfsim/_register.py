from typing import Optional, Union

import numpy as np
import stim

from pfsim._compile import CircuitLike, compile_circuit
from pfsim._ops import Gate, MeasureResetZ, MeasureZ, NoiseOp, NoiseOpAll, NoisyGate, Operation
from pfsim._pauli_frame import PauliFrame


class Register:
    """A noiseless stabilizer state together with classical measurement bits.

    Used to simulate the reference trajectory that Pauli frames are relative to.
    Noise operations are ignored; noisy gates apply only their perfect gate.
    """

    def __init__(self, num_qubits: int, num_bits: int, *, seed: Optional[int] = None):
        if num_qubits < 0 or num_bits < 0:
            raise ValueError(f'{num_qubits=} and {num_bits=} must be non-negative.')
        self.simulator = stim.TableauSimulator(seed=seed)
        self.simulator.set_num_qubits(num_qubits)
        self.num_qubits = num_qubits
        self.bits: np.ndarray = np.zeros(shape=num_bits, dtype=np.bool_)

    def _check_qubit(self, q: int) -> None:
        if not 0 <= q < self.num_qubits:
            raise ValueError(f'Qubit {q} is out of range for a register with {self.num_qubits} qubits.')

    def _check_bit(self, bit: Optional[int]) -> None:
        if bit is not None and not 0 <= bit < len(self.bits):
            raise ValueError(f'Measurement bit {bit} is out of range for a register with {len(self.bits)} bits.')

    def _record(self, bit: Optional[int], result: bool) -> None:
        if bit is not None:
            self.bits[bit] = result

    def apply(self, op: Operation) -> 'Register':
        if isinstance(op, Gate):
            for q in op.targets:
                self._check_qubit(q)
            c = stim.Circuit()
            c.append(op.name, op.targets)
            self.simulator.do(c)
        elif isinstance(op, NoisyGate):
            self.apply(op.gate)
        elif isinstance(op, MeasureZ):
            self._check_qubit(op.qubit)
            self._check_bit(op.bit)
            self._record(op.bit, self.simulator.measure(op.qubit))
        elif isinstance(op, MeasureResetZ):
            self._check_qubit(op.qubit)
            self._check_bit(op.bit)
            self._record(op.bit, self.simulator.measure(op.qubit))
            self.simulator.reset_z(op.qubit)
        elif isinstance(op, (NoiseOp, NoiseOpAll)):
            pass
        else:
            raise NotImplementedError(f'{op=}')
        return self

    def run(self, circuit: CircuitLike) -> 'Register':
        for op in compile_circuit(circuit):
            self.apply(op)
        return self


def pfmeasurements(state: Union[Register, PauliFrame]) -> np.ndarray:
    """Returns the measurement results stored in a register or a set of frames.

    For a `Register` these are the reference outcomes. For a `PauliFrame`
    they are relative to the reference: each entry only says whether the
    reference measurement was flipped in that frame.
    """
    if isinstance(state, Register):
        return state.bits
    if isinstance(state, PauliFrame):
        return state.measurements
    raise NotImplementedError(f'{state=}')


def absolute_measurements(reference: Union[Register, np.ndarray], frame: PauliFrame) -> np.ndarray:
    """Combines reference outcomes with frame flips into actual outcomes.

    Returns:
        A bool array of shape (frames, measurements) holding each frame's
        actual (non-relative) measurement results.
    """
    bits = pfmeasurements(reference) if isinstance(reference, Register) else np.asarray(reference, dtype=np.bool_)
    if bits.shape != (frame.num_measurements,):
        raise ValueError(f'{bits.shape=} does not match the {frame.num_measurements} measurement slots of the frames.')
    return bits[np.newaxis, :] ^ frame.measurements
