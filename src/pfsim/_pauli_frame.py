from typing import Union

import numpy as np
import stim

from pfsim._compile import CircuitLike, compile_circuit
from pfsim._dispatch import apply_op
from pfsim._frame_store import PackedFrameStore

RngLike = Union[np.random.Generator, np.random.SeedSequence, int, None]


class PauliFrame:
    """Many Pauli frames simulated in parallel against one reference trajectory.

    Each frame is the Pauli operator by which a noisy trajectory differs from
    the noiseless reference trajectory. It conjugates like a stabilizer under
    Clifford gates, but phases are irrelevant and are not tracked.

    `measurements[f, b]` is True when frame `f` saw measurement `b` flipped
    relative to the reference trajectory.
    """

    def __init__(
            self,
            num_frames: int,
            num_qubits: int,
            num_measurements: int,
            *,
            rng: RngLike = None):
        """Allocates frames and randomizes their Z components.

        Args:
            num_frames: Number of trajectories to track.
            num_qubits: Number of qubits in each frame.
            num_measurements: Number of measurement results to reserve space for.
            rng: Randomness source, or a seed for one.
        """
        if num_measurements < 0:
            raise ValueError(f'{num_measurements=} must be non-negative.')
        self.store = PackedFrameStore.zeros(num_frames, num_qubits)
        self.measurements: np.ndarray = np.zeros(shape=(num_frames, num_measurements), dtype=np.bool_)
        self.rng: np.random.Generator = np.random.default_rng(rng)
        self.init_z()

    @staticmethod
    def from_parts(
            store: PackedFrameStore,
            measurements: np.ndarray,
            rng: np.random.Generator) -> 'PauliFrame':
        """Wraps existing storage without copying or randomizing it."""
        assert measurements.shape[0] == store.num_frames
        result = PauliFrame.__new__(PauliFrame)
        result.store = store
        result.measurements = measurements
        result.rng = rng
        return result

    def init_z(self) -> 'PauliFrame':
        """Sets the Z component of every qubit in every frame to a fair coin flip.

        This captures the phase ambiguity of the initial state, and is required
        for correctly simulating any non-deterministic circuit. The constructor
        does it automatically.
        """
        self.store.randomize_z(self.rng)
        return self

    @property
    def num_qubits(self) -> int:
        return self.store.num_qubits

    @property
    def num_measurements(self) -> int:
        return self.measurements.shape[1]

    def __len__(self) -> int:
        return self.store.num_frames

    def view(self, frames: slice, *, rng: RngLike = None) -> 'PauliFrame':
        """Returns an ensemble aliasing a contiguous range of this ensemble's frames.

        The view shares frame and measurement storage with this ensemble and
        must not outlive it. It gets its own randomness source (spawned from
        this ensemble's unless one is given), so views can run on separate
        threads.
        """
        store = self.store.view(frames)
        start, stop, _ = frames.indices(len(self))
        child_rng = self.rng.spawn(1)[0] if rng is None else np.random.default_rng(rng)
        return PauliFrame.from_parts(store, self.measurements[start:stop, :], child_rng)

    def copy(self) -> 'PauliFrame':
        return PauliFrame.from_parts(
            self.store.copy(),
            np.copy(self.measurements),
            self.rng.spawn(1)[0],
        )

    def run(self, circuit: CircuitLike) -> 'PauliFrame':
        """Applies every operation of the circuit to every frame, in order."""
        for op in compile_circuit(circuit):
            apply_op(self, op)
        return self

    def measurement_result(self, frame: int, bit: int) -> bool:
        """Whether the given frame saw the given measurement flipped."""
        return bool(self.measurements[frame, bit])

    def pauli_string(self, frame: int) -> stim.PauliString:
        return self.store.pauli_string(frame)

    def __repr__(self) -> str:
        return (f'pfsim.PauliFrame(num_frames={len(self)}, '
                f'num_qubits={self.num_qubits}, '
                f'num_measurements={self.num_measurements})')


def run_pauli_frames(frame: PauliFrame, circuit: CircuitLike) -> PauliFrame:
    """Evolves each frame of the ensemble through the circuit."""
    return frame.run(circuit)
