"""Pauli frame simulation of noisy stabilizer circuits.

A single noiseless reference trajectory is simulated once, and many frames
track only the Pauli operator by which each noisy trajectory differs from it.
"""

from ._frame_store import (
    PackedFrameStore,
    WORD_BITS,
)
from ._clifford import (
    conjugate_frames,
    nested_threads_disabled,
    nested_threads_enabled,
    unsigned_conjugation_table,
)
from ._noise import (
    UnbiasedUncorrelatedNoise,
    apply_noise,
    pauli_noise,
)
from ._ops import (
    Gate,
    MeasureResetZ,
    MeasureZ,
    NoiseOp,
    NoiseOpAll,
    NoisyGate,
    Operation,
    pauli_error,
)
from ._compile import (
    CompiledCircuit,
    compile_circuit,
    operations_from_stim_circuit,
)
from ._dispatch import (
    apply_op,
)
from ._pauli_frame import (
    PauliFrame,
    run_pauli_frames,
)
from ._register import (
    Register,
    absolute_measurements,
    pfmeasurements,
)
from ._trajectories import (
    MIN_BATCH,
    available_threads,
    batch_ranges,
    pftrajectories,
    pftrajectories_with_reference,
)
