import dataclasses
from typing import Iterable, Union

import numpy as np

from pfsim._frame_store import PackedFrameStore


@dataclasses.dataclass(frozen=True)
class UnbiasedUncorrelatedNoise:
    """Depolarizing noise with total error probability `3 * errprobthird`.

    X, Z and Y errors each occur with probability `errprobthird`, independently
    for every qubit the noise is applied to.
    """
    errprobthird: float


def pauli_noise(p: float) -> UnbiasedUncorrelatedNoise:
    """Returns unbiased Pauli noise with total error probability `p`."""
    return UnbiasedUncorrelatedNoise(p / 3)


def apply_noise(
        store: PackedFrameStore,
        noise: UnbiasedUncorrelatedNoise,
        qubits: Union[int, Iterable[int]],
        rng: np.random.Generator,
) -> None:
    """Applies a noise channel to qubits, independently in every frame.

    Args:
        store: The frames to inject errors into.
        noise: The noise channel.
        qubits: A qubit index, or indices to apply the channel to one after
            another. A repeated index gets the channel applied again.
        rng: Source of randomness. Every qubit consumes fresh draws.
    """
    if isinstance(qubits, (int, np.integer)):
        qubits = [qubits]
    qubits = [int(q) for q in qubits]
    for q in qubits:
        store.check_qubit(q)
    if isinstance(noise, UnbiasedUncorrelatedNoise):
        for q in qubits:
            _apply_unbiased_uncorrelated(store, noise, q, rng)
    else:
        raise NotImplementedError(f'{noise=}')


def _apply_unbiased_uncorrelated(
        store: PackedFrameStore,
        noise: UnbiasedUncorrelatedNoise,
        qubit: int,
        rng: np.random.Generator,
) -> None:
    p = noise.errprobthird
    r = rng.random(store.num_frames)
    is_x = r < p
    is_z = (r >= p) & (r < 2 * p)
    is_y = (r >= 2 * p) & (r < 3 * p)
    store.flip_x(qubit, is_x | is_y)
    store.flip_z(qubit, is_z | is_y)
