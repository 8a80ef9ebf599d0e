import concurrent.futures
import contextlib
import functools
import os
import threading
from typing import Iterator, Sequence

import numpy as np
import stim
import threadpoolctl

from pfsim._frame_store import PackedFrameStore

# Below this many frames, conjugation never splits its columns across threads.
NESTED_MIN_FRAMES = 1 << 16

_guard_lock = threading.Lock()
_guard_depth = 0
_guard_limits = None


@contextlib.contextmanager
def nested_threads_disabled() -> Iterator[None]:
    """Suppresses fine-grained threading inside the Clifford arithmetic.

    While the context is active, `conjugate_frames` runs single threaded and
    native BLAS/OpenMP pools are capped at one thread. The guard is shared by
    every thread of the process: the cap is applied when the first context
    enters and the previous settings are restored when the last one exits,
    even if contexts on different threads overlap.
    """
    global _guard_depth, _guard_limits
    with _guard_lock:
        if _guard_depth == 0:
            _guard_limits = threadpoolctl.threadpool_limits(limits=1)
        _guard_depth += 1
    try:
        yield
    finally:
        with _guard_lock:
            _guard_depth -= 1
            if _guard_depth == 0:
                _guard_limits.restore_original_limits()
                _guard_limits = None


def nested_threads_enabled() -> bool:
    return _guard_depth == 0


def _nested_workers() -> int:
    return os.cpu_count() or 1


@functools.cache
def _column_pool() -> concurrent.futures.ThreadPoolExecutor:
    return concurrent.futures.ThreadPoolExecutor(
        max_workers=_nested_workers(),
        thread_name_prefix='pfsim-conjugate',
    )


@functools.cache
def unsigned_conjugation_table(gate: str) -> np.ndarray:
    """Returns the phase-free action of a Clifford gate on Pauli generators.

    For an n qubit gate the result is a 2n x 2n boolean matrix. Row `k < n` is
    the image of X_k and row `n + k` is the image of Z_k, each written as n X
    bits followed by n Z bits.
    """
    data = stim.gate_data(gate)
    if not data.is_unitary:
        raise ValueError(f'{gate=} is not a Clifford unitary.')
    tableau = data.tableau
    n = len(tableau)
    table = np.zeros(shape=(2 * n, 2 * n), dtype=np.bool_)
    for k in range(n):
        for row, out in [(k, tableau.x_output(k)), (n + k, tableau.z_output(k))]:
            xs, zs = out.to_numpy()
            table[row, :n] = xs
            table[row, n:] = zs
    return table


def gate_arity(gate: str) -> int:
    return unsigned_conjugation_table(stim.gate_data(gate).name).shape[0] // 2


def conjugate_frames(store: PackedFrameStore, gate: str, targets: Sequence[int]) -> None:
    """Conjugates every frame in the store by a Clifford gate, ignoring signs.

    Args:
        store: The frames to update in place.
        gate: A stim name of a unitary gate, such as 'H' or 'CX'.
        targets: The qubits to apply the gate to. For multi-qubit gates the
            targets are grouped into consecutive pairs (or larger groups),
            which are applied one after another.
    """
    table = unsigned_conjugation_table(stim.gate_data(gate).name)
    n = table.shape[0] // 2
    if len(targets) % n:
        raise ValueError(f'{gate=} acts on {n} qubits but got {len(targets)} targets: {targets!r}')
    groups = [tuple(targets[k:k + n]) for k in range(0, len(targets), n)]
    for group in groups:
        if len(set(group)) != n:
            raise ValueError(f'{gate=} target group {group!r} repeats a qubit.')
        for q in group:
            store.check_qubit(q)

    if nested_threads_enabled() and store.num_frames >= NESTED_MIN_FRAMES:
        step = -(-store.num_frames // _nested_workers())
        parts = [
            store.view(slice(start, start + step))
            for start in range(0, store.num_frames, step)
        ]
        for future in [_column_pool().submit(_conjugate_groups, part, table, groups) for part in parts]:
            future.result()
    else:
        _conjugate_groups(store, table, groups)


def _conjugate_groups(store: PackedFrameStore, table: np.ndarray, groups: list[tuple[int, ...]]) -> None:
    n = table.shape[0] // 2
    for group in groups:
        planes = [store.x_plane(q) for q in group] + [store.z_plane(q) for q in group]
        out = [np.zeros_like(planes[0]) for _ in range(2 * n)]
        for k in range(2 * n):
            for j in np.flatnonzero(table[k]):
                out[j] ^= planes[k]
        for k, q in enumerate(group):
            store.set_planes(q, out[k], out[n + k])
