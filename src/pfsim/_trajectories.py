import concurrent.futures
import logging
import os

from pfsim._clifford import nested_threads_disabled
from pfsim._compile import CircuitLike, CompiledCircuit, compile_circuit
from pfsim._pauli_frame import PauliFrame, RngLike
from pfsim._register import Register

logger = logging.getLogger(__name__)

# Fewer trajectories than this per thread aren't worth a thread.
MIN_BATCH = 100

MAX_THREADS_ENV_VAR = 'PFSIM_MAX_THREADS'


def available_threads() -> int:
    """Returns how many worker threads trajectory batches may use.

    The `PFSIM_MAX_THREADS` environment variable wins when it holds a positive
    integer. Otherwise the CPUs this process may run on are counted.
    """
    override = os.environ.get(MAX_THREADS_ENV_VAR, '').strip()
    if override:
        try:
            n = int(override)
        except ValueError:
            n = 0
        if n > 0:
            return n
        logger.warning('Ignoring invalid %s=%r', MAX_THREADS_ENV_VAR, override)

    sched_getaffinity = getattr(os, 'sched_getaffinity', None)
    if sched_getaffinity is not None:
        n = len(sched_getaffinity(0))
        if n > 0:
            return n
    return os.cpu_count() or 1


def batch_ranges(trajectories: int, num_batches: int) -> list[slice]:
    """Splits frames into contiguous, nearly equal batches.

    The last batch absorbs the remainder.
    """
    size = trajectories // num_batches
    return [
        slice(k * size, trajectories if k == num_batches - 1 else (k + 1) * size)
        for k in range(num_batches)
    ]


def pftrajectories(
        circuit: CircuitLike,
        *,
        trajectories: int = 5000,
        threads: bool = True,
        seed: RngLike = None) -> PauliFrame:
    """Performs a Pauli frame simulation of many trajectories of a circuit.

    Fine-grained threading inside the Clifford arithmetic is disabled for the
    duration of the call, because trajectory batches already keep the CPUs
    busy.

    Args:
        circuit: A `stim.Circuit`, a sequence of operations, or a
            `CompiledCircuit`.
        trajectories: Number of frames to simulate.
        threads: Whether to split the frames into batches run by separate
            threads. Small trajectory counts always run on the calling thread.
        seed: Randomness source, or a seed for one.

    Returns:
        The simulated frames. Their measurements are relative to the reference
        trajectory.
    """
    with nested_threads_disabled():
        return _pftrajectories(circuit, trajectories=trajectories, threads=threads, seed=seed)


def _run_batch(frames: PauliFrame, circuit: CompiledCircuit) -> None:
    frames.run(circuit)


def _pftrajectories(
        circuit: CircuitLike,
        *,
        trajectories: int,
        threads: bool,
        seed: RngLike) -> PauliFrame:
    compiled = compile_circuit(circuit)
    frames = PauliFrame(trajectories, compiled.num_qubits, compiled.num_measurements, rng=seed)
    nthr = min(available_threads(), trajectories // MIN_BATCH)
    if threads and nthr > 1:
        batches = [frames.view(r) for r in batch_ranges(trajectories, nthr)]
        logger.debug('Running %d trajectories in %d batches of about %d.', trajectories, nthr, trajectories // nthr)
        with concurrent.futures.ThreadPoolExecutor(max_workers=nthr, thread_name_prefix='pfsim') as pool:
            futures = [pool.submit(_run_batch, batch, compiled) for batch in batches]
        for future in futures:
            future.result()
    else:
        logger.debug('Running %d trajectories on the calling thread.', trajectories)
        _run_batch(frames, compiled)
    return frames


def pftrajectories_with_reference(
        register: Register,
        circuit: CircuitLike,
        *,
        trajectories: int = 500,
        seed: RngLike = None) -> tuple[Register, PauliFrame]:
    """Simulates the reference trajectory on a register, then frames relative to it.

    Use `absolute_measurements(register, frames)` to get the actual
    measurement results of each frame.

    Returns:
        The register (holding the reference outcomes) and the frames.
    """
    compiled = compile_circuit(circuit)
    register.run(compiled)
    frames = PauliFrame(trajectories, register.num_qubits, len(register.bits), rng=seed)
    frames.run(compiled)
    return register, frames
