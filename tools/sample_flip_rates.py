#!/usr/bin/env python3

import argparse
import pathlib
import sys
import time

import numpy as np
import stim

src_path = pathlib.Path(__file__).parent.parent / 'src'
assert src_path.exists()
sys.path.append(str(src_path))

import pfsim


def main():
    parser = argparse.ArgumentParser(
        description='Prints how often each measurement of a stim circuit is flipped by its noise.',
    )
    parser.add_argument('--circuit', required=True, type=str)
    parser.add_argument('--trajectories', default=5000, type=int)
    parser.add_argument('--seed', default=None, type=int)
    parser.add_argument('--no_threads', action='store_true')
    args = parser.parse_args()

    circuit = stim.Circuit.from_file(args.circuit)
    compiled = pfsim.compile_circuit(circuit)
    print(f'Simulating {args.trajectories} trajectories of {args.circuit} '
          f'({compiled.num_qubits} qubits, {len(compiled)} operations)...', file=sys.stderr)
    t0 = time.monotonic()
    frames = pfsim.pftrajectories(
        compiled,
        trajectories=args.trajectories,
        threads=not args.no_threads,
        seed=args.seed,
    )
    t1 = time.monotonic()
    print(f'Done in {t1 - t0:0.3f}s.', file=sys.stderr)

    rates = np.mean(pfsim.pfmeasurements(frames), axis=0)
    print('bit,flip_rate')
    for b in range(circuit.num_measurements):
        print(f'{b},{rates[b]}')


if __name__ == '__main__':
    main()
