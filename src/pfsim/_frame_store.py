import numpy as np
import stim

WORD_BITS = 64

_ONE = np.uint64(1)


def num_words_for(num_qubits: int) -> int:
    return (num_qubits + WORD_BITS - 1) // WORD_BITS


class PackedFrameStore:
    """The X and Z bits of many Pauli frames, packed into 64 bit words.

    Each column of `xzs` is one frame. Row `w` holds the X bits of qubits
    `64*w` through `64*w + 63` for every frame, and row `num_words + w` holds
    the corresponding Z bits. Bits above `num_qubits` in the last word of each
    half are always zero.
    """

    def __init__(self, xzs: np.ndarray, num_qubits: int):
        assert xzs.dtype == np.uint64
        assert len(xzs.shape) == 2
        assert xzs.shape[0] == 2 * num_words_for(num_qubits)
        self.xzs = xzs
        self.num_qubits = num_qubits

    @staticmethod
    def zeros(num_frames: int, num_qubits: int) -> 'PackedFrameStore':
        """Allocates a store where every frame is the identity Pauli."""
        if num_frames < 0 or num_qubits < 0:
            raise ValueError(f'{num_frames=} and {num_qubits=} must be non-negative.')
        xzs = np.zeros(shape=(2 * num_words_for(num_qubits), num_frames), dtype=np.uint64)
        return PackedFrameStore(xzs, num_qubits)

    @property
    def num_words(self) -> int:
        return self.xzs.shape[0] // 2

    @property
    def num_frames(self) -> int:
        return self.xzs.shape[1]

    def __len__(self) -> int:
        return self.num_frames

    def view(self, frames: slice) -> 'PackedFrameStore':
        """Returns a store aliasing a contiguous range of this store's frames.

        Writes through the view are visible in this store, and vice versa.
        """
        start, stop, step = frames.indices(self.num_frames)
        if step != 1:
            raise ValueError(f'Frame views must be contiguous, but got {frames=}.')
        return PackedFrameStore(self.xzs[:, start:stop], self.num_qubits)

    def copy(self) -> 'PackedFrameStore':
        return PackedFrameStore(np.copy(self.xzs), self.num_qubits)

    def randomize_z(self, rng: np.random.Generator) -> None:
        """Overwrites every Z bit of every frame with a fair coin flip."""
        n = self.num_words
        if n == 0:
            return
        z = self.xzs[n:]
        z[...] = rng.integers(0, np.iinfo(np.uint64).max, size=z.shape, dtype=np.uint64, endpoint=True)
        tail = self.num_qubits % WORD_BITS
        if tail:
            z[-1] &= np.uint64((1 << tail) - 1)

    def _locate(self, qubit: int) -> tuple[int, np.uint64]:
        if not 0 <= qubit < self.num_qubits:
            raise ValueError(f'Qubit {qubit} is out of range for a frame store with {self.num_qubits} qubits.')
        return qubit // WORD_BITS, np.uint64(qubit % WORD_BITS)

    def check_qubit(self, qubit: int) -> None:
        self._locate(qubit)

    def x_plane(self, qubit: int) -> np.ndarray:
        """Returns the X bit of the qubit in every frame, as 0/1 uint64 words."""
        w, shift = self._locate(qubit)
        return (self.xzs[w] >> shift) & _ONE

    def z_plane(self, qubit: int) -> np.ndarray:
        """Returns the Z bit of the qubit in every frame, as 0/1 uint64 words."""
        w, shift = self._locate(qubit)
        return (self.xzs[self.num_words + w] >> shift) & _ONE

    def x_bits(self, qubit: int) -> np.ndarray:
        return self.x_plane(qubit).astype(np.bool_)

    def z_bits(self, qubit: int) -> np.ndarray:
        return self.z_plane(qubit).astype(np.bool_)

    def set_planes(self, qubit: int, x_plane: np.ndarray, z_plane: np.ndarray) -> None:
        """Overwrites the qubit's X and Z bits in every frame.

        Args:
            qubit: The qubit to overwrite.
            x_plane: One 0/1 value per frame for the X bits.
            z_plane: One 0/1 value per frame for the Z bits.
        """
        w, shift = self._locate(qubit)
        mask = _ONE << shift
        keep = ~mask
        for row, plane in [(self.xzs[w], x_plane), (self.xzs[self.num_words + w], z_plane)]:
            row &= keep
            row |= np.asarray(plane).astype(np.uint64) << shift

    def flip_x(self, qubit: int, flips: np.ndarray) -> None:
        w, shift = self._locate(qubit)
        self.xzs[w] ^= np.asarray(flips).astype(np.uint64) << shift

    def flip_z(self, qubit: int, flips: np.ndarray) -> None:
        w, shift = self._locate(qubit)
        self.xzs[self.num_words + w] ^= np.asarray(flips).astype(np.uint64) << shift

    def clear_x(self, qubit: int) -> None:
        w, shift = self._locate(qubit)
        self.xzs[w] &= ~(_ONE << shift)

    def pauli_string(self, frame: int) -> stim.PauliString:
        """Returns the Pauli difference tracked by one frame."""
        column = self.xzs[:, frame]
        n = self.num_words
        chars = []
        for q in range(self.num_qubits):
            w, b = divmod(q, WORD_BITS)
            x = int(column[w] >> np.uint64(b)) & 1
            z = int(column[n + w] >> np.uint64(b)) & 1
            chars.append('_XZY'[x + 2 * z])
        return stim.PauliString(''.join(chars))

    def set_pauli_string(self, frame: int, pauli: stim.PauliString) -> None:
        """Overwrites the Pauli difference tracked by one frame."""
        if len(pauli) > self.num_qubits:
            raise ValueError(f'{pauli=} has more qubits than the store ({self.num_qubits}).')
        n = self.num_words
        self.xzs[:, frame] = 0
        for q in range(len(pauli)):
            p = pauli[q]
            w, b = divmod(q, WORD_BITS)
            if p == 1 or p == 2:
                self.xzs[w, frame] |= _ONE << np.uint64(b)
            if p == 2 or p == 3:
                self.xzs[n + w, frame] |= _ONE << np.uint64(b)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PackedFrameStore):
            return NotImplemented
        return self.num_qubits == other.num_qubits and np.array_equal(self.xzs, other.xzs)

    def __repr__(self) -> str:
        return f'pfsim.PackedFrameStore(num_frames={self.num_frames}, num_qubits={self.num_qubits})'
