"""Window tables — multiply a buffer in place by a precomputed window."""

import numpy as np
from scipy.signal import windows


def rectangular(size):
    return np.ones(size)


# name -> table constructor (symmetric windows, like a filter-design table)
WINDOW_TYPES = {
    "hamming": lambda n: windows.hamming(n, sym=True),
    "hann": lambda n: windows.hann(n, sym=True),
    "blackman": lambda n: windows.blackman(n, sym=True),
    "triangular": lambda n: windows.triang(n, sym=True),
    "rectangular": rectangular,
}


class WindowingFunction:
    """Fixed-size window table.

    normalise=True scales the table so it sums to `size`, which keeps the
    windowed frame at roughly the same level as the raw one.
    """

    def __init__(self, size: int, method: str = "hamming", normalise: bool = True):
        if method not in WINDOW_TYPES:
            raise ValueError(f"Unknown window type '{method}'. Options: {list(WINDOW_TYPES.keys())}")
        self.size = size
        self.method = method

        table = np.asarray(WINDOW_TYPES[method](size), dtype=np.float64)
        if normalise:
            total = table.sum()
            if total > 0:
                table = table * (size / total)
        self.table = table.astype(np.float32)

    def multiply(self, buffer: np.ndarray, length: int):
        """buffer[:length] *= table[:length] (clamped to the table size)."""
        n = min(length, self.size)
        buffer[:n] *= self.table[:n]
