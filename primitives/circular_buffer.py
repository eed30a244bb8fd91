"""Circular sample buffer — holds the most recent `capacity` input samples."""

import numpy as np


class CircularBuffer:
    """Fixed-length ring with single-sample and block writes.

    Usage:
        ring = CircularBuffer(capacity=2048)
        ring.write_block(block)
        frame = ring.latest(2048)   # oldest -> newest
        s = ring.read(0)            # most recent sample
    """

    def __init__(self, capacity: int):
        self.buffer = np.zeros(capacity, dtype=np.float32)
        self.length = capacity
        self.write_idx = 0

    def write(self, sample: float):
        """Write a sample and advance the write pointer."""
        self.buffer[self.write_idx] = sample
        self.write_idx = (self.write_idx + 1) % self.length

    def write_block(self, samples: np.ndarray):
        """Write a block. Only the last `capacity` samples of a longer block survive."""
        samples = np.asarray(samples, dtype=np.float32)
        n = len(samples)
        if n == 0:
            return
        if n >= self.length:
            self.buffer[:] = samples[-self.length:]
            self.write_idx = 0
            return
        first = min(n, self.length - self.write_idx)
        self.buffer[self.write_idx:self.write_idx + first] = samples[:first]
        rest = n - first
        if rest:
            self.buffer[:rest] = samples[first:]
        self.write_idx = (self.write_idx + n) % self.length

    def read(self, delay: int) -> float:
        """Read a sample from `delay` steps in the past.

        delay=0 returns the most recently written sample.
        """
        idx = (self.write_idx - 1 - delay) % self.length
        return self.buffer[idx]

    def latest(self, n: int) -> np.ndarray:
        """Copy of the last n samples, oldest first."""
        n = min(n, self.length)
        start = (self.write_idx - n) % self.length
        idx = (start + np.arange(n)) % self.length
        return self.buffer[idx]

    def reset(self):
        """Clear the buffer."""
        self.buffer[:] = 0.0
        self.write_idx = 0
