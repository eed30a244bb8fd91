"""Real-only FFT over an interleaved scratch buffer.

Buffer layout (length 2 * size, float32):
    before forward:  [x0, x1, ..., x(size-1), <ignored>...]
    after forward:   [re0, im0, re1, im1, ..., re(size-1), im(size-1)]

All `size` complex bins are written, negative frequencies included, so bin i
is always at offsets 2i / 2i+1.
"""

import numpy as np


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


class RealFFT:
    """In-place forward/inverse transform of a fixed power-of-two size."""

    def __init__(self, size: int):
        if not is_power_of_two(size):
            raise ValueError(f"FFT size must be a power of two, got {size}")
        self.size = size
        self.order = size.bit_length() - 1

    def forward(self, buffer: np.ndarray):
        """Transform buffer[:size] (real) into `size` interleaved complex bins."""
        spectrum = np.fft.fft(buffer[:self.size])
        buffer[0::2] = spectrum.real
        buffer[1::2] = spectrum.imag

    def inverse(self, buffer: np.ndarray):
        """Inverse of forward(). Real part lands in buffer[:size], scaled by 1/size."""
        spectrum = buffer[0::2] + 1j * buffer[1::2]
        buffer[:self.size] = np.fft.ifft(spectrum).real
        buffer[self.size:] = 0.0
