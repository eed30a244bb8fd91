"""Test the FFT and window collaborators.

Run: uv run python tests/test_fft_window.py
"""

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from primitives.fft import RealFFT, is_power_of_two
from primitives.window import WindowingFunction, WINDOW_TYPES

N = 1024


# ---------------------------------------------------------------------------
# FFT
# ---------------------------------------------------------------------------
def test_power_of_two():
    assert is_power_of_two(1024)
    assert is_power_of_two(1)
    assert not is_power_of_two(1000)
    assert not is_power_of_two(0)
    with pytest.raises(ValueError):
        RealFFT(1000)


def test_fft_layout():
    """A cosine at bin 5 lands at offsets 10/11 (and its mirror at N-5)."""
    fft = RealFFT(N)
    buf = np.zeros(2 * N, dtype=np.float32)
    buf[:N] = np.cos(2 * np.pi * 5 * np.arange(N) / N)
    fft.forward(buf)
    assert np.isclose(buf[10], N / 2, rtol=1e-4)
    assert abs(buf[11]) < 1e-2
    assert np.isclose(buf[2 * (N - 5)], N / 2, rtol=1e-4)
    mags = np.hypot(buf[0::2], buf[1::2])
    assert mags.argmax() in (5, N - 5)
    print("  Bin layout: OK")


def test_fft_round_trip():
    rng = np.random.default_rng(1)
    x = rng.standard_normal(N).astype(np.float32)
    fft = RealFFT(N)
    buf = np.zeros(2 * N, dtype=np.float32)
    buf[:N] = x
    fft.forward(buf)
    fft.inverse(buf)
    assert np.allclose(buf[:N], x, atol=1e-5)
    assert np.all(buf[N:] == 0.0)
    print("  Round trip: OK")


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------
def test_window_normalised():
    for method in WINDOW_TYPES:
        w = WindowingFunction(N, method)
        assert np.isclose(w.table.astype(np.float64).sum(), N, rtol=1e-4), method
        assert np.allclose(w.table, w.table[::-1], atol=1e-6), f"{method} not symmetric"


def test_window_raw_hamming():
    w = WindowingFunction(N, "hamming", normalise=False)
    assert np.isclose(w.table[0], 0.08, atol=1e-6)
    assert np.isclose(w.table.max(), 1.0, atol=1e-5)


def test_window_multiply_clamps():
    w = WindowingFunction(N, "hann")
    buf = np.ones(2 * N, dtype=np.float32)
    w.multiply(buf, 2 * N)
    assert np.allclose(buf[:N], w.table)
    assert np.all(buf[N:] == 1.0)

    buf = np.ones(N, dtype=np.float32)
    w.multiply(buf, 10)
    assert np.allclose(buf[:10], w.table[:10])
    assert np.all(buf[10:] == 1.0)


def test_unknown_window():
    with pytest.raises(ValueError):
        WindowingFunction(N, "kaiser-bessel-ish")


if __name__ == "__main__":
    test_power_of_two()
    test_fft_layout()
    test_fft_round_trip()
    test_window_normalised()
    test_window_raw_hamming()
    test_window_multiply_clamps()
    test_unknown_window()
    print("\nDone!")
