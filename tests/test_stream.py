"""Test the streaming overlap-add wrapper.

Run: uv run python tests/test_stream.py
"""

import numpy as np
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from engine.params import SR
from engine.stream import StreamingPitchShifter, overlap_gain
from primitives.window import WindowingFunction

N = 1024


def make_sine(freq=440.0, seconds=1.0, amp=0.5):
    t = np.arange(int(SR * seconds)) / SR
    return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def test_overlap_gain_rectangular():
    table = WindowingFunction(N, "rectangular").table
    gain = overlap_gain(table, N // 4)
    assert gain.shape == (N // 4,)
    assert np.allclose(gain, 4.0)


def test_overlap_gain_hann_is_flat():
    table = WindowingFunction(N, "hann", normalise=False).table
    gain = overlap_gain(table, N // 4)
    # hann^2 at 75% overlap sums to ~1.5
    assert np.allclose(gain, 1.5, atol=1e-2)


def test_hop_and_latency():
    s = StreamingPitchShifter(N, 2.0)
    assert s.analysis_hop == 128
    assert s.synthesis_hop == 256
    assert s.stretch == 2.0
    # Frame centre N/2 - Ra ahead of the hop lands N/2 into its output copy
    assert s.latency == (N // 2 - 128) * 2 + N // 2

    s = StreamingPitchShifter(N, 1.0)
    assert s.latency == N - 256

    s = StreamingPitchShifter(N, 0.5)
    assert s.analysis_hop == 512
    assert s.latency == N // 2


def test_output_length_per_hop():
    s = StreamingPitchShifter(N, 2.0)
    out = s.process(np.zeros(1000, dtype=np.float32))
    assert len(out) == (1000 // 128) * 256
    out = s.process(np.zeros(23, dtype=np.float32))
    assert len(out) == 0
    out = s.process(np.zeros(1, dtype=np.float32))
    assert len(out) == 256
    assert s.process(np.zeros(0, dtype=np.float32)).shape == (0,)


def test_block_size_independent():
    x = make_sine(330.0, seconds=0.3)
    whole = StreamingPitchShifter(N, 1.5)
    pieces = StreamingPitchShifter(N, 1.5)
    a = np.concatenate([whole.process(x), whole.flush()])
    b = np.concatenate([pieces.process(x[i:i + 37]) for i in range(0, len(x), 37)]
                       + [pieces.flush()])
    assert np.array_equal(a, b)


def test_unity_ratio_reconstruction():
    """Ratio 1: overlap-add with window-energy normalization gives the input back."""
    print("Unity ratio stream reconstruction")
    x = make_sine(440.0, seconds=1.0)
    s = StreamingPitchShifter(N, 1.0)
    out = np.concatenate([s.process(x), s.flush()])
    out = out[s.latency:s.latency + len(x)]
    assert len(out) == len(x)

    interior = slice(N, len(x) - N)
    err = np.sqrt(np.mean((out[interior] - x[interior]) ** 2))
    rms = np.sqrt(np.mean(x[interior] ** 2))
    print(f"  relative RMS error: {err / rms:.2e}")
    assert err / rms < 0.02


def test_reset_matches_fresh():
    x = make_sine(550.0, seconds=0.2)
    s = StreamingPitchShifter(N, 0.5)
    first = np.concatenate([s.process(x), s.flush()])
    s.reset()
    second = np.concatenate([s.process(x), s.flush()])
    assert np.array_equal(first, second)


if __name__ == "__main__":
    test_overlap_gain_rectangular()
    test_overlap_gain_hann_is_flat()
    test_hop_and_latency()
    test_output_length_per_hop()
    test_block_size_independent()
    test_unity_ratio_reconstruction()
    test_reset_matches_fresh()
    print("\nDone!")
